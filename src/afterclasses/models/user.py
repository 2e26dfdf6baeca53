# src/afterclasses/models/user.py
"""SQLAlchemy model for student profiles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from afterclasses.db.session import Base
from afterclasses.db.time import utcnow


class User(Base):
    """Profile created after a verified email login."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("coins >= 0", name="ck_users_coins_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    pitch_line: Mapped[str | None] = mapped_column(Text, nullable=True)
    personality: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    toxic_traits: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
