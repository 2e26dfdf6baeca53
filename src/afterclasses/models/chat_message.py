# src/afterclasses/models/chat_message.py
"""Models describing direct messages between users."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from afterclasses.db.session import Base
from afterclasses.db.time import utcnow


class ChatMessage(Base):
    """Plain-text message relayed between two users.

    Rows are append-only; conversation order is ``created_at`` ascending with
    the primary key breaking ties.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_pair", "sender_id", "receiver_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
