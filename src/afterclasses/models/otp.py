# src/afterclasses/models/otp.py
"""One-time login codes bound to an email identity."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from afterclasses.db.session import Base
from afterclasses.db.time import utcnow


class OneTimeCode(Base):
    """Short-lived numeric code proving control of an email address.

    At most one live row exists per email: issuing a new code removes the
    previous ones, and a successful verification deletes the row.
    """

    __tablename__ = "otps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
