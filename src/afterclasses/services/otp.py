"""Email one-time code authentication.

Codes are six digits, live for ``otp_ttl_seconds`` and are single use. Issuing
a code removes every earlier code for the same email in the same transaction,
so at most one live code exists per identity.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from afterclasses.core.settings import settings
from afterclasses.db.time import as_utc, utcnow
from afterclasses.models import OneTimeCode, User
from afterclasses.services.errors import (
    ExpiredError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from afterclasses.services.notifier import NotificationDispatcher

logger = logging.getLogger(__name__)

CODE_MIN = 100_000
CODE_MAX = 999_999


class EmailPolicy(Protocol):
    """Decides which email identities may request a code."""

    def check(self, email: str) -> None:
        """Raise ``ValidationError`` if ``email`` is not acceptable."""
        ...


class AllowAllPolicy:
    """Accept any non-empty email."""

    def check(self, email: str) -> None:
        if not email:
            raise ValidationError("Email is required")


class DomainPolicy:
    """Accept only addresses ending in ``@<domain>`` (case-sensitive)."""

    def __init__(self, domain: str) -> None:
        domain = domain.strip().lstrip("@")
        if not domain:
            raise ValueError("DomainPolicy requires a domain")
        self.domain = domain

    def check(self, email: str) -> None:
        if not email or not email.endswith(f"@{self.domain}"):
            raise ValidationError(f"Only @{self.domain} emails allowed")


def build_email_policy(allowed_domain: str | None) -> EmailPolicy:
    """Return the policy for the configured institutional domain, if any."""
    if allowed_domain:
        return DomainPolicy(allowed_domain)
    return AllowAllPolicy()


def generate_code() -> str:
    """Return a code drawn uniformly from [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


@dataclass(frozen=True)
class IssuedCode:
    """Result of issuing a code. ``code`` is a secret; do not log it."""

    email: str
    code: str
    is_new_user: bool
    expires_at: datetime
    delivery: asyncio.Task[str] | None = None


@dataclass(frozen=True)
class Verification:
    """Result of a successful verification."""

    is_new_user: bool
    user: User | None


class _IdentityLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = Lock()
        self.users = 0


_LOCKS_GUARD = Lock()
_IDENTITY_LOCKS: dict[str, _IdentityLock] = {}


@contextmanager
def _identity_lock(email: str) -> Iterator[None]:
    """Serialize work on ``email``; the entry is dropped by its last user."""
    with _LOCKS_GUARD:
        entry = _IDENTITY_LOCKS.get(email)
        if entry is None:
            entry = _IDENTITY_LOCKS[email] = _IdentityLock()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _LOCKS_GUARD:
            entry.users -= 1
            if entry.users == 0:
                del _IDENTITY_LOCKS[email]


class OtpService:
    """Issue and verify one-time codes stored in the database."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher | None = None,
        policy: EmailPolicy | None = None,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._dispatcher = dispatcher
        self.policy = policy or build_email_policy(settings.allowed_email_domain)
        self.ttl = timedelta(
            seconds=settings.otp_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock

    def issue_code(self, db: Session, email: str | None) -> IssuedCode:
        """Store a fresh code for ``email`` and hand it to the dispatcher.

        Delivery is scheduled, not awaited: a failing mail relay never fails
        this call or rolls back the stored code.
        """
        email = email or ""
        self.policy.check(email)

        with _identity_lock(email):
            is_new_user = db.query(User.id).filter(User.email == email).first() is None
            code = generate_code()
            issued_at = self._clock()
            expires_at = issued_at + self.ttl
            try:
                db.execute(delete(OneTimeCode).where(OneTimeCode.email == email))
                db.add(
                    OneTimeCode(
                        email=email,
                        otp=code,
                        created_at=issued_at,
                        expires_at=expires_at,
                    )
                )
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

        logger.info("Issued OTP for %s (new user: %s)", email, is_new_user)
        delivery = self._dispatcher.submit(email, code) if self._dispatcher else None
        return IssuedCode(
            email=email,
            code=code,
            is_new_user=is_new_user,
            expires_at=expires_at,
            delivery=delivery,
        )

    def verify_code(self, db: Session, email: str | None, submitted: str | None) -> Verification:
        """Consume the latest code for ``email`` if ``submitted`` matches it.

        Raises:
            ValidationError: ``email`` or ``submitted`` is missing.
            NotFoundError: no code exists (never issued or already used).
            ExpiredError: the code is past its expiry.
            MismatchError: ``submitted`` is not exactly the stored code.
        """
        if not email or submitted is None:
            raise ValidationError("Email and OTP are required")
        record = (
            db.query(OneTimeCode)
            .filter(OneTimeCode.email == email)
            .order_by(OneTimeCode.created_at.desc(), OneTimeCode.id.desc())
            .first()
        )
        if record is None:
            raise NotFoundError()
        if self._clock() > as_utc(record.expires_at):
            raise ExpiredError()
        if not secrets.compare_digest(record.otp.encode(), submitted.encode()):
            raise MismatchError()

        try:
            consumed = db.execute(delete(OneTimeCode).where(OneTimeCode.id == record.id))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        # A concurrent verification already took this code.
        if consumed.rowcount != 1:
            raise NotFoundError()

        user = db.query(User).filter(User.email == email).first()
        logger.info("Verified OTP for %s (new user: %s)", email, user is None)
        return Verification(is_new_user=user is None, user=user)
