"""Outbound delivery of one-time codes.

Delivery never blocks the request that issued the code: the dispatcher
schedules it as a task and records the outcome in the log. Callers may keep
the returned task to await the result, but nothing depends on it.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import uuid
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Protocol

from afterclasses.core.settings import Settings, settings
from afterclasses.services.errors import DeliveryError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your Login OTP - AfterClasses"


class NotificationSender(Protocol):
    """Anything able to deliver a login code to an email address."""

    async def send_code(self, email: str, code: str) -> str:
        """Deliver ``code`` and return a provider message id."""
        ...


def render_code_email(sender: str, email: str, code: str, ttl_seconds: int) -> EmailMessage:
    """Build the plain-text message carrying a login code."""
    minutes = max(1, ttl_seconds // 60)
    message = EmailMessage()
    message["Subject"] = OTP_SUBJECT
    message["From"] = sender
    message["To"] = email
    message["Message-ID"] = make_msgid(domain="afterclasses.app")
    message.set_content(f"Your OTP is: {code}. Valid for {minutes} minutes.")
    return message


class SmtpEmailSender:
    """Send codes through an SMTP relay using ``smtplib`` in a worker thread."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        user: str | None = None,
        password: str | None = None,
        security: str = "starttls",
        sender: str = settings.mail_from,
        timeout: float = 15.0,
        ttl_seconds: int = settings.otp_ttl_seconds,
    ) -> None:
        if security not in {"starttls", "ssl", "none"}:
            raise ValueError(f"Unsupported SMTP security mode: {security!r}")
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.security = security
        self.sender = sender
        self.timeout = timeout
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, config: Settings) -> SmtpEmailSender:
        if not config.smtp_host:
            raise ValueError("SMTP_HOST is not configured")
        return cls(
            config.smtp_host,
            config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            security=config.smtp_security,
            sender=config.mail_from,
            timeout=config.smtp_timeout_seconds,
            ttl_seconds=config.otp_ttl_seconds,
        )

    def _connect(self) -> smtplib.SMTP:
        smtp_cls = smtplib.SMTP_SSL if self.security == "ssl" else smtplib.SMTP
        client = smtp_cls(self.host, self.port, timeout=self.timeout)
        try:
            if self.security == "starttls":
                client.starttls()
            if self.user:
                client.login(self.user, self.password or "")
        except BaseException:
            client.close()
            raise
        return client

    def _deliver(self, message: EmailMessage) -> str:
        with self._connect() as client:
            client.send_message(message)
        return str(message["Message-ID"])

    async def send_code(self, email: str, code: str) -> str:
        message = render_code_email(self.sender, email, code, self.ttl_seconds)
        return await asyncio.to_thread(self._deliver, message)

    def check(self) -> bool:
        """Open and close a session with the relay, logging the outcome."""
        try:
            with self._connect() as client:
                client.noop()
        except (OSError, smtplib.SMTPException):
            logger.error("SMTP relay %s:%s unavailable", self.host, self.port, exc_info=True)
            return False
        logger.info("SMTP relay %s:%s ready", self.host, self.port)
        return True


class LoggingEmailSender:
    """Development sender used when no SMTP relay is configured."""

    async def send_code(self, email: str, code: str) -> str:
        logger.warning("SMTP_HOST not configured; login code for %s was not emailed", email)
        logger.debug("Development login code for %s: %s", email, code)
        return f"logged-{uuid.uuid4().hex}"

    def check(self) -> bool:
        logger.warning("SMTP_HOST not configured; login codes will only be logged")
        return False


def build_sender(config: Settings = settings) -> SmtpEmailSender | LoggingEmailSender:
    """Return the sender matching the mail configuration."""
    if config.smtp_host:
        return SmtpEmailSender.from_settings(config)
    return LoggingEmailSender()


class NotificationDispatcher:
    """Schedule code deliveries without making the caller wait for them."""

    def __init__(self, sender: NotificationSender) -> None:
        self.sender = sender
        self._pending: set[asyncio.Task[str]] = set()

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._pending)

    def submit(self, email: str, code: str) -> asyncio.Task[str]:
        """Start delivering ``code`` and return the task tracking it.

        Must be called from inside a running event loop. The task resolves to
        the provider message id or raises ``DeliveryError``.
        """
        task = asyncio.get_running_loop().create_task(self._deliver(email, code))
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    async def _deliver(self, email: str, code: str) -> str:
        try:
            return await self.sender.send_code(email, code)
        except Exception as exc:
            raise DeliveryError(email, str(exc) or exc.__class__.__name__) from exc

    def _finished(self, task: asyncio.Task[str]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("OTP delivery cancelled before completion")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("OTP email failed: %s", exc, exc_info=exc)
            return
        logger.info("OTP email sent: %s", task.result())

    async def drain(self) -> None:
        """Wait for every in-flight delivery; failures stay logged only."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
