"""Exception hierarchy shared by the AfterClasses services.

Services raise these; each route maps them to an HTTP status. Nothing here
knows about HTTP.
"""

from __future__ import annotations


class AfterClassesError(Exception):
    """Base class for domain errors raised by services."""


class ValidationError(AfterClassesError):
    """Input is missing, malformed, or rejected by policy."""


class OtpError(AfterClassesError):
    """A one-time code could not be accepted."""


class NotFoundError(OtpError):
    """No code exists for the identity (never issued or already consumed)."""

    def __init__(self, message: str = "No OTP found") -> None:
        super().__init__(message)


class ExpiredError(OtpError):
    """The stored code is past its expiry time."""

    def __init__(self, message: str = "OTP expired") -> None:
        super().__init__(message)


class MismatchError(OtpError):
    """The submitted code differs from the stored one."""

    def __init__(self, message: str = "Wrong OTP") -> None:
        super().__init__(message)


class InsufficientBalanceError(AfterClassesError):
    """The sender cannot afford the requested action."""

    def __init__(self, message: str = "Not enough coins") -> None:
        super().__init__(message)


class UserNotFoundError(AfterClassesError):
    """A referenced user does not exist."""

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class DeliveryError(AfterClassesError):
    """Sending a notification failed. Logged, never surfaced to callers."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Delivery to {recipient} failed: {reason}")
        self.recipient = recipient
        self.reason = reason
