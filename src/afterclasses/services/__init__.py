# src/afterclasses/services/__init__.py
"""Business logic services for the AfterClasses application."""

from .chat import ChatRelay
from .notifier import NotificationDispatcher
from .otp import OtpService
from .presence import PresenceService

__all__ = [
    "ChatRelay",
    "NotificationDispatcher",
    "OtpService",
    "PresenceService",
]
