# src/afterclasses/models/__init__.py
"""SQLAlchemy models for the AfterClasses application."""

from .approach import Approach
from .chat_message import ChatMessage
from .otp import OneTimeCode
from .user import User

__all__ = [
    "Approach",
    "ChatMessage",
    "OneTimeCode",
    "User",
]
