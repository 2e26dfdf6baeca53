# src/afterclasses/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import SendOtpRequest, SendOtpResponse, VerifyOtpRequest, VerifyOtpResponse
from .chat import ChatMessageResponse, JoinRoomPayload, SendMessagePayload, SocketEvent
from .match import ApproachRequest, ApproachResponse, SuggestionsResponse
from .user import CreateProfileRequest, CreateProfileResponse, UserResponse

__all__ = [
    "SendOtpRequest", "SendOtpResponse", "VerifyOtpRequest", "VerifyOtpResponse",
    "ChatMessageResponse", "JoinRoomPayload", "SendMessagePayload", "SocketEvent",
    "ApproachRequest", "ApproachResponse", "SuggestionsResponse",
    "CreateProfileRequest", "CreateProfileResponse", "UserResponse",
]
