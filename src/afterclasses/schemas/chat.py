"""Schemas for chat history and the real-time channel."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageResponse(BaseModel):
    """Persisted chat message as returned by history and broadcasts."""

    id: int
    sender_id: int
    receiver_id: int
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SocketEvent(BaseModel):
    """Envelope for every frame on the real-time channel."""

    event: str = Field(..., min_length=1)
    data: Any = None


class JoinRoomPayload(BaseModel):
    """Subscribe the connection to the pairwise room of two users."""

    user_id: int = Field(..., alias="userId")
    other_user_id: int = Field(..., alias="otherUserId")

    model_config = ConfigDict(populate_by_name=True)


class SendMessagePayload(BaseModel):
    """Message relayed to the room shared by sender and receiver."""

    sender_id: int = Field(..., alias="senderId")
    receiver_id: int = Field(..., alias="receiverId")
    message: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)
