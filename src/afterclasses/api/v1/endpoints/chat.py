# src/afterclasses/api/v1/endpoints/chat.py
"""Chat history and the real-time chat channel."""

from __future__ import annotations

import logging
from typing import Any

import pydantic
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from afterclasses.api.v1.dependencies import ChatRelayDep, SessionDep
from afterclasses.schemas.chat import (
    ChatMessageResponse,
    JoinRoomPayload,
    SendMessagePayload,
    SocketEvent,
)
from afterclasses.services import chat
from afterclasses.services.chat import ChatRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

# Inbound event names
USER_CONNECTED = "user_connected"
JOIN_ROOM = "join_room"
SEND_MESSAGE = "send_message"

_user_id_adapter = TypeAdapter(int)


class SocketConnection:
    """Hashable handle around a WebSocket, used as the relay's connection key."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def send_json(self, data: Any) -> None:
        await self.websocket.send_json(data)


@router.get("/chat/history/{user_id}/{other_user_id}", response_model=list[ChatMessageResponse])
async def get_history(user_id: int, other_user_id: int, db: SessionDep) -> list[ChatMessageResponse]:
    """Return the whole conversation between two users, oldest first."""
    try:
        messages = chat.history(db, user_id, other_user_id)
    except SQLAlchemyError as err:
        logger.exception("Loading chat history for %s/%s failed", user_id, other_user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load messages",
        ) from err
    return [ChatMessageResponse.model_validate(message) for message in messages]


async def _send_error(connection: SocketConnection, event: str, detail: str) -> None:
    await connection.send_json({"event": event, "data": {"detail": detail}})


async def _dispatch(
    relay: ChatRelay,
    connection: SocketConnection,
    db: Session,
    frame: SocketEvent,
) -> None:
    if frame.event == USER_CONNECTED:
        user_id = _user_id_adapter.validate_python(frame.data)
        await relay.register(connection, user_id)
    elif frame.event == JOIN_ROOM:
        room = JoinRoomPayload.model_validate(frame.data)
        relay.join_room(connection, room.user_id, room.other_user_id)
    elif frame.event == SEND_MESSAGE:
        payload = SendMessagePayload.model_validate(frame.data)
        message = await relay.send_message(db, payload.sender_id, payload.receiver_id, payload.message)
        if message is None:
            await connection.send_json(
                {
                    "event": chat.MESSAGE_ERROR,
                    "data": {
                        "receiverId": payload.receiver_id,
                        "detail": "Message could not be saved",
                    },
                }
            )
    else:
        await _send_error(connection, chat.ERROR, f"Unknown event: {frame.event}")


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, db: SessionDep, relay: ChatRelayDep) -> None:
    """Relay presence and chat events as ``{"event": ..., "data": ...}`` frames."""
    await websocket.accept()
    connection = SocketConnection(websocket)
    relay.connect(connection)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = message.get("text")
            if raw is None:
                await _send_error(connection, chat.ERROR, "Binary frames are not supported")
                continue
            try:
                frame = SocketEvent.model_validate_json(raw)
                await _dispatch(relay, connection, db, frame)
            except pydantic.ValidationError as err:
                await _send_error(connection, chat.ERROR, f"Invalid payload: {err.error_count()} error(s)")
    except WebSocketDisconnect:
        pass
    finally:
        await relay.disconnect(connection)
