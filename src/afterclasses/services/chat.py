"""Pairwise chat rooms relayed over real-time connections.

A room is identified by the two participant ids sorted and joined, so both
sides land in the same room regardless of who joins first. Messages are
written to the database before they are broadcast; fan-out is best effort
with no acknowledgement or replay beyond the history query.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any, Final

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from afterclasses.models import ChatMessage
from afterclasses.schemas.chat import ChatMessageResponse
from afterclasses.services.presence import Connection, PresenceService

logger = logging.getLogger(__name__)

ROOM_SEPARATOR: Final[str] = "_"

# Outbound event names
ONLINE_USERS: Final[str] = "online_users"
RECEIVE_MESSAGE: Final[str] = "receive_message"
MESSAGE_ERROR: Final[str] = "message_error"
ERROR: Final[str] = "error"


def room_key(identity: int | str, other: int | str) -> str:
    """Return the canonical, order-independent room id for two identities."""
    return ROOM_SEPARATOR.join(sorted((str(identity), str(other))))


def serialize_message(message: ChatMessage) -> dict[str, Any]:
    """Serialize a ChatMessage into its JSON payload form."""
    return ChatMessageResponse.model_validate(message).model_dump(mode="json")


def history(db: Session, user_id: int, other_user_id: int) -> Sequence[ChatMessage]:
    """Return every message exchanged by the pair, oldest first.

    Not paginated: the full conversation is returned.
    """
    return (
        db.query(ChatMessage)
        .filter(
            or_(
                and_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == other_user_id),
                and_(ChatMessage.sender_id == other_user_id, ChatMessage.receiver_id == user_id),
            )
        )
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )


class ChatRelay:
    """Own room membership and relay messages between connections."""

    def __init__(self, presence: PresenceService | None = None) -> None:
        self.presence = presence or PresenceService()
        self._connections: set[Connection] = set()
        self._rooms: dict[str, set[Connection]] = defaultdict(set)
        self._joined: dict[Connection, set[str]] = defaultdict(set)

    def connect(self, connection: Connection) -> None:
        """Track a new, still anonymous connection for broadcasts."""
        self._connections.add(connection)

    async def register(self, connection: Connection, identity: int | str) -> None:
        """Bind ``identity`` to ``connection`` and announce who is online."""
        self.connect(connection)
        self.presence.register(str(identity), connection)
        logger.info("User %s connected", identity)
        await self.broadcast(ONLINE_USERS, self.presence.online())

    def join_room(self, connection: Connection, identity: int | str, other: int | str) -> str:
        """Subscribe ``connection`` to the pair's room. Joining twice is harmless."""
        key = room_key(identity, other)
        self._rooms[key].add(connection)
        self._joined[connection].add(key)
        logger.debug("Connection joined room %s", key)
        return key

    def members(self, key: str) -> frozenset[Connection]:
        return frozenset(self._rooms.get(key, ()))

    async def send_message(
        self,
        db: Session,
        sender_id: int,
        receiver_id: int,
        body: str,
    ) -> ChatMessage | None:
        """Persist a message, then broadcast it to the pair's room.

        Returns ``None`` when the write fails; nothing is broadcast then.
        """
        message = ChatMessage(sender_id=sender_id, receiver_id=receiver_id, message=body)
        try:
            db.add(message)
            db.commit()
            db.refresh(message)
        except SQLAlchemyError:
            db.rollback()
            logger.error(
                "Failed to persist message from %s to %s", sender_id, receiver_id, exc_info=True
            )
            return None

        key = room_key(sender_id, receiver_id)
        await self._fan_out(self.members(key), RECEIVE_MESSAGE, serialize_message(message))
        return message

    async def disconnect(self, connection: Connection) -> None:
        """Drop the connection's rooms and presence entry."""
        self._connections.discard(connection)
        for key in self._joined.pop(connection, set()):
            room = self._rooms.get(key)
            if room is None:
                continue
            room.discard(connection)
            if not room:
                del self._rooms[key]

        removed = [
            identity
            for identity in self.presence.identities_for(connection)
            if self.presence.remove(identity, connection)
        ]
        if not removed:
            logger.info("Anonymous connection disconnected")
            return
        logger.info("User %s disconnected", ", ".join(removed))
        await self.broadcast(ONLINE_USERS, self.presence.online())

    async def broadcast(self, event: str, data: Any) -> None:
        """Send an event to every open connection."""
        await self._fan_out(self._connections, event, data)

    async def _fan_out(self, targets: Iterable[Connection], event: str, data: Any) -> None:
        frame = {"event": event, "data": data}
        for connection in list(targets):
            try:
                await connection.send_json(frame)
            except Exception:
                logger.warning("Dropping %s frame for an unreachable connection", event, exc_info=True)
