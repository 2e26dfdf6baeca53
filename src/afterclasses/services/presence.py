"""Process-local presence tracking for real-time connections."""

from __future__ import annotations

from typing import Any, Protocol


class Connection(Protocol):
    """A live client connection able to receive JSON frames."""

    async def send_json(self, data: Any) -> None: ...


class PresenceService:
    """Map each online identity to the connection that registered it last.

    One instance lives per server process and is shared by the chat relay;
    presence is not visible to other processes.
    """

    def __init__(self) -> None:
        self._handles: dict[str, Connection] = {}

    def register(self, identity: str, handle: Connection) -> None:
        """Bind ``identity`` to ``handle``, replacing any earlier connection.

        A connection speaks for one identity at a time: registering it under
        a new identity drops the identity it was bound to before.
        """
        for previous in self.identities_for(handle):
            if previous != identity:
                del self._handles[previous]
        self._handles[identity] = handle

    def lookup(self, identity: str) -> Connection | None:
        return self._handles.get(identity)

    def remove(self, identity: str, handle: Connection | None = None) -> bool:
        """Forget ``identity``.

        With ``handle`` given, the entry is only removed while it still points
        at that connection, so a late disconnect from a replaced connection
        leaves the newer one online.
        """
        current = self._handles.get(identity)
        if current is None or (handle is not None and current is not handle):
            return False
        del self._handles[identity]
        return True

    def identity_for(self, handle: Connection) -> str | None:
        identities = self.identities_for(handle)
        return identities[0] if identities else None

    def identities_for(self, handle: Connection) -> list[str]:
        """Return every identity currently bound to ``handle``."""
        return [identity for identity, current in self._handles.items() if current is handle]

    def online(self) -> list[str]:
        """Return the registered identities in a stable order."""
        return sorted(self._handles)

    def __contains__(self, identity: object) -> bool:
        return identity in self._handles

    def __len__(self) -> int:
        return len(self._handles)
