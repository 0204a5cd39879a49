"""Connection registry: the authoritative ``connection_id -> Connection`` map."""

import itertools
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Set

from ..core.exceptions import DuplicateRegistrationError
from ..core.logging import get_logger
from .ports import OutboundChannel

logger = get_logger("realtime.registry")


def new_connection_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Connection:
    """One live client session.

    ``rooms`` is owned by ``RoomManager`` and only mutated under its lock.
    """

    connection_id: str
    channel: OutboundChannel
    user_id: Optional[uuid.UUID] = None
    display_identity: Optional[str] = None
    sequence: int = 0
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rooms: Set[str] = field(default_factory=set)

    @property
    def label(self) -> str:
        """Name shown to other participants."""
        return self.display_identity or self.connection_id


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}
        self._sequence = itertools.count(1)

    def register(
        self,
        connection_id: str,
        *,
        channel: OutboundChannel,
        user_id: Optional[uuid.UUID] = None,
        display_identity: Optional[str] = None,
    ) -> Connection:
        if connection_id in self._connections:
            raise DuplicateRegistrationError(f"Connection {connection_id} is already registered")

        connection = Connection(
            connection_id=connection_id,
            channel=channel,
            user_id=user_id,
            display_identity=display_identity,
            sequence=next(self._sequence),
        )
        self._connections[connection_id] = connection
        logger.debug(
            "Connection registered",
            extra={"connection_id": connection_id, "user_id": str(user_id) if user_id else None},
        )
        return connection

    def unregister(self, connection_id: str) -> frozenset:
        """Drop the entry and return its last-known rooms (empty if absent)."""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return frozenset()
        rooms = frozenset(connection.rooms)
        connection.rooms.clear()
        logger.debug("Connection unregistered", extra={"connection_id": connection_id})
        return rooms

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def clear(self) -> None:
        self._connections.clear()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[Connection]:
        return iter(self.connections())
