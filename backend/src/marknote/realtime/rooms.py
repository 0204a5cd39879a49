"""
Room membership.

Rooms and connections form a many-to-many relation stored in both
directions: ``RoomManager._rooms`` maps a room to its member ids and each
``Connection.rooms`` holds the rooms of that connection. Mutations take a
single ``asyncio.Lock`` and never await while the two sides disagree, so
readers (which are synchronous and return frozen snapshots) observe either
the old or the new membership.
"""

import asyncio
from typing import Dict, List, Set

from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from .registry import ConnectionRegistry

logger = get_logger("realtime.rooms")


class RoomManager:
    """Owned by the hub; create one per app (or per test)."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._rooms: Dict[str, Set[str]] = {}
        self._lock = asyncio.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def init(self) -> None:
        self._rooms = {}
        self._running = True
        logger.info("Room manager started")

    def shutdown(self) -> None:
        dropped = len(self._rooms)
        self._rooms = {}
        # both directions of membership go together
        for connection in self._registry.connections():
            connection.rooms.clear()
        self._running = False
        logger.info("Room manager stopped", extra={"dropped_rooms": dropped})

    async def join(self, connection_id: str, room_id: str) -> bool:
        """Add a membership; ``False`` when it already existed."""
        async with self._lock:
            connection = self._registry.get(connection_id)
            if connection is None:
                raise NotFoundError(f"Connection {connection_id} is not registered")
            if room_id in connection.rooms:
                return False
            self._rooms.setdefault(room_id, set()).add(connection_id)
            connection.rooms.add(room_id)

        logger.debug("Joined room", extra={"connection_id": connection_id, "room_id": room_id})
        return True

    async def leave(self, connection_id: str, room_id: str) -> bool:
        """Remove a membership; ``False`` if there was none."""
        async with self._lock:
            connection = self._registry.get(connection_id)
            if connection is None or room_id not in connection.rooms:
                return False
            connection.rooms.discard(room_id)
            self._discard_member(room_id, connection_id)

        logger.debug("Left room", extra={"connection_id": connection_id, "room_id": room_id})
        return True

    async def remove_connection(self, connection_id: str) -> frozenset:
        """Unregister the connection and drop it from every room it was in.

        Returns the affected rooms the first time and an empty set on any
        later call.
        """
        async with self._lock:
            rooms = self._registry.unregister(connection_id)
            for room_id in rooms:
                self._discard_member(room_id, connection_id)

        if rooms:
            logger.debug(
                "Connection removed from rooms",
                extra={"connection_id": connection_id, "rooms": sorted(rooms)},
            )
        return rooms

    def _discard_member(self, room_id: str, connection_id: str) -> None:
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_id]

    def members_of(self, room_id: str) -> frozenset:
        return frozenset(self._rooms.get(room_id, ()))

    def rooms_of(self, connection_id: str) -> frozenset:
        connection = self._registry.get(connection_id)
        if connection is None:
            return frozenset()
        return frozenset(connection.rooms)

    def is_member(self, connection_id: str, room_id: str) -> bool:
        return connection_id in self._rooms.get(room_id, ())

    def occupied_rooms(self) -> List[str]:
        return sorted(self._rooms)

    def __len__(self) -> int:
        return len(self._rooms)
