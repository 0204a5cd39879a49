"""Join/leave bookkeeping and the notifications that go with it."""

from typing import List

from ..core.logging import get_logger
from ..core.schemas.realtime import Participant
from . import events
from .registry import ConnectionRegistry
from .relay import EventRelay
from .rooms import RoomManager

logger = get_logger("realtime.presence")


class PresenceTracker:
    def __init__(self, registry: ConnectionRegistry, rooms: RoomManager, relay: EventRelay) -> None:
        self._registry = registry
        self._rooms = rooms
        self._relay = relay

    async def join(self, connection_id: str, room_id: str) -> bool:
        """Join and announce; repeated joins are silent."""
        added = await self._rooms.join(connection_id, room_id)
        if not added:
            return False
        connection = self._registry.get(connection_id)
        if connection is not None:
            self._relay.publish(connection_id, room_id, events.user_joined(room_id, connection))
        logger.info("User joined note", extra={"connection_id": connection_id, "room_id": room_id})
        return True

    async def leave(self, connection_id: str, room_id: str) -> bool:
        connection = self._registry.get(connection_id)
        removed = await self._rooms.leave(connection_id, room_id)
        if not removed:
            return False
        if connection is not None:
            self._relay.publish(connection_id, room_id, events.user_left(room_id, connection))
        logger.info("User left note", extra={"connection_id": connection_id, "room_id": room_id})
        return True

    async def disconnect(self, connection_id: str) -> frozenset:
        """Remove the connection everywhere; one ``user_left`` per affected room."""
        connection = self._registry.get(connection_id)
        rooms = await self._rooms.remove_connection(connection_id)
        if connection is None or not rooms:
            return rooms

        for room_id in sorted(rooms):
            self._relay.publish(connection_id, room_id, events.user_left(room_id, connection))
        logger.info(
            "Connection left all notes",
            extra={"connection_id": connection_id, "rooms": sorted(rooms)},
        )
        return rooms

    def participants(self, room_id: str) -> List[Participant]:
        """Who is in the room, in connection order."""
        connections = [
            connection
            for connection in map(self._registry.get, self._rooms.members_of(room_id))
            if connection is not None
        ]
        connections.sort(key=lambda connection: connection.sequence)
        return [
            Participant(
                connection_id=connection.connection_id,
                display_identity=connection.label,
                user_id=connection.user_id,
            )
            for connection in connections
        ]
