"""
Composition root for the realtime layer.

The application lifespan creates one ``CollabHub`` and stores it on
``app.state.collab_hub``; handlers receive it by dependency injection.
"""

import uuid
from typing import Any, Dict, Optional

from ..core.logging import get_logger
from .ports import OutboundChannel
from .presence import PresenceTracker
from .registry import Connection, ConnectionRegistry, new_connection_id
from .relay import EventRelay
from .rooms import RoomManager

logger = get_logger("realtime.hub")


class CollabHub:
    def __init__(self) -> None:
        self.registry = ConnectionRegistry()
        self.rooms = RoomManager(self.registry)
        self.relay = EventRelay(self.registry, self.rooms)
        self.presence = PresenceTracker(self.registry, self.rooms, self.relay)

    @property
    def running(self) -> bool:
        return self.rooms.running

    def init(self) -> None:
        self.rooms.init()
        logger.info("Collaboration hub started")

    async def shutdown(self) -> None:
        connections = self.registry.connections()
        for connection in connections:
            try:
                await connection.channel.aclose(code=1001)
            except Exception as exc:
                logger.warning(
                    "Failed to close realtime channel",
                    extra={"connection_id": connection.connection_id, "error": str(exc)},
                )
        self.rooms.shutdown()
        self.registry.clear()
        logger.info("Collaboration hub stopped", extra={"closed_connections": len(connections)})

    def connect(
        self,
        channel: OutboundChannel,
        *,
        user_id: Optional[uuid.UUID] = None,
        display_identity: Optional[str] = None,
        connection_id: Optional[str] = None,
    ) -> Connection:
        connection = self.registry.register(
            connection_id or new_connection_id(),
            channel=channel,
            user_id=user_id,
            display_identity=display_identity,
        )
        logger.info(
            "Realtime connection opened",
            extra={
                "connection_id": connection.connection_id,
                "user_id": str(user_id) if user_id else None,
            },
        )
        return connection

    async def disconnect(self, connection_id: str) -> frozenset:
        """Idempotent teardown; notifications fire on the first call only."""
        known = connection_id in self.registry
        rooms = await self.presence.disconnect(connection_id)
        if known:
            logger.info(
                "Realtime connection closed",
                extra={"connection_id": connection_id, "rooms": sorted(rooms)},
            )
        return rooms

    def stats(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "connections": len(self.registry),
            "rooms": len(self.rooms),
            "events_delivered": self.relay.delivered,
            "events_failed": self.relay.failed,
        }
