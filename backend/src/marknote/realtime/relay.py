"""
Room fan-out.

``publish`` never suspends: it snapshots the room, serializes the event once
and enqueues it on every recipient's channel before returning. Each channel
is drained by its own writer task, which gives per-sender, per-room FIFO
order without a slow recipient holding up anyone else.
"""

from typing import Optional

from ..core.exceptions import TransportError
from ..core.logging import get_logger
from ..core.schemas.realtime import ServerEvent
from .registry import ConnectionRegistry
from .rooms import RoomManager

logger = get_logger("realtime.relay")


class EventRelay:
    def __init__(self, registry: ConnectionRegistry, rooms: RoomManager) -> None:
        self._registry = registry
        self._rooms = rooms
        self.delivered = 0
        self.failed = 0

    def publish(self, sender_connection_id: Optional[str], room_id: str, event: ServerEvent) -> int:
        """Deliver ``event`` to everyone in the room except the sender.

        Returns how many recipients accepted it. Recipient failures are
        logged and never raised.
        """
        recipients = self._rooms.members_of(room_id) - {sender_connection_id}
        if not recipients:
            logger.debug(
                "No recipients for room event",
                extra={"room_id": room_id, "event_type": event.type},
            )
            return 0

        payload = event.to_payload()
        accepted = 0
        for connection_id in recipients:
            if self._deliver(connection_id, payload):
                accepted += 1
        return accepted

    def send_to(self, connection_id: str, event: ServerEvent) -> bool:
        """Direct delivery to a single connection."""
        return self._deliver(connection_id, event.to_payload())

    def _deliver(self, connection_id: str, payload: dict) -> bool:
        connection = self._registry.get(connection_id)
        if connection is None:
            return False
        try:
            connection.channel.deliver(payload)
        except TransportError as exc:
            self.failed += 1
            logger.warning(
                "Event delivery failed",
                extra={
                    "connection_id": connection_id,
                    "event_type": payload.get("type"),
                    "error": str(exc),
                },
            )
            return False
        self.delivered += 1
        return True
