"""
Per-connection message dispatch.

One ``CollabSession`` wraps one registered connection. Every inbound frame is
parsed into the ``ClientMessage`` union and routed through ``dispatch``,
which has exactly one branch per message kind.
"""

import asyncio
from typing import Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..core.schemas.realtime import (
    ClientMessage,
    CursorMove,
    EditNote,
    JoinNote,
    LeaveNote,
    Ping,
    Pong,
    parse_client_message,
)
from . import events
from .hub import CollabHub
from .ports import NoteExistence
from .registry import Connection

logger = get_logger("realtime.session")

_MALFORMED_ERRORS = {"json_invalid", "json_type", "model_attributes_type"}
_UNKNOWN_TYPE_ERRORS = {"union_tag_invalid", "union_tag_not_found"}


class CollabSession:
    def __init__(
        self,
        hub: CollabHub,
        connection: Connection,
        *,
        notes: Optional[NoteExistence] = None,
        validate_rooms: bool = True,
        trust_client_identity: bool = False,
    ) -> None:
        self.hub = hub
        self.connection = connection
        self._notes = notes
        self._validate_rooms = validate_rooms and notes is not None
        self._trust_client_identity = trust_client_identity
        self.missed_pings = 0

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    async def handle_frame(self, raw: Union[str, bytes]) -> None:
        """Parse and dispatch one frame; bad input is answered, not raised."""
        self.missed_pings = 0
        try:
            message = parse_client_message(raw)
        except ValidationError as exc:
            self._reply_invalid(exc)
            return
        await self.dispatch(message)

    async def dispatch(self, message: ClientMessage) -> None:
        if isinstance(message, JoinNote):
            await self._join(message)
        elif isinstance(message, LeaveNote):
            await self.hub.presence.leave(self.connection_id, message.room_id)
        elif isinstance(message, EditNote):
            self._edit(message)
        elif isinstance(message, CursorMove):
            self._move_cursor(message)
        elif isinstance(message, Ping):
            self._send(events.pong())
        elif isinstance(message, Pong):
            pass
        else:  # pragma: no cover - the union is closed
            self._send(events.error("unknown_type", f"Unsupported message {message!r}"))

    def record_ping_sent(self) -> int:
        """Send a heartbeat ping and return the number still unanswered."""
        self.missed_pings += 1
        self._send(events.ping())
        return self.missed_pings

    async def _join(self, message: JoinNote) -> None:
        room_id = message.room_id
        # existence is the only gate unless the lookup is owner-scoped
        # (realtime_require_note_owner)
        try:
            allowed = not self._validate_rooms or await self._notes.exists(room_id)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Join validation unavailable",
                extra={"connection_id": self.connection_id, "room_id": room_id, "error": str(exc)},
            )
            self._send(events.join_rejected(room_id, "validation_unavailable"))
            return
        if not allowed:
            logger.info(
                "Join rejected for unknown note",
                extra={"connection_id": self.connection_id, "room_id": room_id},
            )
            self._send(events.join_rejected(room_id, "note_not_found"))
            return

        identity = self._client_identity(message.display_identity)
        if identity:
            self.connection.display_identity = identity

        try:
            await self.hub.presence.join(self.connection_id, room_id)
        except NotFoundError:
            self._send(events.join_rejected(room_id, "connection_closed"))
            return

        participants = self.hub.presence.participants(room_id)
        self._send(events.joined(room_id, self.connection, participants))

    def _edit(self, message: EditNote) -> None:
        if not self._require_membership(message.room_id):
            return
        self.hub.relay.publish(
            self.connection_id,
            message.room_id,
            events.note_edited(
                message.room_id,
                self.connection,
                message.content,
                cursor_position=message.cursor_position,
                display_identity=self._client_identity(message.display_identity),
            ),
        )

    def _move_cursor(self, message: CursorMove) -> None:
        if not self._require_membership(message.room_id):
            return
        self.hub.relay.publish(
            self.connection_id,
            message.room_id,
            events.cursor_moved(
                message.room_id,
                self.connection,
                message.cursor_position,
                display_identity=self._client_identity(message.display_identity),
            ),
        )

    def _require_membership(self, room_id: str) -> bool:
        if self.hub.rooms.is_member(self.connection_id, room_id):
            return True
        self._send(events.error("not_in_room", "Join the note before sending events", room_id))
        return False

    def _client_identity(self, requested: Optional[str]) -> Optional[str]:
        """Client-supplied names only count for anonymous or trusted sessions."""
        if not requested:
            return None
        if self._trust_client_identity or self.connection.user_id is None:
            return requested
        return None

    def _reply_invalid(self, exc: ValidationError) -> None:
        error_types = {error["type"] for error in exc.errors()}
        if error_types & _MALFORMED_ERRORS:
            code, text = "malformed_frame", "Frame is not a JSON object"
        elif error_types & _UNKNOWN_TYPE_ERRORS:
            code, text = "unknown_type", "Unknown or missing message type"
        else:
            code, text = "invalid_message", "Message failed validation"
        logger.debug(
            "Rejected client frame",
            extra={"connection_id": self.connection_id, "code": code},
        )
        self._send(events.error(code, text))

    def _send(self, event) -> None:
        self.hub.relay.send_to(self.connection_id, event)
