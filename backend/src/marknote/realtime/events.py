"""Builders for the server frames the realtime layer emits."""

from typing import List, Optional

from ..core.schemas.realtime import Participant, ServerEvent
from .registry import Connection


def _room_event(type_: str, room_id: str, origin: Connection, **fields) -> ServerEvent:
    return ServerEvent(
        type=type_,
        room_id=room_id,
        connection_id=origin.connection_id,
        display_identity=fields.pop("display_identity", None) or origin.label,
        **fields,
    )


def user_joined(room_id: str, origin: Connection) -> ServerEvent:
    return _room_event("user_joined", room_id, origin)


def user_left(room_id: str, origin: Connection) -> ServerEvent:
    return _room_event("user_left", room_id, origin)


def note_edited(
    room_id: str,
    origin: Connection,
    content: str,
    cursor_position: Optional[int] = None,
    display_identity: Optional[str] = None,
) -> ServerEvent:
    return _room_event(
        "note_edited",
        room_id,
        origin,
        content=content,
        cursor_position=cursor_position,
        display_identity=display_identity,
    )


def cursor_moved(
    room_id: str,
    origin: Connection,
    cursor_position: int,
    display_identity: Optional[str] = None,
) -> ServerEvent:
    return _room_event(
        "cursor_moved",
        room_id,
        origin,
        cursor_position=cursor_position,
        display_identity=display_identity,
    )


def joined(room_id: str, origin: Connection, participants: List[Participant]) -> ServerEvent:
    return _room_event("joined", room_id, origin, participants=participants)


def join_rejected(room_id: str, reason: str) -> ServerEvent:
    return ServerEvent(type="join_rejected", room_id=room_id, reason=reason)


def error(code: str, message: str, room_id: Optional[str] = None) -> ServerEvent:
    return ServerEvent(type="error", code=code, message=message, room_id=room_id)


def ping() -> ServerEvent:
    return ServerEvent(type="ping")


def pong() -> ServerEvent:
    return ServerEvent(type="pong")
