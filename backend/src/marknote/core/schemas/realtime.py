"""
Realtime co-editing wire schemas.

Client frames are parsed into a tagged union keyed on ``type``; every server
frame is a single ``ServerEvent`` envelope serialized with camelCase keys.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

ROOM_ID_MAX_LENGTH = 200
DISPLAY_IDENTITY_MAX_LENGTH = 100


def utc_now_z() -> str:
    """Current UTC time as ISO-8601 with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


RoomId = Annotated[str, Field(min_length=1, max_length=ROOM_ID_MAX_LENGTH)]
DisplayIdentity = Annotated[str, Field(min_length=1, max_length=DISPLAY_IDENTITY_MAX_LENGTH)]
CursorPosition = Annotated[int, Field(ge=0)]


# Client -> server


class JoinNote(CamelModel):
    type: Literal["join_note"]
    room_id: RoomId
    display_identity: Optional[DisplayIdentity] = None


class LeaveNote(CamelModel):
    type: Literal["leave_note"]
    room_id: RoomId


class EditNote(CamelModel):
    type: Literal["edit_note"]
    room_id: RoomId
    content: str
    cursor_position: Optional[CursorPosition] = None
    display_identity: Optional[DisplayIdentity] = None


class CursorMove(CamelModel):
    type: Literal["cursor_move"]
    room_id: RoomId
    cursor_position: CursorPosition
    display_identity: Optional[DisplayIdentity] = None


class Ping(CamelModel):
    type: Literal["ping"]


class Pong(CamelModel):
    type: Literal["pong"]


ClientMessage = Annotated[
    Union[JoinNote, LeaveNote, EditNote, CursorMove, Ping, Pong],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(raw: Union[str, bytes]) -> ClientMessage:
    """Parse one inbound frame; raises ``pydantic.ValidationError``."""
    return client_message_adapter.validate_json(raw)


# Server -> client


class Participant(CamelModel):
    """One connection present in a room."""

    connection_id: str
    display_identity: str
    user_id: Optional[uuid.UUID] = None


ServerEventType = Literal[
    "user_joined",
    "user_left",
    "note_edited",
    "cursor_moved",
    "joined",
    "join_rejected",
    "error",
    "ping",
    "pong",
]


class ServerEvent(CamelModel):
    """Envelope for every frame the server sends."""

    type: ServerEventType
    ts: str = Field(default_factory=utc_now_z)
    room_id: Optional[str] = None
    connection_id: Optional[str] = None
    display_identity: Optional[str] = None
    content: Optional[str] = None
    cursor_position: Optional[int] = None
    participants: Optional[List[Participant]] = None
    reason: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
