"""Realtime co-editing endpoints."""

import asyncio
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings, get_settings
from ..core.exceptions import AuthError
from ..core.logging import get_logger
from ..core.repositories.note_repository import NoteRepository
from ..core.schemas.auth import SessionIdentity
from ..core.schemas.realtime import Participant
from ..core.services import AuthService
from ..database import get_session_factory
from ..middleware.auth import get_current_user_id
from ..realtime.hub import CollabHub
from ..realtime.session import CollabSession
from ..realtime.transport import CLOSE_CODE_GOING_AWAY, WebSocketChannel
from .deps import get_collab_hub

logger = get_logger("api.realtime")

router = APIRouter(prefix="/realtime", tags=["realtime"])

# 1008: policy violation, 1011: server error
CLOSE_CODE_POLICY_VIOLATION = 1008
CLOSE_CODE_INTERNAL_ERROR = 1011


class NoteLookup:
    """Join validation for a socket.

    Every lookup opens and closes its own session, so nothing is checked out
    of the pool between messages. With ``owner_id`` set only that user's
    notes count.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        owner_id: Optional[UUID] = None,
        owned_only: bool = False,
    ) -> None:
        self._session_factory = session_factory
        self._owner_id = owner_id
        self._owned_only = owned_only

    async def exists(self, note_id: str) -> bool:
        if self._owned_only and self._owner_id is None:
            return False
        async with self._session_factory() as session:
            return await NoteRepository(session).exists(note_id, owner_id=self._owner_id)


def _extract_token(ws: WebSocket) -> Optional[str]:
    # query param first, then `Authorization: Bearer x`
    token = ws.query_params.get("token")
    if token:
        return token
    auth = ws.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


async def _authenticate(
    ws: WebSocket, session_factory: async_sessionmaker, settings: Settings
) -> Union[SessionIdentity, None, bool]:
    """The verified identity, ``None`` for an allowed anonymous session, ``False`` to reject."""
    token = _extract_token(ws)
    if token is None:
        return None if not settings.realtime_require_auth else False
    try:
        async with session_factory() as session:
            return await AuthService(session).verify_token(token)
    except AuthError as exc:
        logger.info("Realtime handshake rejected", extra={"reason": str(exc)})
        return False


async def _receive_frame(ws: WebSocket, timeout: float) -> Union[str, bytes]:
    if timeout > 0:
        message = await asyncio.wait_for(ws.receive(), timeout=timeout)
    else:
        message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    return message.get("text") or message.get("bytes") or ""


async def _serve(ws: WebSocket, collab: CollabSession, settings: Settings) -> None:
    interval = settings.realtime_idle_ping_interval_seconds
    while True:
        try:
            frame = await _receive_frame(ws, interval)
        except asyncio.TimeoutError:
            if collab.missed_pings > settings.realtime_missed_ping_limit:
                logger.info(
                    "Closing idle realtime connection",
                    extra={"connection_id": collab.connection_id, "missed_pings": collab.missed_pings},
                )
                await ws.close(code=CLOSE_CODE_GOING_AWAY)
                return
            collab.record_ping_sent()
            continue
        await collab.handle_frame(frame)


@router.websocket("/ws")
async def collab_socket(
    ws: WebSocket,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    hub: CollabHub = Depends(get_collab_hub),
    settings: Settings = Depends(get_settings),
) -> None:
    """Co-editing socket; one connection may join several notes."""
    await ws.accept()
    try:
        identity = await _authenticate(ws, session_factory, settings)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Realtime handshake failed", extra={"error": str(exc)})
        await ws.close(code=CLOSE_CODE_INTERNAL_ERROR)
        return
    if identity is False:
        await ws.close(code=CLOSE_CODE_POLICY_VIOLATION)
        return

    channel = WebSocketChannel(
        ws,
        max_queue=settings.realtime_send_queue_max,
        overflow_policy=settings.realtime_overflow_policy,
    )
    connection = hub.connect(
        channel,
        user_id=identity.user_id if identity else None,
        display_identity=identity.display_name if identity else None,
    )
    channel.name = connection.connection_id
    channel.start()

    collab = CollabSession(
        hub,
        connection,
        notes=NoteLookup(
            session_factory,
            owner_id=identity.user_id if identity and settings.realtime_require_note_owner else None,
            owned_only=settings.realtime_require_note_owner,
        ),
        validate_rooms=settings.realtime_validate_rooms,
        trust_client_identity=settings.realtime_trust_client_identity,
    )
    try:
        await _serve(ws, collab, settings)
    except WebSocketDisconnect as exc:
        logger.info(
            "Realtime client disconnected",
            extra={"connection_id": connection.connection_id, "close_code": exc.code},
        )
    except Exception:
        logger.exception(
            "Realtime session failed", extra={"connection_id": connection.connection_id}
        )
    finally:
        await hub.disconnect(connection.connection_id)
        await channel.aclose()


@router.get("/rooms/{room_id}/presence", response_model=List[Participant])
async def room_presence(
    room_id: str,
    current_user_id: UUID = Depends(get_current_user_id),
    hub: CollabHub = Depends(get_collab_hub),
):
    """Connections currently editing the note."""
    return hub.presence.participants(room_id)
