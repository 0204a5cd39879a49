"""
Outbound WebSocket transport.

Each socket gets a bounded queue and one sender task. ``deliver`` only
enqueues; when the queue is full the configured overflow policy decides
what gives. A failed send closes the channel and discards whatever is still
queued.
"""

import asyncio
from typing import Any, Optional

from starlette.websockets import WebSocket, WebSocketState

from ..core.exceptions import TransportError
from ..core.logging import get_logger
from .ports import OutboundChannel

logger = get_logger("realtime.transport")

OVERFLOW_POLICIES = frozenset({"drop_oldest", "drop_new", "disconnect"})

# 1013: try again later
CLOSE_CODE_OVERLOADED = 1013
CLOSE_CODE_GOING_AWAY = 1001


def normalize_overflow_policy(policy: Optional[str]) -> str:
    normalized = (policy or "drop_oldest").strip().lower()
    if normalized not in OVERFLOW_POLICIES:
        logger.warning(
            "Unknown overflow policy, using drop_oldest", extra={"policy": normalized}
        )
        return "drop_oldest"
    return normalized


class WebSocketChannel:
    """``OutboundChannel`` backed by a Starlette ``WebSocket``."""

    def __init__(
        self,
        websocket: WebSocket,
        *,
        max_queue: int = 256,
        overflow_policy: str = "drop_oldest",
        name: str = "",
    ) -> None:
        self._websocket = websocket
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, max_queue))
        self._policy = normalize_overflow_policy(overflow_policy)
        self.name = name
        self._closed = False
        self._sender: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._sender is None:
            self._sender = asyncio.create_task(self._sender_loop())

    def deliver(self, payload: dict[str, Any]) -> None:
        if self._closed:
            raise TransportError(f"Channel {self.name} is closed")

        try:
            self._queue.put_nowait(payload)
            return
        except asyncio.QueueFull:
            pass

        self.dropped += 1
        if self._policy == "drop_new":
            raise TransportError(f"Send buffer full for {self.name}")

        if self._policy == "disconnect":
            self._mark_closed()
            self._close_task = asyncio.create_task(self._close_socket(CLOSE_CODE_OVERLOADED))
            raise TransportError(f"Send buffer full for {self.name}, disconnecting")

        # drop_oldest
        self._queue.get_nowait()
        self._queue.put_nowait(payload)
        logger.debug("Dropped oldest queued event", extra={"channel": self.name})

    async def aclose(self, code: Optional[int] = None) -> None:
        """Stop the sender and, if ``code`` is given, close the socket."""
        self._mark_closed()
        sender, self._sender = self._sender, None
        if sender is not None and sender is not asyncio.current_task():
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
        if code is not None:
            await self._close_socket(code)

    def _mark_closed(self) -> None:
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def _close_socket(self, code: int) -> None:
        ws = self._websocket
        if (
            ws.client_state != WebSocketState.CONNECTED
            or ws.application_state != WebSocketState.CONNECTED
        ):
            return
        try:
            await ws.close(code=code)
        except (RuntimeError, OSError) as exc:
            logger.debug("Socket already closed", extra={"channel": self.name, "error": str(exc)})

    async def _sender_loop(self) -> None:
        while not self._closed:
            payload = await self._queue.get()
            try:
                await self._websocket.send_json(payload)
            except Exception as exc:
                logger.warning(
                    "WebSocket send failed, closing channel",
                    extra={"channel": self.name, "error": str(exc)},
                )
                self._mark_closed()
                return


__all__ = [
    "OutboundChannel",
    "WebSocketChannel",
    "OVERFLOW_POLICIES",
    "CLOSE_CODE_GOING_AWAY",
    "CLOSE_CODE_OVERLOADED",
    "normalize_overflow_policy",
]
