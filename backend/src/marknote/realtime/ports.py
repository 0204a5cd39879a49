"""
Collaborator contracts consumed by the realtime layer.

The realtime core only depends on these protocols; the HTTP layer wires in
the SQLAlchemy repository and the auth service.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from ..core.schemas.auth import SessionIdentity


class NoteExistence(Protocol):
    """Validation hook used to reject joins to notes that do not exist."""

    async def exists(self, note_id: str) -> bool: ...


class TokenVerifier(Protocol):
    """Resolves a handshake token to the identity the session is bound to."""

    async def verify_token(self, token: str) -> SessionIdentity: ...


@runtime_checkable
class OutboundChannel(Protocol):
    """Per-connection outbound transport.

    ``deliver`` must not suspend: it only enqueues, and raises
    ``TransportError`` when the payload cannot be accepted.
    """

    @property
    def closed(self) -> bool: ...

    def deliver(self, payload: dict[str, Any]) -> None: ...

    async def aclose(self, code: Optional[int] = None) -> None: ...


__all__ = ["NoteExistence", "TokenVerifier", "OutboundChannel"]
