"""Shared FastAPI dependencies."""

from typing import Optional

from starlette.requests import HTTPConnection

from ..realtime.hub import CollabHub


def get_optional_collab_hub(conn: HTTPConnection) -> Optional[CollabHub]:
    return getattr(conn.app.state, "collab_hub", None)


def get_collab_hub(conn: HTTPConnection) -> CollabHub:
    """The hub the lifespan stored on ``app.state``."""
    hub = get_optional_collab_hub(conn)
    if hub is None:
        raise RuntimeError("Collaboration hub not initialized; is the app lifespan running?")
    return hub
