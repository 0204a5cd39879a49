"""
Realtime co-editing.

Connections join rooms (one per note) and relay edit and cursor events to
the other members. ``CollabHub`` owns the whole in-memory state.
"""

from .hub import CollabHub
from .presence import PresenceTracker
from .registry import Connection, ConnectionRegistry
from .relay import EventRelay
from .rooms import RoomManager
from .session import CollabSession
from .transport import WebSocketChannel

__all__ = [
    "CollabHub",
    "CollabSession",
    "Connection",
    "ConnectionRegistry",
    "EventRelay",
    "PresenceTracker",
    "RoomManager",
    "WebSocketChannel",
]
