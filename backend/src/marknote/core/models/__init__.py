"""
Database models for MarkNote.

    - User: account with email/password authentication
    - Note: markdown note with tags and a pinned flag
"""

from .base import BaseModel
from .note import Note
from .user import User

__all__ = [
    "BaseModel",
    "User",
    "Note",
]
