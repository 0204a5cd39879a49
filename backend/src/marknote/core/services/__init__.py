"""
Service layer interfaces and implementations.
"""

from .auth_service import AuthService
from .health_service import HealthService
from .interfaces import IAuthService, IHealthService, INoteService
from .note_service import NoteService

__all__ = [
    # Interfaces
    "IAuthService",
    "INoteService",
    "IHealthService",
    # Implementations
    "AuthService",
    "NoteService",
    "HealthService",
]
