"""
Pydantic schemas for validating and documenting API requests and responses.

This package exposes the Pydantic models used across the application to
define input/output contracts for authentication, notes, realtime frames,
and common responses (pagination and error formats).
"""

from .auth import LoginRequest, RegisterRequest, SessionIdentity, TokenResponse, UserResponse
from .common import ErrorResponse, HealthCheckResponse, PaginationResponse, SuccessResponse
from .notes import NoteCreate, NoteListItem, NoteListResponse, NoteResponse, NoteUpdate
from .realtime import ClientMessage, Participant, ServerEvent, parse_client_message

__all__ = [
    # Auth schemas
    "LoginRequest",
    "TokenResponse",
    "RegisterRequest",
    "UserResponse",
    "SessionIdentity",
    # Note schemas
    "NoteCreate",
    "NoteUpdate",
    "NoteResponse",
    "NoteListItem",
    "NoteListResponse",
    # Realtime schemas
    "ClientMessage",
    "Participant",
    "ServerEvent",
    "parse_client_message",
    # Common schemas
    "PaginationResponse",
    "ErrorResponse",
    "SuccessResponse",
    "HealthCheckResponse",
]
