"""
Authentication schemas.

API contracts for registration, login and the identity a realtime
session is bound to.
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# 8+ chars, one uppercase letter, one digit, one special char
PASSWORD_PATTERN = re.compile(r"^(?=.{8,})(?=.*[A-Z])(?=.*\d)(?=.*[!@#$%^&*])")
PASSWORD_POLICY = (
    "Password must have 8+ chars, an uppercase letter, a digit, and a special char"
)


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value


class RegisterRequest(BaseModel):
    """User registration request schema."""

    name: str = Field(min_length=1, max_length=100, description="Display name")
    email: str = Field(max_length=255, description="Email address (login)")
    password: str = Field(max_length=128, description="User password")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not PASSWORD_PATTERN.match(v):
            raise ValueError(PASSWORD_POLICY)
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Ada", "email": "ada@example.com", "password": "Secur3Pass!"}
        }
    )


class LoginRequest(BaseModel):
    """User login request schema."""

    email: str = Field(max_length=255, description="Email address")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    """User information response schema."""

    id: uuid.UUID = Field(description="User unique identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")
    created_at: Optional[datetime] = Field(default=None, description="Account creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """JWT token response schema."""

    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse = Field(description="Authenticated user")


class SessionIdentity(BaseModel):
    """Verified identity a realtime connection is bound to at handshake."""

    user_id: uuid.UUID
    display_name: str

    model_config = ConfigDict(frozen=True)
