"""Authentication service implementation."""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...security import (
    blacklist_token,
    create_access_token,
    get_user_id_from_token,
    hash_password,
    verify_password,
)
from ..exceptions import AuthError
from ..logging import get_logger
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.auth import (
    LoginRequest,
    RegisterRequest,
    SessionIdentity,
    TokenResponse,
    UserResponse,
)
from .interfaces import IAuthService

logger = get_logger("services.auth")


class AuthService(IAuthService):
    """Authentication service implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.settings = get_settings()

    async def register_user(self, request: RegisterRequest) -> TokenResponse:
        """Register new user."""
        if await self.user_repo.is_email_taken(request.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists"
            )

        user = await self.user_repo.create_user(
            {
                "name": request.name,
                "email": request.email,
                "password_hash": hash_password(request.password),
                "is_active": True,
            }
        )
        logger.info("User registered", extra={"user_id": str(user.id)})
        return self._token_response(user)

    async def authenticate_user(self, request: LoginRequest) -> TokenResponse:
        """Login user and return a JWT."""
        user = await self.user_repo.get_by_email(request.email)
        if not user or not user.can_login():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
            )

        if not verify_password(request.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
            )

        return self._token_response(user)

    async def get_current_user(self, user_id: UUID) -> UserResponse:
        """Get user by ID."""
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return UserResponse.model_validate(user)

    async def logout_user(self, user_id: UUID, access_token: Optional[str]) -> bool:
        """Blacklist the access token so it stops working before it expires."""
        if not access_token:
            return False
        revoked = await blacklist_token(access_token)
        if not revoked:
            logger.warning("Token not blacklisted on logout", extra={"user_id": str(user_id)})
        return revoked

    async def verify_token(self, token: str) -> SessionIdentity:
        """Resolve a handshake token; raises ``AuthError`` if it is not usable."""
        user_id = await get_user_id_from_token(token)
        if user_id is None:
            raise AuthError("Invalid or expired token")

        user = await self.user_repo.get_by_id(user_id)
        if not user or not user.can_login():
            raise AuthError("Unknown or inactive user")

        return SessionIdentity(user_id=user.id, display_name=user.display_name)

    def _token_response(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(user.id),
            token_type="bearer",
            expires_in=self.settings.access_token_expire_minutes * 60,
            user=UserResponse.model_validate(user),
        )
