"""AuthService against SQLite with an in-memory Redis stand-in."""

import uuid

import pytest
from fastapi import HTTPException

from marknote.core.exceptions import AuthError
from marknote.core.schemas.auth import LoginRequest, RegisterRequest
from marknote.core.services.auth_service import AuthService
from marknote.security.jwt import create_access_token, decode_access_token


@pytest.mark.asyncio
async def test_register_returns_token_for_new_user(test_session, mock_redis):
    service = AuthService(test_session)

    resp = await service.register_user(
        RegisterRequest(name="Ada", email="Ada@Example.com", password="Secret123!")
    )

    assert resp.token_type == "bearer"
    assert resp.user.email == "ada@example.com"
    payload = await decode_access_token(resp.access_token)
    assert payload["sub"] == str(resp.user.id)


@pytest.mark.asyncio
async def test_register_duplicate_email(test_session, test_user, test_user_data, mock_redis):
    service = AuthService(test_session)

    with pytest.raises(HTTPException) as exc:
        await service.register_user(
            RegisterRequest(name="Other", email=test_user_data["email"].upper(), password="Secret123!")
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_login(test_session, test_user, test_user_data, mock_redis):
    service = AuthService(test_session)

    resp = await service.authenticate_user(
        LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
    )
    assert resp.user.id == test_user.id

    with pytest.raises(HTTPException) as exc:
        await service.authenticate_user(
            LoginRequest(email=test_user_data["email"], password="WrongPassword1!")
        )
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(test_session, test_user, test_user_data, mock_redis):
    test_user.is_active = False
    await test_session.commit()
    service = AuthService(test_session)

    with pytest.raises(HTTPException) as exc:
        await service.authenticate_user(
            LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
        )
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(test_session, test_user):
    service = AuthService(test_session)

    assert (await service.get_current_user(test_user.id)).email == test_user.email
    with pytest.raises(HTTPException) as exc:
        await service.get_current_user(uuid.uuid4())
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_verify_token_resolves_session_identity(test_session, test_user, mock_redis):
    service = AuthService(test_session)

    identity = await service.verify_token(create_access_token(test_user.id))

    assert identity.user_id == test_user.id
    assert identity.display_name == test_user.name


@pytest.mark.asyncio
async def test_verify_token_rejects_bad_tokens(test_session, mock_redis):
    service = AuthService(test_session)

    with pytest.raises(AuthError):
        await service.verify_token("not-a-jwt")
    with pytest.raises(AuthError):
        await service.verify_token(create_access_token(uuid.uuid4()))


@pytest.mark.asyncio
async def test_logout_blacklists_token(test_session, test_user, mock_redis):
    service = AuthService(test_session)
    token = create_access_token(test_user.id)

    assert await service.logout_user(test_user.id, token) is True
    assert await decode_access_token(token) is None
    with pytest.raises(AuthError):
        await service.verify_token(token)


@pytest.mark.asyncio
async def test_logout_without_token(test_session, test_user):
    service = AuthService(test_session)
    assert await service.logout_user(test_user.id, None) is False
