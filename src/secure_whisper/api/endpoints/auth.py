# src/secure_whisper/api/endpoints/auth.py
"""Authentication endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, status

from secure_whisper.api.dependencies import CurrentIdentityDep, IdentityServiceDep, SessionTokensDep
from secure_whisper.schemas.user import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserOut,
)
from secure_whisper.services.identity import public_user

router = APIRouter(tags=["authentication"])


@router.post(
    "/register",
    summary="Register a new account",
    status_code=status.HTTP_200_OK,
    response_model=AuthResponse,
)
async def register_user(payload: RegisterRequest, identity_service: IdentityServiceDep) -> AuthResponse:
    """Create an account and return it with a session token."""
    # bcrypt is CPU bound; keep it off the event loop that serves live delivery.
    user, token = await asyncio.to_thread(
        identity_service.register, payload.username, payload.email, payload.password
    )
    return AuthResponse(user=UserOut(**public_user(user)), token=token)


@router.post(
    "/login",
    summary="Authenticate with username or email",
    status_code=status.HTTP_200_OK,
    response_model=AuthResponse,
)
async def login_user(payload: LoginRequest, identity_service: IdentityServiceDep) -> AuthResponse:
    """Exchange credentials for a session token."""
    user, token = await asyncio.to_thread(identity_service.login, payload.identifier, payload.password)
    return AuthResponse(user=UserOut(**public_user(user)), token=token)


@router.post("/logout", summary="Revoke the current session token")
async def logout_user(
    identity: CurrentIdentityDep,
    tokens: SessionTokensDep,
) -> dict[str, str]:
    """Reject the presented token from now until it would have expired."""
    tokens.revoke(identity)
    return {"status": "logged_out"}


@router.get("/me", summary="Return the authenticated user", response_model=MeResponse)
async def read_me(identity: CurrentIdentityDep) -> MeResponse:
    """Return the identity asserted by the caller's token."""
    return MeResponse(user=UserOut(**identity.public()))
