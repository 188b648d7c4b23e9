# src/secure_whisper/api/endpoints/friends.py
"""Friendship endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from secure_whisper.api.dependencies import CurrentIdentityDep, FriendshipServiceDep
from secure_whisper.schemas.friend import (
    AddFriendRequest,
    FriendListResponse,
    FriendResponse,
    FriendSummary,
)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("/add", response_model=FriendResponse)
async def add_friend(
    payload: AddFriendRequest,
    identity: CurrentIdentityDep,
    friendships: FriendshipServiceDep,
) -> FriendResponse:
    """Befriend a user by username or email; repeating the call is harmless."""
    friend = friendships.add_friend(identity.id, payload.target)
    return FriendResponse(friend=FriendSummary.model_validate(friend))


@router.get("", response_model=FriendListResponse)
async def list_friends(
    identity: CurrentIdentityDep,
    friendships: FriendshipServiceDep,
) -> FriendListResponse:
    """List the caller's friends."""
    friends = friendships.list_friends(identity.id)
    return FriendListResponse(friends=[FriendSummary.model_validate(f) for f in friends])
