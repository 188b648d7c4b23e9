# tests/services/test_friends.py
"""Tests for the symmetric friendship graph."""

import pytest
from sqlalchemy import func, select

from secure_whisper.core.errors import NotFoundError, ValidationError
from secure_whisper.models import FriendEdge
from secure_whisper.services.friends import FriendshipService


@pytest.fixture()
def friendships(storage) -> FriendshipService:
    return FriendshipService(storage)


def _edge_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(FriendEdge))


def test_add_friend_creates_both_directions(friendships, alice, bob):
    friend = friendships.add_friend(alice["id"], "bob")

    assert (friend.id, friend.username) == (bob["id"], "bob")
    assert [f.username for f in friendships.list_friends(alice["id"])] == ["bob"]
    assert [f.username for f in friendships.list_friends(bob["id"])] == ["alice"]


def test_add_friend_is_idempotent(friendships, alice, bob, db_session):
    friendships.add_friend(alice["id"], "bob")
    friendships.add_friend(alice["id"], "bob")
    friendships.add_friend(bob["id"], "alice")

    assert _edge_count(db_session) == 2
    assert len(friendships.list_friends(alice["id"])) == 1


def test_add_friend_by_email(friendships, alice, bob):
    friend = friendships.add_friend(bob["id"], "alice@example.com")
    assert friend.id == alice["id"]


def test_unknown_user_not_found(friendships, alice):
    with pytest.raises(NotFoundError):
        friendships.add_friend(alice["id"], "nobody")


def test_cannot_befriend_yourself(friendships, alice, db_session):
    with pytest.raises(ValidationError):
        friendships.add_friend(alice["id"], "alice")
    assert _edge_count(db_session) == 0


def test_blank_identifier_rejected(friendships, alice):
    with pytest.raises(ValidationError):
        friendships.add_friend(alice["id"], "   ")


def test_friends_listed_by_username(friendships, alice, bob, carol):
    friendships.add_friend(alice["id"], "carol")
    friendships.add_friend(alice["id"], "bob")

    assert [f.username for f in friendships.list_friends(alice["id"])] == ["bob", "carol"]
    assert friendships.list_friends(carol["id"])[0].id == alice["id"]


def test_concurrent_insert_is_treated_as_existing(storage, alice, bob, mocker):
    """A unique-constraint race on the edge pair is not an error."""
    mocker.patch.object(storage, "_missing_edges", return_value=[(alice["id"], bob["id"])])
    assert storage.insert_friend_edge(alice["id"], bob["id"]) is True
    assert storage.insert_friend_edge(alice["id"], bob["id"]) is False
