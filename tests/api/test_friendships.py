# tests/api/test_friendships.py
"""Tests for friendship endpoints."""

from fastapi import status


def test_add_and_list_friends(client, alice, bob):
    response = client.post("/api/friends/add", json={"identifier": "bob"}, headers=alice["headers"])
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"friend": {"id": bob["id"], "username": "bob"}}

    mine = client.get("/api/friends", headers=alice["headers"]).json()
    theirs = client.get("/api/friends", headers=bob["headers"]).json()
    assert mine == {"friends": [{"id": bob["id"], "username": "bob"}]}
    assert theirs == {"friends": [{"id": alice["id"], "username": "alice"}]}


def test_add_friend_accepts_username_field(client, alice, bob):
    response = client.post("/api/friends/add", json={"username": "bob"}, headers=alice["headers"])
    assert response.status_code == status.HTTP_200_OK


def test_add_friend_by_email(client, alice, bob):
    response = client.post(
        "/api/friends/add", json={"identifier": "bob@example.com"}, headers=alice["headers"]
    )
    assert response.json()["friend"]["username"] == "bob"


def test_add_friend_twice_is_harmless(client, alice, bob):
    for _ in range(2):
        response = client.post("/api/friends/add", json={"identifier": "bob"}, headers=alice["headers"])
        assert response.status_code == status.HTTP_200_OK

    assert len(client.get("/api/friends", headers=alice["headers"]).json()["friends"]) == 1


def test_add_unknown_user(client, alice):
    response = client.post("/api/friends/add", json={"identifier": "ghost"}, headers=alice["headers"])
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "User not found"}


def test_add_self(client, alice):
    response = client.post("/api/friends/add", json={"identifier": "alice"}, headers=alice["headers"])
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Cannot add yourself"}


def test_add_without_identifier(client, alice):
    response = client.post("/api/friends/add", json={}, headers=alice["headers"])
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_friends_require_auth(client):
    assert client.get("/api/friends").status_code == status.HTTP_401_UNAUTHORIZED
    assert client.post("/api/friends/add", json={"identifier": "bob"}).status_code == status.HTTP_401_UNAUTHORIZED


def test_empty_friend_list(client, carol):
    assert client.get("/api/friends", headers=carol["headers"]).json() == {"friends": []}
