# tests/test_integration.py
"""End-to-end flow across registration, friendship, messaging and live delivery."""

from fastapi import status

from secure_whisper.services.chat_id import chat_id


def _register(client, username: str, email: str) -> dict:
    response = client.post(
        "/api/register", json={"username": username, "email": email, "password": f"pw-{username}"}
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    return {"id": body["user"]["id"], "headers": {"Authorization": f"Bearer {body['token']}"}}


def test_two_users_chat_end_to_end(client):
    alice = _register(client, "alice", "alice@example.com")
    bob = _register(client, "bob", "bob@example.com")

    added = client.post("/api/friends/add", json={"identifier": "bob"}, headers=alice["headers"])
    assert added.status_code == status.HTTP_200_OK
    bobs_friends = client.get("/api/friends", headers=bob["headers"]).json()["friends"]
    assert [f["username"] for f in bobs_friends] == ["alice"]

    login = client.post("/api/login", json={"usernameOrEmail": "bob@example.com", "password": "pw-bob"})
    bob_token = login.json()["token"]
    chat = chat_id(alice["id"], bob["id"])

    with client.websocket_connect(f"/ws?token={bob_token}") as ws:
        ws.send_json({"type": "subscribe", "chatId": chat})
        assert ws.receive_json() == {"type": "subscribed", "chatId": chat}

        sent = client.post(
            "/api/messages", json={"chatId": chat, "content": "hello bob"}, headers=alice["headers"]
        ).json()["message"]

        live = ws.receive_json()
        assert live == {"type": "message", "message": sent}

    history = client.get("/api/messages", params={"chatId": chat}, headers=bob["headers"]).json()
    assert history["messages"] == [sent]
    assert sent["sender_id"] == alice["id"]

    cleared = client.request("DELETE", "/api/messages/clear", json={"chatId": chat}, headers=bob["headers"])
    assert cleared.json() == {"deleted": 1}

    client.post("/api/logout", headers=alice["headers"])
    assert client.get("/api/me", headers=alice["headers"]).status_code == status.HTTP_401_UNAUTHORIZED
