"""
Tests for user endpoints.
"""
from parley.models.chat import Chat
from parley.models.friend import FriendRelationship
from parley.models.group import Group
from parley.models.user import User, UserRole
from conftest import auth_headers, befriend

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_get_me_and_by_id(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")

    response = client.get("/api/v1/users/me", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["username"] == "alice"
    assert response.json()["role"] == "member"

    response = client.get(f"/api/v1/users/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["email"] == bob.email

    assert client.get("/api/v1/users/123", headers=auth_headers(alice)).status_code == 400
    assert client.get(f"/api/v1/users/{'c' * 24}", headers=auth_headers(alice)).status_code == 404


def test_update_profile(client, make_user):
    alice = make_user("alice")
    make_user("bob")

    response = client.patch(
        "/api/v1/users",
        data={"username": "alicia", "bio": "Hello there"},
        headers=auth_headers(alice)
    )
    assert response.status_code == 200
    assert response.json()["username"] == "alicia"
    assert response.json()["bio"] == "Hello there"

    response = client.patch("/api/v1/users", data={"username": "bob"}, headers=auth_headers(alice))
    assert response.status_code == 409


def test_update_avatar(client, make_user, storage):
    alice = make_user("alice")

    response = client.patch(
        "/api/v1/users",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=auth_headers(alice)
    )
    assert response.status_code == 200
    avatar = response.json()["avatar"]
    assert avatar.startswith(f"/static/img/{alice.id}/")
    assert avatar.endswith(".png")

    response = client.patch(
        "/api/v1/users",
        files={"avatar": ("notes.txt", b"plain text", "text/plain")},
        headers=auth_headers(alice)
    )
    assert response.status_code == 400


def test_online_status(client, make_user):
    alice = make_user("alice")

    response = client.patch("/api/v1/users/status", json={"online": False}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["last_seen"] is not None
    assert response.json()["is_online"] is False

    response = client.patch("/api/v1/users/status", json={"online": True}, headers=auth_headers(alice))
    assert response.json()["last_seen"] is None
    assert response.json()["is_online"] is True


def test_admin_routes(client, make_user):
    admin = make_user("root", role=UserRole.ADMIN)
    alice = make_user("alice")

    assert client.get("/api/v1/users", headers=auth_headers(alice)).status_code == 403
    response = client.get("/api/v1/users", headers=auth_headers(admin))
    assert response.status_code == 200
    assert {u["username"] for u in response.json()} == {"root", "alice"}

    assert client.delete(f"/api/v1/users/{admin.id}", headers=auth_headers(alice)).status_code == 403
    assert client.delete(f"/api/v1/users/{alice.id}", headers=auth_headers(admin)).status_code == 204
    assert client.get("/api/v1/users/me", headers=auth_headers(alice)).status_code == 401


def test_delete_me_cleans_up(client, db, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    chat_id = befriend(client, alice, bob)["chat_id"]
    client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": "bye"}, headers=auth_headers(alice))

    owned = client.post("/api/v1/groups", json={"name": "Alice's"}, headers=auth_headers(alice)).json()
    joined = client.post("/api/v1/groups", json={"name": "Bob's"}, headers=auth_headers(bob)).json()
    client.post(f"/api/v1/groups/{joined['id']}/members", json={"email": alice.email}, headers=auth_headers(bob))

    response = client.delete("/api/v1/users/delete-me", headers=auth_headers(alice))
    assert response.status_code == 200

    db.expire_all()
    assert db.get(User, alice.id) is None
    assert db.query(FriendRelationship).count() == 0
    assert db.get(Chat, chat_id) is None
    assert db.get(Group, owned["id"]) is None

    group = client.get(f"/api/v1/groups/{joined['id']}", headers=auth_headers(bob)).json()
    assert [m["user"]["id"] for m in group["members"]] == [bob.id]
    assert client.get("/api/v1/friends", headers=auth_headers(bob)).json() == []
