"""
Tests for friend request endpoints.
"""
from parley.models.chat import Chat
from parley.models.friend import FriendRelationship, FriendStatus, make_pair_key
from parley.services import chat_service
from conftest import auth_headers, befriend


def send_request(client, sender, email):
    return client.post(
        "/api/v1/friends/send-request",
        json={"email": email},
        headers=auth_headers(sender)
    )


def test_request_and_accept(client, db, make_user):
    """Accepting writes the reciprocal edge sharing the request's chat."""
    alice = make_user("alice")
    bob = make_user("bob")

    response = send_request(client, alice, bob.email)
    assert response.status_code == 201
    request = response.json()
    assert request["status"] == "pending"
    assert request["chat_id"]

    response = client.get("/api/v1/friends/requests", headers=auth_headers(bob))
    assert response.status_code == 200
    incoming = response.json()
    assert [(r["id"], r["type"]) for r in incoming] == [(request["id"], "incoming")]

    response = client.get("/api/v1/friends/requests", headers=auth_headers(alice))
    assert response.json()[0]["type"] == "outgoing"

    response = client.patch(f"/api/v1/friends/{request['id']}/accept", headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    alice_friends = client.get("/api/v1/friends", headers=auth_headers(alice)).json()
    bob_friends = client.get("/api/v1/friends", headers=auth_headers(bob)).json()
    assert [f["id"] for f in alice_friends] == [bob.id]
    assert [f["id"] for f in bob_friends] == [alice.id]
    assert alice_friends[0]["chat_id"] == bob_friends[0]["chat_id"] == request["chat_id"]

    db.expire_all()
    edges = db.query(FriendRelationship).all()
    assert len(edges) == 2
    assert all(edge.status == FriendStatus.ACCEPTED for edge in edges)


def test_accept_twice_keeps_two_edges(client, db, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    request_id = send_request(client, alice, bob.email).json()["id"]

    for _ in range(2):
        response = client.patch(f"/api/v1/friends/{request_id}/accept", headers=auth_headers(bob))
        assert response.status_code == 200

    db.expire_all()
    assert db.query(FriendRelationship).count() == 2


def test_accept_repairs_existing_reciprocal_edge(client, db, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    request = send_request(client, alice, bob.email).json()

    db.add(FriendRelationship(user_id=bob.id, friend_id=alice.id, status=FriendStatus.PENDING))
    db.commit()

    response = client.patch(f"/api/v1/friends/{request['id']}/accept", headers=auth_headers(bob))
    assert response.status_code == 200

    db.expire_all()
    reciprocal = db.query(FriendRelationship).filter(
        FriendRelationship.user_id == bob.id,
        FriendRelationship.friend_id == alice.id,
    ).one()
    assert reciprocal.status == FriendStatus.ACCEPTED
    assert reciprocal.chat_id == request["chat_id"]


def test_duplicate_requests_conflict(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    assert send_request(client, alice, bob.email).status_code == 201

    response = send_request(client, alice, bob.email)
    assert response.status_code == 409
    assert response.json()["error"] == "Friend request already exists"

    response = send_request(client, bob, alice.email)
    assert response.status_code == 409


def test_request_to_friend_conflicts(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    befriend(client, alice, bob)

    response = send_request(client, bob, alice.email)
    assert response.status_code == 409
    assert response.json()["error"] == "You are already friends"


def test_request_to_self_or_unknown(client, make_user):
    alice = make_user("alice")
    assert send_request(client, alice, alice.email).status_code == 400
    assert send_request(client, alice, "ghost@example.com").status_code == 404


def test_only_addressee_can_accept(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    request_id = send_request(client, alice, bob.email).json()["id"]

    response = client.patch(f"/api/v1/friends/{request_id}/accept", headers=auth_headers(alice))
    assert response.status_code == 403


def test_accept_bad_or_unknown_id(client, make_user):
    bob = make_user("bob")
    assert client.patch("/api/v1/friends/not-an-id/accept", headers=auth_headers(bob)).status_code == 400
    assert client.patch(f"/api/v1/friends/{'a' * 24}/accept", headers=auth_headers(bob)).status_code == 404


def test_rejected_request_is_terminal(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    request_id = send_request(client, alice, bob.email).json()["id"]

    response = client.patch(f"/api/v1/friends/{request_id}/reject", headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"

    assert client.patch(f"/api/v1/friends/{request_id}/accept", headers=auth_headers(bob)).status_code == 400
    assert client.patch(f"/api/v1/friends/{request_id}/reject", headers=auth_headers(bob)).status_code == 400
    assert send_request(client, alice, bob.email).status_code == 409
    assert client.get("/api/v1/friends/requests", headers=auth_headers(bob)).json() == []


def test_remove_friend_deletes_edges_and_chat(client, db, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    chat_id = befriend(client, alice, bob)["chat_id"]

    response = client.delete(f"/api/v1/friends/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 204

    db.expire_all()
    assert db.query(FriendRelationship).count() == 0
    assert db.get(Chat, chat_id) is None
    assert client.get("/api/v1/friends", headers=auth_headers(bob)).json() == []
    assert client.get(f"/api/v1/chats/{alice.id}", headers=auth_headers(bob)).status_code == 404

    assert send_request(client, bob, alice.email).status_code == 201


def test_concurrent_request_for_same_pair_conflicts(client, db, make_user, monkeypatch):
    alice = make_user("alice")
    bob = make_user("bob")
    real_create_chat = chat_service.create_private_chat

    def racing_create_chat(user_a, user_b, session):
        # Bob's request lands between alice's existence check and her commit
        db.add(FriendRelationship(
            user_id=bob.id,
            friend_id=alice.id,
            status=FriendStatus.PENDING,
            pair_key=make_pair_key(bob.id, alice.id),
        ))
        db.commit()
        return real_create_chat(user_a, user_b, session)

    monkeypatch.setattr(chat_service, "create_private_chat", racing_create_chat)
    response = send_request(client, alice, bob.email)
    assert response.status_code == 409
    assert response.json()["error"] == "Friend request already exists"

    db.expire_all()
    edges = db.query(FriendRelationship).all()
    assert [(edge.user_id, edge.friend_id) for edge in edges] == [(bob.id, alice.id)]
    assert db.query(Chat).count() == 0
