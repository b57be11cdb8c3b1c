"""Connection Routes — request, respond, cancel, remove, listings and stats.

Invariants:
    - One open (pending/accepted) connection per unordered pair
    - Only the target responds; "rejected" is normalized to "declined"
    - A declined pair may connect again
"""

from sqlalchemy import select

from venturenet.models.notification import Notification


async def _send(client, auth, token, target_id, **extra):
    return await client.post(
        "/api/v1/connections", json={"target_id": str(target_id), **extra}, headers=auth(token),
    )


async def test_send_connection_request(client, make_user, auth, test_db):
    alice, alice_token = await make_user("startup")
    bob, _ = await make_user("mentor")

    res = await _send(client, auth, alice_token, bob.id, message="Hi!")
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["status"] == "pending"
    assert data["requester_id"] == str(alice.id)

    notes = (await test_db.execute(
        select(Notification).where(Notification.user_id == bob.id),
    )).scalars().all()
    assert [n.type for n in notes] == ["connection_request"]


async def test_cannot_connect_to_self(client, make_user, auth):
    alice, token = await make_user("startup")
    res = await _send(client, auth, token, alice.id)
    assert res.status_code == 400
    assert res.json()["error"] == "Cannot connect to yourself"


async def test_duplicate_in_either_direction_is_rejected(client, make_user, auth):
    alice, alice_token = await make_user("startup")
    bob, bob_token = await make_user("investor")
    await _send(client, auth, alice_token, bob.id)

    res = await _send(client, auth, bob_token, alice.id)
    assert res.status_code == 400
    assert res.json()["error"] == "Connection request already pending"


async def test_accept_then_already_connected(client, make_user, auth):
    alice, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conn_id = (await _send(client, auth, alice_token, bob.id)).json()["data"]["id"]

    res = await client.post(
        f"/api/v1/connections/{conn_id}/respond",
        json={"decision": "accepted"}, headers=auth(bob_token),
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "accepted"
    assert res.json()["data"]["responded_at"] is not None

    again = await _send(client, auth, alice_token, bob.id)
    assert again.json()["error"] == "Already connected"


async def test_only_target_can_respond(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, _ = await make_user("mentor")
    conn_id = (await _send(client, auth, alice_token, bob.id)).json()["data"]["id"]

    res = await client.post(
        f"/api/v1/connections/{conn_id}/respond",
        json={"decision": "accepted"}, headers=auth(alice_token),
    )
    assert res.status_code == 403


async def test_rejected_alias_and_resend_after_decline(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conn_id = (await _send(client, auth, alice_token, bob.id)).json()["data"]["id"]

    res = await client.post(
        f"/api/v1/connections/{conn_id}/respond",
        json={"decision": "rejected"}, headers=auth(bob_token),
    )
    assert res.json()["data"]["status"] == "declined"

    second = await client.post(
        f"/api/v1/connections/{conn_id}/respond",
        json={"decision": "accepted"}, headers=auth(bob_token),
    )
    assert second.status_code == 400
    assert second.json()["error"] == "Request has already been responded to"

    resend = await _send(client, auth, alice_token, bob.id)
    assert resend.status_code == 201


async def test_cancel_pending(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conn_id = (await _send(client, auth, alice_token, bob.id)).json()["data"]["id"]

    forbidden = await client.post(f"/api/v1/connections/{conn_id}/cancel", headers=auth(bob_token))
    assert forbidden.status_code == 403

    res = await client.post(f"/api/v1/connections/{conn_id}/cancel", headers=auth(alice_token))
    assert res.json()["data"]["status"] == "cancelled"


async def test_listings_stats_and_remove(client, make_user, auth):
    alice, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    carol, _ = await make_user("investor")
    conn_id = (await _send(client, auth, alice_token, bob.id)).json()["data"]["id"]
    await _send(client, auth, alice_token, carol.id)

    pending = await client.get(
        "/api/v1/connections/pending", params={"direction": "received"}, headers=auth(bob_token),
    )
    assert [row["other"]["id"] for row in pending.json()["data"]] == [str(alice.id)]

    await client.post(
        f"/api/v1/connections/{conn_id}/respond",
        json={"decision": "accepted"}, headers=auth(bob_token),
    )
    listed = await client.get("/api/v1/connections", headers=auth(alice_token))
    assert [row["other"]["id"] for row in listed.json()["data"]] == [str(bob.id)]

    stats = (await client.get("/api/v1/connections/stats", headers=auth(alice_token))).json()["data"]
    assert stats["total"] == 1
    assert stats["mentors"] == 1
    assert stats["pending_sent"] == 1

    removed = await client.delete(f"/api/v1/connections/{conn_id}", headers=auth(bob_token))
    assert removed.status_code == 200
    listed = await client.get("/api/v1/connections", headers=auth(alice_token))
    assert listed.json()["data"] == []
