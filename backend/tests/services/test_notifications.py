"""Notification Routes — inbox listing, read marking and activity history."""


async def _connect(client, auth, token, target_id):
    await client.post("/api/v1/connections", json={"target_id": str(target_id)}, headers=auth(token))


async def test_inbox_and_mark_read(client, make_user, auth):
    _, alice_token = await make_user("startup")
    _, carol_token = await make_user("investor")
    bob, bob_token = await make_user("mentor")
    await _connect(client, auth, alice_token, bob.id)
    await _connect(client, auth, carol_token, bob.id)

    inbox = (await client.get("/api/v1/notifications", headers=auth(bob_token))).json()["data"]
    assert len(inbox) == 2
    assert all(n["type"] == "connection_request" for n in inbox)

    first = inbox[0]["id"]
    res = await client.post(f"/api/v1/notifications/{first}/read", headers=auth(bob_token))
    assert res.json()["data"]["read"] is True

    unread = await client.get("/api/v1/notifications", params={"unread": True}, headers=auth(bob_token))
    assert len(unread.json()["data"]) == 1

    marked = await client.post("/api/v1/notifications/read-all", headers=auth(bob_token))
    assert marked.json()["data"]["marked_read"] == 1


async def test_cannot_read_someone_elses_notification(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    await _connect(client, auth, alice_token, bob.id)
    note_id = (await client.get("/api/v1/notifications", headers=auth(bob_token))).json()["data"][0]["id"]

    res = await client.post(f"/api/v1/notifications/{note_id}/read", headers=auth(alice_token))
    assert res.status_code == 404
    assert res.json()["error"] == "Notification not found"


async def test_activity_history(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, _ = await make_user("mentor")
    await _connect(client, auth, alice_token, bob.id)

    activity = (await client.get("/api/v1/notifications/activity", headers=auth(alice_token))).json()["data"]
    assert [a["action"] for a in activity] == ["connection_request_sent"]
    assert activity[0]["details"]["target_id"] == str(bob.id)
