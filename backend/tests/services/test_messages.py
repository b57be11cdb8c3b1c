"""Messaging Routes — conversations, rate-limited sends, read receipts, soft delete, search, blocks.

Invariants:
    - One conversation per pair; reopening returns the same id with 200
    - The N+1th message inside a window → 429 with Retry-After
    - Only participants read a conversation; only the sender deletes a message
    - A block either way stops new conversations and sends until it is lifted
"""


async def _open(client, auth, token, other_id):
    return await client.post(
        "/api/v1/messages/conversations",
        json={"participant_id": str(other_id)}, headers=auth(token),
    )


async def _send(client, auth, token, conversation_id, content="Hello there"):
    return await client.post(
        f"/api/v1/messages/conversations/{conversation_id}",
        json={"content": content}, headers=auth(token),
    )


async def test_open_conversation_is_idempotent(client, make_user, auth):
    alice, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")

    first = await _open(client, auth, alice_token, bob.id)
    assert first.status_code == 201
    assert first.json()["status"] == 201
    second = await _open(client, auth, bob_token, alice.id)
    assert second.status_code == 200
    assert second.json()["data"]["id"] == first.json()["data"]["id"]


async def test_cannot_message_self(client, make_user, auth):
    alice, token = await make_user("startup")
    res = await _open(client, auth, token, alice.id)
    assert res.status_code == 400


async def test_send_list_and_unread(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conv_id = (await _open(client, auth, alice_token, bob.id)).json()["data"]["id"]

    sent = await _send(client, auth, alice_token, conv_id, "  Hi Bob  ")
    assert sent.status_code == 201
    assert sent.json()["data"]["content"] == "Hi Bob"
    await _send(client, auth, alice_token, conv_id, "Are you free Friday?")

    unread = await client.get("/api/v1/messages/unread-count", headers=auth(bob_token))
    assert unread.json()["data"]["unread"] == 2

    convs = (await client.get("/api/v1/messages/conversations", headers=auth(bob_token))).json()["data"]
    assert convs[0]["unread_count"] == 2
    assert convs[0]["last_message"]["content"] == "Are you free Friday?"

    listed = await client.get(f"/api/v1/messages/conversations/{conv_id}", headers=auth(bob_token))
    assert [m["content"] for m in listed.json()["data"]] == ["Hi Bob", "Are you free Friday?"]

    await client.post(f"/api/v1/messages/conversations/{conv_id}/read", headers=auth(bob_token))
    unread = await client.get("/api/v1/messages/unread-count", headers=auth(bob_token))
    assert unread.json()["data"]["unread"] == 0


async def test_outsider_cannot_read(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, _ = await make_user("mentor")
    _, eve_token = await make_user("investor")
    conv_id = (await _open(client, auth, alice_token, bob.id)).json()["data"]["id"]

    res = await client.get(f"/api/v1/messages/conversations/{conv_id}", headers=auth(eve_token))
    assert res.status_code == 403
    res = await _send(client, auth, eve_token, conv_id)
    assert res.status_code == 403


async def test_message_validation(client, make_user, auth, settings):
    _, token = await make_user("startup")
    bob, _ = await make_user("mentor")
    conv_id = (await _open(client, auth, token, bob.id)).json()["data"]["id"]

    blank = await _send(client, auth, token, conv_id, "   ")
    assert blank.status_code == 400
    too_long = await _send(client, auth, token, conv_id, "x" * (settings.message_max_length + 1))
    assert too_long.status_code == 400
    assert too_long.json()["error"] == f"Message too long (max {settings.message_max_length} characters)"


async def test_rate_limit(client, make_user, auth, settings):
    _, token = await make_user("startup")
    bob, _ = await make_user("mentor")
    conv_id = (await _open(client, auth, token, bob.id)).json()["data"]["id"]

    for i in range(settings.message_rate_limit):
        res = await _send(client, auth, token, conv_id, f"message {i}")
        assert res.status_code == 201

    limited = await _send(client, auth, token, conv_id, "one too many")
    assert limited.status_code == 429
    body = limited.json()
    assert body["status"] == 429
    assert body["retry_after_seconds"] >= 1
    assert int(limited.headers["Retry-After"]) == body["retry_after_seconds"]

    listed = await client.get(f"/api/v1/messages/conversations/{conv_id}", headers=auth(token))
    assert len(listed.json()["data"]) == settings.message_rate_limit


async def test_soft_delete(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conv_id = (await _open(client, auth, alice_token, bob.id)).json()["data"]["id"]
    msg_id = (await _send(client, auth, alice_token, conv_id)).json()["data"]["id"]

    forbidden = await client.delete(f"/api/v1/messages/{msg_id}", headers=auth(bob_token))
    assert forbidden.status_code == 403

    res = await client.delete(f"/api/v1/messages/{msg_id}", headers=auth(alice_token))
    assert res.status_code == 200
    assert res.json()["data"]["content"] == "[Message deleted]"
    assert res.json()["data"]["deleted"] is True


async def test_search_own_conversations(client, make_user, auth):
    _, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    carol, carol_token = await make_user("investor")
    with_bob = (await _open(client, auth, alice_token, bob.id)).json()["data"]["id"]
    with_carol = (await _open(client, auth, carol_token, bob.id)).json()["data"]["id"]

    await _send(client, auth, alice_token, with_bob, "Pricing deck attached")
    removed = (await _send(client, auth, alice_token, with_bob, "old pricing notes")).json()["data"]
    await client.delete(f"/api/v1/messages/{removed['id']}", headers=auth(alice_token))
    await _send(client, auth, carol_token, with_carol, "Carol's pricing thoughts")

    res = await client.get(
        "/api/v1/messages/search", params={"q": "PRICING"}, headers=auth(alice_token),
    )
    assert res.status_code == 200
    assert [m["content"] for m in res.json()["data"]] == ["Pricing deck attached"]

    bob_hits = await client.get(
        "/api/v1/messages/search", params={"q": "pricing"}, headers=auth(bob_token),
    )
    assert len(bob_hits.json()["data"]) == 2

    too_short = await client.get(
        "/api/v1/messages/search", params={"q": "p"}, headers=auth(alice_token),
    )
    assert too_short.status_code == 422


async def test_block_stops_messaging_until_lifted(client, make_user, auth):
    alice, alice_token = await make_user("startup")
    bob, bob_token = await make_user("mentor")
    conv_id = (await _open(client, auth, alice_token, bob.id)).json()["data"]["id"]

    blocked = await client.post(f"/api/v1/messages/blocks/{bob.id}", headers=auth(alice_token))
    assert blocked.status_code == 200
    assert blocked.json()["data"]["blocked"] is True

    status = (await client.get(
        f"/api/v1/messages/blocks/{alice.id}", headers=auth(bob_token),
    )).json()["data"]
    assert status["blocked"] is False
    assert status["blocked_by"] is True

    for token in (alice_token, bob_token):
        res = await _send(client, auth, token, conv_id)
        assert res.status_code == 403
        assert res.json()["error"] == "Messaging is blocked between these users"
    reopen = await _open(client, auth, bob_token, alice.id)
    assert reopen.status_code == 403

    listed = (await client.get("/api/v1/messages/blocks", headers=auth(alice_token))).json()["data"]
    assert [row["user"]["id"] for row in listed] == [str(bob.id)]

    lifted = await client.post(f"/api/v1/messages/blocks/{bob.id}", headers=auth(alice_token))
    assert lifted.json()["data"]["blocked"] is False
    assert (await _send(client, auth, bob_token, conv_id)).status_code == 201


async def test_cannot_block_self(client, make_user, auth):
    alice, token = await make_user("startup")
    res = await client.post(f"/api/v1/messages/blocks/{alice.id}", headers=auth(token))
    assert res.status_code == 400
    assert res.json()["error"] == "Cannot block yourself"
