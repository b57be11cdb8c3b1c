"""Admin Routes — gating, statistics, user moderation, cascading deletes, event management.

Invariants:
    - 401 without a token, 403 for non-admins, on every /api/admin route
    - Deleting a user removes every row that references them
    - Suspending a user revokes their sessions
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_, select

from venturenet.models.connection import Connection
from venturenet.models.event import Event, EventRegistration
from venturenet.models.message import Conversation, Message
from venturenet.models.notification import Notification
from venturenet.models.profile import Profile
from venturenet.models.request import InvestmentRequest


def _future(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


async def test_admin_routes_require_admin(client, make_user, auth):
    _, token = await make_user("startup")
    for method, path in (
        ("get", "/api/admin/stats"),
        ("get", "/api/admin/users"),
        ("get", "/api/admin/events"),
        ("get", "/api/admin/activity-logs"),
    ):
        anonymous = await getattr(client, method)(path)
        assert anonymous.status_code == 401
        member = await getattr(client, method)(path, headers=auth(token))
        assert member.status_code == 403
        assert member.json()["error"] == "Admin access required"


async def test_stats(client, make_user, auth):
    _, admin_token = await make_user("admin")
    await make_user("startup")
    await make_user("mentor")
    res = await client.get("/api/admin/stats", headers=auth(admin_token))
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["total_users"] == 3
    assert data["role_distribution"]["startup"] == 1
    assert data["new_users_last_30_days"] == 3
    assert data["status_distribution"] == {"active": 3}


async def test_list_users_paginates(client, make_user, auth):
    _, admin_token = await make_user("admin")
    for _ in range(3):
        await make_user("mentor")
    res = await client.get(
        "/api/admin/users", params={"role": "mentor", "page": 2, "limit": 2},
        headers=auth(admin_token),
    )
    data = res.json()["data"]
    assert len(data["users"]) == 1
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}


async def test_suspend_revokes_sessions(client, make_user, auth):
    _, admin_token = await make_user("admin")
    target, target_token = await make_user("investor")

    res = await client.patch(
        f"/api/admin/users/{target.id}/status",
        json={"status": "suspended", "reason": "spam"}, headers=auth(admin_token),
    )
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "suspended"
    me = await client.get("/api/v1/auth/me", headers=auth(target_token))
    assert me.status_code == 401


async def test_admin_cannot_delete_self(client, make_user, auth):
    admin, admin_token = await make_user("admin")
    res = await client.delete(f"/api/admin/users/{admin.id}", headers=auth(admin_token))
    assert res.status_code == 400


async def test_delete_user_cascades(client, make_user, auth, test_db):
    _, admin_token = await make_user("admin")
    startup, startup_token = await make_user("startup")
    investor, investor_token = await make_user("investor")

    await client.post("/api/v1/connections", json={"target_id": str(investor.id)}, headers=auth(startup_token))
    await client.post("/api/v1/requests/investment", json={
        "investor_id": str(investor.id), "message": "Seed round",
    }, headers=auth(startup_token))
    conv = await client.post(
        "/api/v1/messages/conversations", json={"participant_id": str(investor.id)},
        headers=auth(startup_token),
    )
    await client.post(
        f"/api/v1/messages/conversations/{conv.json()['data']['id']}",
        json={"content": "Hi"}, headers=auth(startup_token),
    )
    event = await client.post("/api/v1/events", json={
        "title": "Demo Day", "start_date": _future(5), "max_participants": 5,
    }, headers=auth(investor_token))
    event_id = event.json()["data"]["id"]
    await client.post(f"/api/v1/events/{event_id}/register", headers=auth(startup_token))

    res = await client.delete(f"/api/admin/users/{startup.id}", headers=auth(admin_token))
    assert res.status_code == 200

    async def count(model, *criteria):
        return (await test_db.execute(
            select(func.count()).select_from(model).where(*criteria),
        )).scalar_one()

    assert await count(Profile, Profile.id == startup.id) == 0
    assert await count(Connection, or_(
        Connection.requester_id == startup.id, Connection.target_id == startup.id,
    )) == 0
    assert await count(InvestmentRequest, InvestmentRequest.startup_id == startup.id) == 0
    assert await count(Conversation, or_(
        Conversation.participant1_id == startup.id, Conversation.participant2_id == startup.id,
    )) == 0
    assert await count(Message, Message.sender_id == startup.id) == 0
    assert await count(EventRegistration, EventRegistration.user_id == startup.id) == 0
    assert await count(Notification, Notification.user_id == startup.id) == 0
    seats = (await test_db.execute(
        select(Event.confirmed_count).where(Event.title == "Demo Day"),
    )).scalar_one()
    assert seats == 0


async def test_delete_unknown_user_is_404(client, make_user, auth):
    _, admin_token = await make_user("admin")
    res = await client.delete(
        "/api/admin/users/00000000-0000-0000-0000-000000000000", headers=auth(admin_token),
    )
    assert res.status_code == 404
    assert res.json()["error"] == "User not found"


async def test_event_management(client, make_user, auth, test_db):
    _, admin_token = await make_user("admin")
    _, token = await make_user("startup")
    _, other_token = await make_user("mentor")

    created = await client.post("/api/admin/events", json={
        "title": "Admin Summit", "start_date": _future(10), "max_participants": 2,
    }, headers=auth(admin_token))
    assert created.status_code == 201
    event_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/events/{event_id}/register", headers=auth(token))
    await client.post(f"/api/v1/events/{event_id}/register", headers=auth(other_token))

    shrink = await client.patch(
        f"/api/admin/events/{event_id}", json={"max_participants": 1}, headers=auth(admin_token),
    )
    assert shrink.status_code == 400
    assert shrink.json()["code"] == "CAPACITY_BELOW_CONFIRMED"

    update = await client.patch(
        f"/api/admin/events/{event_id}",
        json={"title": "Admin Summit 2026", "status": "cancelled"}, headers=auth(admin_token),
    )
    assert update.status_code == 200
    assert update.json()["data"]["status"] == "cancelled"
    notified = (await test_db.execute(
        select(func.count()).select_from(Notification)
        .where(Notification.type == "event_cancelled"),
    )).scalar_one()
    assert notified == 2

    listed = (await client.get("/api/admin/events", headers=auth(admin_token))).json()["data"]
    assert listed["events"][0]["title"] == "Admin Summit 2026"
    assert listed["pagination"]["total"] == 1

    deleted = await client.delete(f"/api/admin/events/{event_id}", headers=auth(admin_token))
    assert deleted.status_code == 200
    missing = await client.delete(f"/api/admin/events/{event_id}", headers=auth(admin_token))
    assert missing.status_code == 404


async def test_activity_logs_filter_and_paginate(client, make_user, auth):
    _, admin_token = await make_user("admin")
    mentor, mentor_token = await make_user("mentor")
    _, investor_token = await make_user("investor")
    for title in ("Office Hours", "Pitch Practice"):
        await client.post("/api/v1/events", json={
            "title": title, "start_date": _future(3),
        }, headers=auth(mentor_token))
    await client.post("/api/v1/events", json={
        "title": "LP Breakfast", "start_date": _future(4),
    }, headers=auth(investor_token))

    res = await client.get(
        "/api/admin/activity-logs",
        params={"user_id": str(mentor.id), "action": "event_created", "limit": 1},
        headers=auth(admin_token),
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["pagination"]["total"] == 2
    assert len(data["logs"]) == 1
    assert data["logs"][0]["user"]["id"] == str(mentor.id)
    assert data["logs"][0]["action"] == "event_created"

    everyone = (await client.get(
        "/api/admin/activity-logs", params={"action": "event_created"},
        headers=auth(admin_token),
    )).json()["data"]
    assert everyone["pagination"]["total"] == 3

    future_only = (await client.get(
        "/api/admin/activity-logs", params={"from": _future(1)},
        headers=auth(admin_token),
    )).json()["data"]
    assert future_only["logs"] == []
