"""Event Routes — creation, capacity-checked registration, cancellation and moderation.

Invariants:
    - confirmed_count never exceeds max_participants, even from a stale event snapshot
    - Deadline, audience and duplicate rules reject with the {error, status} envelope
    - Cancelling a confirmed registration releases its seat
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy import select

from venturenet.core.errors import BusinessRuleError
from venturenet.models.event import Event
from venturenet.models.notification import ActivityLog, Notification
from venturenet.services import event_service


def _iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


async def _create_event(client, auth, token, **overrides):
    body = {
        "title": "Founder Mixer",
        "event_type": "networking",
        "start_date": _iso(timedelta(days=7)),
        "max_participants": 10,
        **overrides,
    }
    res = await client.post("/api/v1/events", json=body, headers=auth(token))
    assert res.status_code == 201, res.json()
    return res.json()["data"]


async def _register(client, auth, token, event_id):
    return await client.post(f"/api/v1/events/{event_id}/register", headers=auth(token))


async def _confirmed_count(test_db, event_id) -> int:
    return (await test_db.execute(
        select(Event.confirmed_count).where(Event.id == UUID(event_id)),
    )).scalar_one()


async def test_create_event_rejects_bad_dates(client, make_user, auth):
    _, token = await make_user("mentor")
    res = await client.post("/api/v1/events", json={
        "title": "Backwards",
        "start_date": _iso(timedelta(days=2)),
        "end_date": _iso(timedelta(days=1)),
    }, headers=auth(token))
    assert res.status_code == 400
    assert res.json()["error"] == "end_date must be after start_date"


async def test_register_confirms_and_counts_seat(client, make_user, auth, test_db):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token)

    res = await _register(client, auth, token, event["id"])
    assert res.status_code == 201
    assert res.json()["data"]["status"] == "confirmed"
    assert await _confirmed_count(test_db, event["id"]) == 1


async def test_duplicate_registration(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token)
    await _register(client, auth, token, event["id"])

    res = await _register(client, auth, token, event["id"])
    assert res.status_code == 400
    assert res.json()["error"] == "Already registered for this event"


async def test_full_event(client, make_user, auth, test_db):
    _, org_token = await make_user("mentor")
    _, first = await make_user("startup")
    _, second = await make_user("startup")
    event = await _create_event(client, auth, org_token, max_participants=1)
    await _register(client, auth, first, event["id"])

    res = await _register(client, auth, second, event["id"])
    assert res.status_code == 400
    assert res.json()["error"] == "Event is full"
    assert await _confirmed_count(test_db, event["id"]) == 1


async def test_stale_snapshot_cannot_overfill(client, make_user, auth, test_db):
    """A registration working from an outdated event row still sees the event as full."""
    _, org_token = await make_user("mentor")
    _, first_token = await make_user("startup")
    late, _ = await make_user("startup")
    event = await _create_event(client, auth, org_token, max_participants=1)

    stale = await test_db.get(Event, UUID(event["id"]))
    assert stale.confirmed_count == 0

    await _register(client, auth, first_token, event["id"])

    with pytest.raises(BusinessRuleError, match="Event is full"):
        await event_service.register_for_event(test_db, late, stale.id)
    await test_db.rollback()
    assert await _confirmed_count(test_db, event["id"]) == 1


async def test_deadline_passed(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(
        client, auth, org_token, registration_deadline=_iso(timedelta(hours=-1)),
    )
    res = await _register(client, auth, token, event["id"])
    assert res.status_code == 400
    assert res.json()["error"] == "Registration deadline has passed"


async def test_audience_restriction(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, investor_token = await make_user("investor")
    event = await _create_event(client, auth, org_token, target_audience=["startup"])
    res = await _register(client, auth, investor_token, event["id"])
    assert res.status_code == 403


async def test_cancel_releases_seat(client, make_user, auth, test_db):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token, max_participants=1)
    reg_id = (await _register(client, auth, token, event["id"])).json()["data"]["id"]

    res = await client.post(f"/api/v1/events/registrations/{reg_id}/cancel", headers=auth(token))
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "cancelled"
    assert await _confirmed_count(test_db, event["id"]) == 0

    again = await _register(client, auth, token, event["id"])
    assert again.status_code == 201


async def test_cancel_after_start(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token, start_date=_iso(timedelta(hours=-1)))
    reg_id = (await _register(client, auth, token, event["id"])).json()["data"]["id"]

    res = await client.post(f"/api/v1/events/registrations/{reg_id}/cancel", headers=auth(token))
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "Cannot cancel registration for events that have already started"
    assert body["status"] == 400


async def test_approval_flow(client, make_user, auth, test_db):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    _, outsider = await make_user("investor")
    event = await _create_event(client, auth, org_token, requires_approval=True)

    reg = (await _register(client, auth, token, event["id"])).json()["data"]
    assert reg["status"] == "pending"
    assert await _confirmed_count(test_db, event["id"]) == 0

    forbidden = await client.post(
        f"/api/v1/events/registrations/{reg['id']}/moderate",
        json={"action": "approve"}, headers=auth(outsider),
    )
    assert forbidden.status_code == 403

    res = await client.post(
        f"/api/v1/events/registrations/{reg['id']}/moderate",
        json={"action": "approve", "message": "Welcome"}, headers=auth(org_token),
    )
    assert res.json()["data"]["status"] == "confirmed"
    assert await _confirmed_count(test_db, event["id"]) == 1

    listed = await client.get(f"/api/v1/events/{event['id']}/registrations", headers=auth(org_token))
    assert len(listed.json()["data"]) == 1


async def test_listing_and_my_registrations(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    soon = await _create_event(client, auth, org_token, title="Soon", start_date=_iso(timedelta(days=1)))
    await _create_event(client, auth, org_token, title="Later", start_date=_iso(timedelta(days=9)))
    await _create_event(client, auth, org_token, title="Investors only", target_audience=["investor"])

    listed = (await client.get("/api/v1/events", headers=auth(token))).json()["data"]
    assert [e["title"] for e in listed["events"]] == ["Soon", "Later"]
    assert listed["pagination"]["total"] == 2

    await _register(client, auth, token, soon["id"])
    mine = (await client.get("/api/v1/events/registrations/me", headers=auth(token))).json()["data"]
    assert [row["event"]["title"] for row in mine] == ["Soon"]


async def test_rejected_registrant_cannot_register_again(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token, requires_approval=True)
    reg = (await _register(client, auth, token, event["id"])).json()["data"]

    rejected = await client.post(
        f"/api/v1/events/registrations/{reg['id']}/moderate",
        json={"action": "reject", "message": "Not this time"}, headers=auth(org_token),
    )
    assert rejected.json()["data"]["status"] == "rejected"

    again = await _register(client, auth, token, event["id"])
    assert again.status_code == 400
    assert again.json()["code"] == "REGISTRATION_REJECTED"


async def test_startups_cannot_create_events(client, make_user, auth):
    _, token = await make_user("startup")
    res = await client.post("/api/v1/events", json={
        "title": "Startup Social", "start_date": _iso(timedelta(days=3)),
    }, headers=auth(token))
    assert res.status_code == 403
    assert res.json()["error"] == "Only mentors, investors and admins can create events"


async def test_organizer_updates_event(client, make_user, auth, test_db):
    organizer, org_token = await make_user("investor")
    _, outsider = await make_user("mentor")
    event = await _create_event(client, auth, org_token)

    forbidden = await client.patch(
        f"/api/v1/events/{event['id']}", json={"title": "Hijacked"}, headers=auth(outsider),
    )
    assert forbidden.status_code == 403

    res = await client.patch(
        f"/api/v1/events/{event['id']}",
        json={"title": "Founder Mixer II", "location": None, "max_participants": 25},
        headers=auth(org_token),
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["title"] == "Founder Mixer II"
    assert data["max_participants"] == 25
    assert data["status"] == "active"

    logged = (await test_db.execute(
        select(ActivityLog).where(ActivityLog.action == "event_updated"),
    )).scalar_one()
    assert logged.user_id == organizer.id
    assert logged.details["event_id"] == event["id"]


async def test_update_rejects_dates_out_of_order(client, make_user, auth):
    _, org_token = await make_user("mentor")
    event = await _create_event(client, auth, org_token)
    res = await client.patch(
        f"/api/v1/events/{event['id']}",
        json={"end_date": _iso(timedelta(days=1))}, headers=auth(org_token),
    )
    assert res.status_code == 400
    assert res.json()["error"] == "end_date must be after start_date"


async def test_cancel_event_notifies_registrants(client, make_user, auth, test_db):
    _, org_token = await make_user("mentor")
    confirmed_user, confirmed_token = await make_user("startup")
    leaver, leaver_token = await make_user("startup")
    event = await _create_event(client, auth, org_token)
    await _register(client, auth, confirmed_token, event["id"])
    reg_id = (await _register(client, auth, leaver_token, event["id"])).json()["data"]["id"]
    await client.post(f"/api/v1/events/registrations/{reg_id}/cancel", headers=auth(leaver_token))

    res = await client.post(
        f"/api/v1/events/{event['id']}/cancel",
        json={"reason": "Venue unavailable"}, headers=auth(org_token),
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Venue unavailable"
    assert data["cancelled_at"] is not None

    notified = (await test_db.execute(
        select(Notification.user_id, Notification.payload)
        .where(Notification.type == "event_cancelled"),
    )).all()
    assert [user_id for user_id, _ in notified] == [confirmed_user.id]
    assert notified[0][1]["reason"] == "Venue unavailable"

    again = await client.post(f"/api/v1/events/{event['id']}/cancel", headers=auth(org_token))
    assert again.status_code == 400
    assert again.json()["code"] == "EVENT_ALREADY_CANCELLED"

    closed = await _register(client, auth, leaver_token, event["id"])
    assert closed.status_code == 400


async def test_only_organizer_cancels(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, token = await make_user("startup")
    event = await _create_event(client, auth, org_token)
    res = await client.post(f"/api/v1/events/{event['id']}/cancel", headers=auth(token))
    assert res.status_code == 403
    assert res.json()["error"] == "Only the organizer can manage this event"


async def test_event_stats(client, make_user, auth):
    _, org_token = await make_user("mentor")
    _, first = await make_user("startup")
    _, second = await make_user("startup")
    _, outsider = await make_user("investor")
    event = await _create_event(client, auth, org_token, max_participants=5)
    await _register(client, auth, first, event["id"])
    reg_id = (await _register(client, auth, second, event["id"])).json()["data"]["id"]
    await client.post(f"/api/v1/events/registrations/{reg_id}/cancel", headers=auth(second))

    res = await client.get(f"/api/v1/events/{event['id']}/stats", headers=auth(org_token))
    assert res.status_code == 200
    stats = res.json()["data"]
    assert stats["total_registrations"] == 1
    assert stats["confirmed"] == 1
    assert stats["pending"] == 0
    assert stats["cancelled"] == 1
    assert stats["by_type"] == {"attendee": 1}
    assert stats["remaining_seats"] == 4

    hidden = await client.get(f"/api/v1/events/{event['id']}/stats", headers=auth(outsider))
    assert hidden.status_code == 403
