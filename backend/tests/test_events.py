"""
Tests for What's On event endpoints.
"""

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.event import EventTag
from app.schemas.rsvp import RSVPCreate
from app.services import event_service, rsvp_service
from conftest import headers_for, make_event


def event_body(**overrides) -> dict:
    day = (date.today() + timedelta(days=30)).isoformat()
    body = {
        "title": "Short Film Showcase",
        "description": "Five new shorts from local directors",
        "location": "Cinema Akil",
        "total_spots": 60,
        "max_spots_per_person": 2,
        "status": "published",
        "schedule": [
            {"event_date": day, "start_time": "19:00", "end_time": "22:00"},
        ],
        "tags": ["film", "film", " screening "],
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, creator_headers, creator_profile):
    """Authenticated user can create an event."""
    response = await client.post("/api/v1/whatson", json=event_body(), headers=creator_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "short-film-showcase"
    assert data["total_spots"] == 60
    assert data["spots_available"] == 60  # All spots available initially
    assert data["is_fully_booked"] is False
    assert data["tags"] == ["film", "screening"]
    assert data["schedule"][0]["timezone"] == "GST"
    assert data["creator"]["name"] == "Studio Nine"
    assert data["price_currency"] == "AED"


@pytest.mark.asyncio
async def test_create_event_defaults_to_draft(client: AsyncClient, creator_headers):
    body = event_body()
    del body["status"]
    response = await client.post("/api/v1/whatson", json=body, headers=creator_headers)
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "draft"


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    """Unauthenticated request returns 401."""
    response = await client.post("/api/v1/whatson", json=event_body())
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"title": "Hi"}, "Title must be between 3 and 200 characters"),
        ({"title": "x" * 201}, "Title must be between 3 and 200 characters"),
        ({"description": "  "}, "Description is required and must be less than 10000 characters"),
        ({"location": None}, "Location is required for in-person events"),
        ({"total_spots": 0}, "Total spots must be at least 1 if not unlimited"),
        ({"total_spots": None}, "Total spots must be at least 1 if not unlimited"),
        ({"schedule": []}, "At least one schedule slot is required"),
        # First failure wins
        ({"title": "", "schedule": []}, "Title must be between 3 and 200 characters"),
    ],
)
async def test_create_event_validation(client: AsyncClient, creator_headers, overrides, message):
    response = await client.post("/api/v1/whatson", json=event_body(**overrides), headers=creator_headers)
    assert response.status_code == 400
    assert response.json()["message"] == message


@pytest.mark.asyncio
async def test_online_and_unlimited_events(client: AsyncClient, creator_headers):
    """Online events need no location; unlimited events ignore total_spots."""
    response = await client.post(
        "/api/v1/whatson",
        json=event_body(is_online=True, location=None, is_unlimited_spots=True, total_spots=5),
        headers=creator_headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["total_spots"] is None
    assert data["spots_available"] is None


@pytest.mark.asyncio
async def test_feed_lists_published_only(client: AsyncClient, db_session, creator_id, creator_profile):
    published = await make_event(db_session, creator_id)
    await make_event(db_session, creator_id, status="draft")
    cancelled = await make_event(db_session, creator_id, status="cancelled")

    feed = (await client.get("/api/v1/whatson")).json()["data"]
    assert [e["id"] for e in feed["events"]] == [published.id]
    assert feed["cached"] is False

    cancelled_feed = (await client.get("/api/v1/whatson?status=cancelled")).json()["data"]
    assert [e["id"] for e in cancelled_feed["events"]] == [cancelled.id]

    drafts = await client.get("/api/v1/whatson?status=draft")
    assert drafts.status_code == 400
    assert drafts.json()["message"] == "Draft events are not listed publicly"


@pytest.mark.asyncio
async def test_feed_filters(client: AsyncClient, db_session, creator_id, creator_profile):
    jazz = await make_event(db_session, creator_id, title="Jazz Brunch", is_paid=True, price_amount=120)
    online = await make_event(db_session, creator_id, title="Editing Masterclass", is_online=True, location=None)

    paid = (await client.get("/api/v1/whatson?is_paid=true")).json()["data"]["events"]
    assert [e["id"] for e in paid] == [jazz.id]

    remote = (await client.get("/api/v1/whatson?is_online=true")).json()["data"]["events"]
    assert [e["id"] for e in remote] == [online.id]

    keyword = (await client.get("/api/v1/whatson?keyword=masterclass")).json()["data"]["events"]
    assert [e["id"] for e in keyword] == [online.id]

    by_location = (await client.get("/api/v1/whatson?location=alserkal")).json()["data"]["events"]
    assert [e["id"] for e in by_location] == [jazz.id]


@pytest.mark.asyncio
async def test_feed_date_and_tag_filters(client: AsyncClient, db_session, creator_id, creator_profile):
    soon = await make_event(db_session, creator_id, title="Soon", tags=[EventTag(tag_name="music")])
    later = await make_event(db_session, creator_id, title="Later", tags=[EventTag(tag_name="film")])
    # make_event schedules from today + 14 days; push "later" further out
    for slot in later.schedule:
        slot.event_date = slot.event_date + timedelta(days=60)
    await db_session.commit()

    cutoff = (date.today() + timedelta(days=30)).isoformat()
    before = (await client.get(f"/api/v1/whatson?date_to={cutoff}")).json()["data"]["events"]
    assert [e["id"] for e in before] == [soon.id]
    after = (await client.get(f"/api/v1/whatson?date_from={cutoff}")).json()["data"]["events"]
    assert [e["id"] for e in after] == [later.id]

    tagged = (await client.get("/api/v1/whatson?tags=film,theatre")).json()["data"]["events"]
    assert [e["id"] for e in tagged] == [later.id]
    both = (await client.get("/api/v1/whatson?tags=film,music")).json()["data"]
    assert both["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_feed_sorting(client: AsyncClient, db_session, creator_id, creator_profile):
    await make_event(db_session, creator_id, title="Bravo")
    await make_event(db_session, creator_id, title="Alpha")
    await make_event(db_session, creator_id, title="Charlie")

    response = await client.get("/api/v1/whatson?sort_by=title&sort_order=asc")
    titles = [e["title"] for e in response.json()["data"]["events"]]
    assert titles == ["Alpha", "Bravo", "Charlie"]

    invalid = await client.get("/api/v1/whatson?sort_by=price")
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    """Event detail includes live spot counts and the ordered schedule."""
    response = await client.get(f"/api/v1/whatson/{test_event.id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == test_event.title
    assert data["spots_available"] == 10
    assert [s["sort_order"] for s in data["schedule"]] == [0, 1]


@pytest.mark.asyncio
async def test_get_nonexistent_event(client: AsyncClient):
    """Non-existent event returns 404."""
    response = await client.get("/api/v1/whatson/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_draft_visible_to_creator_only(client: AsyncClient, db_session, creator_id, creator_profile,
                                             creator_headers, member_headers):
    draft = await make_event(db_session, creator_id, status="draft")

    assert (await client.get(f"/api/v1/whatson/{draft.id}", headers=creator_headers)).status_code == 200
    assert (await client.get(f"/api/v1/whatson/{draft.id}", headers=member_headers)).status_code == 404
    assert (await client.get(f"/api/v1/whatson/{draft.id}")).status_code == 404


@pytest.mark.asyncio
async def test_my_events_include_drafts(client: AsyncClient, db_session, creator_id, creator_profile,
                                        creator_headers):
    await make_event(db_session, creator_id, status="draft")
    await make_event(db_session, creator_id)
    await make_event(db_session, uuid.uuid4())

    mine = (await client.get("/api/v1/whatson/my", headers=creator_headers)).json()["data"]
    assert mine["pagination"]["total"] == 2

    drafts = (await client.get("/api/v1/whatson/my?status=draft", headers=creator_headers)).json()["data"]
    assert [e["status"] for e in drafts["events"]] == ["draft"]


@pytest.mark.asyncio
async def test_update_event(client: AsyncClient, creator_headers, test_event):
    day = (date.today() + timedelta(days=40)).isoformat()
    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}",
        json={
            "title": "Gallery Night II",
            "schedule": [{"event_date": day, "start_time": "17:00", "end_time": "20:00", "timezone": "UTC"}],
            "tags": ["art"],
        },
        headers=creator_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Gallery Night II"
    assert data["slug"] == test_event.slug
    assert [s["event_date"] for s in data["schedule"]] == [day]
    assert data["tags"] == ["art"]


@pytest.mark.asyncio
async def test_update_validates_merged_event(client: AsyncClient, creator_headers, test_event):
    """Clearing the location of an in-person event is rejected."""
    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"location": None}, headers=creator_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Location is required for in-person events"

    online = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"location": None, "is_online": True}, headers=creator_headers
    )
    assert online.status_code == 200


@pytest.mark.asyncio
async def test_update_total_spots_below_booked(client: AsyncClient, creator_headers, test_event):
    for _ in range(2):
        await client.post(
            f"/api/v1/whatson/{test_event.id}/rsvp",
            json={"number_of_spots": 3, "schedule_ids": [test_event.schedule[0].id]},
            headers=headers_for(uuid.uuid4()),
        )

    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"total_spots": 5}, headers=creator_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Total spots cannot be less than spots already booked (6)"

    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"total_spots": 6}, headers=creator_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_fully_booked"] is True


@pytest.mark.asyncio
async def test_update_loses_to_rsvp_after_recount(client: AsyncClient, session_factory, creator_headers,
                                                  monkeypatch, test_event):
    """An RSVP landing between the booked recount and the write makes the update retryable."""
    original_totals = event_service.rsvp_totals
    attendee = uuid.uuid4()

    async def totals_then_rsvp(db, event_ids):
        totals = await original_totals(db, event_ids)
        monkeypatch.setattr(event_service, "rsvp_totals", original_totals)
        async with session_factory() as other:
            await rsvp_service.create_rsvp(
                other, test_event.id,
                RSVPCreate(number_of_spots=3, schedule_ids=[test_event.schedule[0].id]),
                attendee,
            )
            await other.commit()
        return totals

    monkeypatch.setattr(event_service, "rsvp_totals", totals_then_rsvp)
    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"total_spots": 2}, headers=creator_headers
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Event was changed by another request. Please try again."

    event = (await client.get(f"/api/v1/whatson/{test_event.id}")).json()["data"]
    assert event["total_spots"] == 10
    assert event["spots_booked"] == 3


@pytest.mark.asyncio
async def test_only_rsvp_rule_changes_claim_the_version(client: AsyncClient, db_session, creator_headers,
                                                        test_event):
    url = f"/api/v1/whatson/{test_event.id}"
    await client.patch(url, json={"description": "Now with live music"}, headers=creator_headers)
    await db_session.refresh(test_event)
    assert test_event.version == 1

    await client.patch(url, json={"max_spots_per_person": 2}, headers=creator_headers)
    await db_session.refresh(test_event)
    assert test_event.version == 2


@pytest.mark.asyncio
async def test_update_event_not_creator(client: AsyncClient, member_headers, test_event):
    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"title": "Mine now"}, headers=member_headers
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Only the event creator can update this event"


@pytest.mark.asyncio
async def test_cancel_event_blocks_rsvps(client: AsyncClient, creator_headers, member_headers, test_event):
    response = await client.patch(
        f"/api/v1/whatson/{test_event.id}", json={"status": "cancelled"}, headers=creator_headers
    )
    assert response.status_code == 200

    rsvp = await client.post(
        f"/api/v1/whatson/{test_event.id}/rsvp",
        json={"number_of_spots": 1, "schedule_ids": [test_event.schedule[0].id]},
        headers=member_headers,
    )
    assert rsvp.status_code == 400
    assert rsvp.json()["message"] == "Cannot RSVP to non-published events"
