"""
Tests for gig postings.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.models.application import Application
from conftest import future, headers_for, make_gig, make_profile, past

GIG_BODY = {
    "title": "Lighting Technician",
    "description": "Night exterior, three nights",
    "amount": 2500,
    "role": "Gaffer",
    "type": "Freelance",
    "locations": ["Dubai", "Sharjah"],
    "date_windows": [{"label": "Shoot", "range": "12-14 Mar"}],
}


@pytest.mark.asyncio
async def test_create_gig(client: AsyncClient, creator_headers, creator_profile):
    response = await client.post("/api/v1/gigs", json={**GIG_BODY, "expiry_date": future().isoformat()},
                                 headers=creator_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "lighting-technician"
    assert data["currency"] == "AED"
    assert data["budget_label"] == "AED 2,500"
    assert data["status"] == "active"
    assert data["locations"] == ["Dubai", "Sharjah"]
    assert data["date_windows"] == [{"label": "Shoot", "range": "12-14 Mar"}]
    assert data["posted_by"]["name"] == "Studio Nine"
    assert data["application_count"] == 0


@pytest.mark.asyncio
async def test_slugs_are_unique(client: AsyncClient, creator_headers, creator_profile):
    slugs = []
    for _ in range(3):
        response = await client.post("/api/v1/gigs", json=GIG_BODY, headers=creator_headers)
        slugs.append(response.json()["data"]["slug"])
    assert slugs == ["lighting-technician", "lighting-technician-1", "lighting-technician-2"]

    by_slug = await client.get("/api/v1/gigs/slug/lighting-technician-1")
    assert by_slug.status_code == 200
    assert by_slug.json()["data"]["slug"] == "lighting-technician-1"


@pytest.mark.asyncio
async def test_create_gig_requires_complete_profile(client: AsyncClient, db_session):
    user_id = uuid.uuid4()
    await make_profile(db_session, user_id, country=None)
    response = await client.post("/api/v1/gigs", json=GIG_BODY, headers=headers_for(user_id))
    assert response.status_code == 403
    assert response.json()["message"] == "Please complete your profile before creating gigs"


@pytest.mark.asyncio
async def test_create_gig_blank_title(client: AsyncClient, creator_headers, creator_profile):
    response = await client.post("/api/v1/gigs", json={**GIG_BODY, "title": "   "}, headers=creator_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Title and description are required"

    missing = await client.post("/api/v1/gigs", json={"title": "No description"}, headers=creator_headers)
    assert missing.status_code == 400
    assert missing.json()["message"] == "Invalid request"


@pytest.mark.asyncio
async def test_budget_labels(client: AsyncClient, creator_headers, creator_profile):
    quote = await client.post(
        "/api/v1/gigs", json={**GIG_BODY, "request_quote": True}, headers=creator_headers
    )
    assert quote.json()["data"]["budget_label"] == "Request Quote"

    tbd = await client.post("/api/v1/gigs", json={**GIG_BODY, "amount": None}, headers=creator_headers)
    assert tbd.json()["data"]["budget_label"] == "Budget TBD"


@pytest.mark.asyncio
async def test_list_only_open_gigs(client: AsyncClient, db_session, creator_id, creator_profile):
    """Closed and expired gigs are left out of the public listing."""
    open_gig = await make_gig(db_session, creator_id, title="Open", expiry_date=future())
    no_expiry = await make_gig(db_session, creator_id, title="No expiry")
    await make_gig(db_session, creator_id, title="Closed", status="closed")
    await make_gig(db_session, creator_id, title="Expired", expiry_date=past())

    response = await client.get("/api/v1/gigs")
    assert response.status_code == 200
    data = response.json()["data"]
    assert {g["id"] for g in data["gigs"]} == {open_gig.id, no_expiry.id}
    assert data["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, db_session, creator_id, creator_profile, member_id,
                            member_headers, member_profile):
    await make_gig(db_session, creator_id, title="Sound Recordist", role="Sound")
    await make_gig(db_session, creator_id, title="Camera Assistant", role="Camera", type="Contract")
    mine = await make_gig(db_session, member_id, title="Editor wanted", description="Sound design a plus")

    search = (await client.get("/api/v1/gigs?search=sound")).json()["data"]["gigs"]
    assert {g["title"] for g in search} == {"Sound Recordist", "Editor wanted"}

    by_role = (await client.get("/api/v1/gigs?role=Camera&type=Contract")).json()["data"]["gigs"]
    assert [g["title"] for g in by_role] == ["Camera Assistant"]

    own = (await client.get("/api/v1/gigs?created_by=me", headers=member_headers)).json()["data"]["gigs"]
    assert [g["id"] for g in own] == [mine.id]

    by_id = (await client.get(f"/api/v1/gigs?created_by={creator_id}")).json()["data"]
    assert by_id["pagination"]["total"] == 2

    anonymous_me = await client.get("/api/v1/gigs?created_by=me")
    assert anonymous_me.status_code == 401

    bad = await client.get("/api/v1/gigs?created_by=someone")
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_list_pagination(client: AsyncClient, db_session, creator_id, creator_profile):
    for i in range(5):
        await make_gig(db_session, creator_id, title=f"Runner {i}")

    data = (await client.get("/api/v1/gigs?page=2&limit=2")).json()["data"]
    assert len(data["gigs"]) == 2
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}


@pytest.mark.asyncio
async def test_get_gig(client: AsyncClient, test_gig):
    response = await client.get(f"/api/v1/gigs/{test_gig.id}")
    assert response.status_code == 200
    assert response.json()["data"]["title"] == test_gig.title

    missing = await client.get("/api/v1/gigs/999999")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Gig not found"


@pytest.mark.asyncio
async def test_update_gig(client: AsyncClient, creator_headers, test_gig):
    response = await client.patch(
        f"/api/v1/gigs/{test_gig.id}",
        json={
            "title": "Senior Camera Operator",
            "company": None,
            "locations": ["Abu Dhabi"],
            "status": "closed",
        },
        headers=creator_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Senior Camera Operator"
    assert data["locations"] == ["Abu Dhabi"]
    assert data["status"] == "closed"
    # Slug is fixed at creation
    assert data["slug"] == test_gig.slug


@pytest.mark.asyncio
async def test_update_ignores_null_for_required_fields(client: AsyncClient, creator_headers, test_gig):
    response = await client.patch(
        f"/api/v1/gigs/{test_gig.id}", json={"title": None, "amount": None}, headers=creator_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == test_gig.title
    assert data["amount"] is None
    assert data["budget_label"] == "Budget TBD"


@pytest.mark.asyncio
async def test_update_gig_not_creator(client: AsyncClient, member_headers, test_gig):
    response = await client.patch(f"/api/v1/gigs/{test_gig.id}", json={"title": "Hijack"}, headers=member_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Only the gig creator can update this gig"


@pytest.mark.asyncio
async def test_delete_gig_removes_applications(client: AsyncClient, db_session, creator_headers, member_headers,
                                               member_profile, test_gig):
    await client.post(f"/api/v1/gigs/{test_gig.id}/apply", json={}, headers=member_headers)

    forbidden = await client.delete(f"/api/v1/gigs/{test_gig.id}", headers=member_headers)
    assert forbidden.status_code == 403

    response = await client.delete(f"/api/v1/gigs/{test_gig.id}", headers=creator_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert (await client.get(f"/api/v1/gigs/{test_gig.id}")).status_code == 404
    remaining = await db_session.scalar(
        select(func.count(Application.id)).where(Application.gig_id == test_gig.id)
    )
    assert remaining == 0
