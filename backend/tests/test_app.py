"""
Tests for app-level behaviour: health, request ids, error envelope and the
feed cache path.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes import rsvps, whatson


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Response-Time"].endswith("ms")

    generated = await client.get("/health")
    assert len(generated.headers["X-Request-ID"]) == 12


@pytest.mark.asyncio
async def test_malformed_json_uses_error_envelope(client: AsyncClient, member_headers, test_event):
    response = await client.post(
        f"/api/v1/whatson/{test_event.id}/rsvp",
        content="{not json",
        headers={**member_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request"


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_feed_served_from_cache(client: AsyncClient, monkeypatch):
    """A cache hit skips the database and is flagged as cached."""
    cached = {
        "events": [],
        "pagination": {"page": 1, "limit": 20, "total": 0, "total_pages": 0},
    }
    seen = []

    async def fake_get(params):
        seen.append(params)
        return dict(cached)

    monkeypatch.setattr(whatson, "get_cached_feed", fake_get)

    response = await client.get("/api/v1/whatson?tags=art,film")
    assert response.status_code == 200
    assert response.json()["data"]["cached"] is True
    assert seen[0]["tags"] == ["art", "film"]


@pytest.mark.asyncio
async def test_writes_invalidate_feed_cache(client: AsyncClient, monkeypatch, member_headers, test_event):
    calls = []

    async def fake_invalidate():
        calls.append(True)

    monkeypatch.setattr(whatson, "invalidate_feed_cache", fake_invalidate)
    monkeypatch.setattr(rsvps, "invalidate_feed_cache", fake_invalidate)

    await client.post(
        f"/api/v1/whatson/{test_event.id}/rsvp",
        json={"number_of_spots": 1, "schedule_ids": [test_event.schedule[0].id]},
        headers=member_headers,
    )
    await client.delete(f"/api/v1/whatson/{test_event.id}/rsvp", headers=member_headers)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_feed_cache_invalidated_after_commit(client: AsyncClient, monkeypatch, member_headers,
                                                   creator_headers, test_event):
    """Invalidating before the commit would let a feed read re-cache the old spot counts."""
    calls = []
    original_commit = AsyncSession.commit

    async def recording_commit(self):
        calls.append("commit")
        await original_commit(self)

    async def fake_invalidate():
        calls.append("invalidate")

    monkeypatch.setattr(AsyncSession, "commit", recording_commit)
    monkeypatch.setattr(whatson, "invalidate_feed_cache", fake_invalidate)
    monkeypatch.setattr(rsvps, "invalidate_feed_cache", fake_invalidate)

    writes = [
        client.post(
            f"/api/v1/whatson/{test_event.id}/rsvp",
            json={"number_of_spots": 1, "schedule_ids": [test_event.schedule[0].id]},
            headers=member_headers,
        ),
        client.delete(f"/api/v1/whatson/{test_event.id}/rsvp", headers=member_headers),
        client.patch(f"/api/v1/whatson/{test_event.id}", json={"title": "Late Show"}, headers=creator_headers),
    ]
    for write in writes:
        calls.clear()
        response = await write
        assert response.status_code in (200, 201)
        assert calls.index("commit") < calls.index("invalidate")
