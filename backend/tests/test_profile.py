"""
Tests for the caller's marketplace profile.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_profile_not_found(client: AsyncClient, member_headers):
    response = await client.get("/api/v1/profile", headers=member_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Profile not found", "error": "Profile not found"}


@pytest.mark.asyncio
async def test_profile_check_without_profile(client: AsyncClient, member_headers):
    response = await client.get("/api/v1/profile/check", headers=member_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"is_complete": False, "completion_percentage": 0}


@pytest.mark.asyncio
async def test_create_then_complete_profile(client: AsyncClient, member_headers):
    """First PUT creates the profile; later PUTs only touch the given fields."""
    response = await client.put(
        "/api/v1/profile",
        json={"firstname": "Omar", "surname": "Khalil", "email": "omar@example.com"},
        headers=member_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_complete"] is False
    assert data["email"] == "omar@example.com"

    response = await client.put(
        "/api/v1/profile", json={"country": "UAE", "city": "Dubai"}, headers=member_headers
    )
    data = response.json()["data"]
    assert data["firstname"] == "Omar"
    assert data["is_complete"] is True

    check = (await client.get("/api/v1/profile/check", headers=member_headers)).json()["data"]
    assert check["is_complete"] is True
    assert 0 < check["completion_percentage"] < 100


@pytest.mark.asyncio
async def test_profile_rejects_bad_email(client: AsyncClient, member_headers):
    response = await client.put("/api/v1/profile", json={"email": "not-an-email"}, headers=member_headers)
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "email" in response.json()["error"]


@pytest.mark.asyncio
async def test_profile_requires_auth(client: AsyncClient):
    response = await client.get("/api/v1/profile", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
