"""
Parcel Server - Rider Endpoint Tests
=====================================
"""

import uuid

import pytest


async def _create_rider(client, **fields):
    response = await client.post("/riders", json=fields)
    assert response.status_code == 200
    return response.json()["insertedId"]


class TestRiderApplications:

    @pytest.mark.asyncio
    async def test_new_rider_defaults_to_pending(self, test_client):
        rider_id = await _create_rider(test_client, name="Rafi", region="Dhaka")

        pending = await test_client.get("/riders/pending")
        active = await test_client.get("/riders/active")

        assert [r["_id"] for r in pending.json()] == [rider_id]
        assert pending.json()[0]["status"] == "pending"
        assert pending.json()[0]["region"] == "Dhaka"
        assert active.json() == []

    @pytest.mark.asyncio
    async def test_pending_listed_oldest_first(self, test_client):
        first = await _create_rider(test_client, name="first")
        second = await _create_rider(test_client, name="second")

        response = await test_client.get("/riders/pending")

        assert [r["_id"] for r in response.json()] == [first, second]

    @pytest.mark.asyncio
    async def test_other_statuses_are_stored_but_not_listed(self, test_client):
        await _create_rider(test_client, name="x", status="on-leave")

        assert (await test_client.get("/riders/pending")).json() == []
        assert (await test_client.get("/riders/active")).json() == []


class TestRiderStatus:

    @pytest.mark.asyncio
    async def test_approve_moves_rider_to_active(self, test_client):
        rider_id = await _create_rider(test_client, name="Rafi")

        response = await test_client.patch(f"/riders/{rider_id}/status", json={"status": "active"})

        assert response.status_code == 200
        assert response.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 1}
        assert [r["_id"] for r in (await test_client.get("/riders/active")).json()] == [rider_id]
        assert (await test_client.get("/riders/pending")).json() == []

    @pytest.mark.asyncio
    async def test_same_status_matches_without_modifying(self, test_client):
        rider_id = await _create_rider(test_client, name="Rafi")

        response = await test_client.patch(f"/riders/{rider_id}/status", json={"status": "pending"})

        assert response.json()["matchedCount"] == 1
        assert response.json()["modifiedCount"] == 0

    @pytest.mark.asyncio
    async def test_unknown_rider_matches_nothing(self, test_client):
        response = await test_client.patch(f"/riders/{uuid.uuid4()}/status", json={"status": "active"})

        assert response.status_code == 200
        assert response.json()["matchedCount"] == 0

    @pytest.mark.asyncio
    async def test_status_is_required(self, test_client):
        rider_id = await _create_rider(test_client, name="Rafi")

        response = await test_client.patch(f"/riders/{rider_id}/status", json={})
        assert response.status_code == 422
