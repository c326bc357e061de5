"""
SuiviTens Backend — Measurements API Tests
============================================

What:  End-to-end behaviour of the HTTP surface through the full middleware
       chain, backed by a temporary SQLite database.

What we test:
    ✅ Create → range round trip (the 2024-01-15 08:30 scenario)
    ✅ Validation errors list each field and persist nothing
    ✅ Pagination totals, page past the end, lenient page/limit coercion
    ✅ Range parameter errors (missing → 400, malformed → 400)
    ✅ Ownership: another user's id is 404 on update and delete, record unchanged
    ✅ Repeated delete is 404
    ✅ Authentication failures are 401
    ✅ Health check, request IDs, generic 500 bodies
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from suivitens.exceptions import DatabaseError
from suivitens.main import create_app
from suivitens.services.measurement_service import measurement_service


async def _create(client, headers, **body):
    payload = {
        "systolic": 120,
        "diastolic": 80,
        "pulse": 70,
        "measurementDate": "2024-01-15",
        "measurementTime": "08:30",
    }
    payload.update(body)
    response = await client.post("/api/measurements", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["measurement"]


class TestCreateAndRange:

    @pytest.mark.asyncio
    async def test_create_then_range_scenario(self, test_client, alice_headers, sample_payload):
        response = await test_client.post(
            "/api/measurements", json=sample_payload, headers=alice_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Measurement created successfully"
        created = body["measurement"]
        for key, value in sample_payload.items():
            assert created[key] == value
        assert created["userId"] == "alice"
        assert created["notes"] == ""
        assert {"id", "createdAt", "updatedAt"} <= created.keys()

        response = await test_client.get(
            "/api/measurements/range",
            params={"startDate": "2024-01-01", "endDate": "2024-01-31"},
            headers=alice_headers,
        )

        assert response.status_code == 200
        found = response.json()["measurements"]
        assert [m["id"] for m in found] == [created["id"]]
        for key, value in sample_payload.items():
            assert found[0][key] == value

    @pytest.mark.asyncio
    async def test_validation_errors_listed_and_nothing_persisted(
        self, test_client, alice_headers, sample_payload
    ):
        sample_payload.update(systolic=301, diastolic=29, pulse=221, measurementTime="24:00")

        response = await test_client.post(
            "/api/measurements", json=sample_payload, headers=alice_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert {e["field"] for e in body["errors"]} == {
            "systolic",
            "diastolic",
            "pulse",
            "measurementTime",
        }

        listing = await test_client.get("/api/measurements", headers=alice_headers)
        assert listing.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_missing_body_is_400(self, test_client, alice_headers):
        response = await test_client.post("/api/measurements", headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_client_cannot_choose_owner(self, test_client, alice_headers, bob_headers):
        created = await _create(test_client, alice_headers, userId="bob")
        assert created["userId"] == "alice"

        bob_list = await test_client.get("/api/measurements", headers=bob_headers)
        assert bob_list.json()["measurements"] == []

    @pytest.mark.asyncio
    async def test_range_requires_both_dates(self, test_client, alice_headers):
        response = await test_client.get(
            "/api/measurements/range", params={"startDate": "2024-01-01"}, headers=alice_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "missing_parameter"
        assert body["message"] == "Start date and end date are required"
        assert body["details"]["parameters"] == ["endDate"]

    @pytest.mark.asyncio
    async def test_range_rejects_malformed_date(self, test_client, alice_headers):
        response = await test_client.get(
            "/api/measurements/range",
            params={"startDate": "January", "endDate": "2024-01-31"},
            headers=alice_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "startDate"


class TestPagination:

    @pytest.mark.asyncio
    async def test_page_past_end(self, test_client, alice_headers):
        for day in range(1, 6):
            await _create(test_client, alice_headers, measurementDate=f"2024-01-0{day}")

        response = await test_client.get(
            "/api/measurements", params={"page": 4, "limit": 2}, headers=alice_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["measurements"] == []
        assert body["pagination"] == {"current": 4, "pages": 3, "total": 5}
        assert response.headers["X-Total-Count"] == "5"

    @pytest.mark.asyncio
    async def test_first_page_newest_first(self, test_client, alice_headers):
        for day in range(1, 4):
            await _create(test_client, alice_headers, measurementDate=f"2024-01-0{day}")

        response = await test_client.get(
            "/api/measurements", params={"limit": 2}, headers=alice_headers
        )

        dates = [m["measurementDate"] for m in response.json()["measurements"]]
        assert dates == ["2024-01-03", "2024-01-02"]

    @pytest.mark.asyncio
    async def test_non_numeric_parameters_fall_back_to_defaults(self, test_client, alice_headers):
        await _create(test_client, alice_headers)

        response = await test_client.get(
            "/api/measurements", params={"page": "abc", "limit": "lots"}, headers=alice_headers
        )

        assert response.status_code == 200
        assert response.json()["pagination"] == {"current": 1, "pages": 1, "total": 1}

    @pytest.mark.asyncio
    async def test_huge_values_do_not_error(self, test_client, alice_headers):
        await _create(test_client, alice_headers)

        response = await test_client.get(
            "/api/measurements",
            params={"page": "99999999999999999999", "limit": "99999999999999999999"},
            headers=alice_headers,
        )

        assert response.status_code == 200
        assert response.json()["measurements"] == []
        assert response.json()["pagination"]["total"] == 1


class TestUpdate:

    @pytest.mark.asyncio
    async def test_notes_only_update(self, test_client, alice_headers):
        created = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/measurements/{created['id']}",
            json={"notes": "after exercise"},
            headers=alice_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Measurement updated successfully"
        updated = body["measurement"]
        assert updated["notes"] == "after exercise"
        for key in ("systolic", "diastolic", "pulse", "measurementDate", "measurementTime"):
            assert updated[key] == created[key]

    @pytest.mark.asyncio
    async def test_invalid_field_is_400(self, test_client, alice_headers):
        created = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/measurements/{created['id']}",
            json={"measurementDate": "2024-02-30"},
            headers=alice_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "measurementDate"

    @pytest.mark.asyncio
    async def test_other_users_record_is_404_and_unchanged(
        self, test_client, alice_headers, bob_headers
    ):
        created = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/measurements/{created['id']}",
            json={"systolic": 180},
            headers=bob_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Measurement not found"

        listing = await test_client.get("/api/measurements", headers=alice_headers)
        assert listing.json()["measurements"][0]["systolic"] == 120

    @pytest.mark.asyncio
    async def test_foreign_and_missing_ids_look_the_same(
        self, test_client, alice_headers, bob_headers
    ):
        created = await _create(test_client, alice_headers)

        foreign = await test_client.put(
            f"/api/measurements/{created['id']}", json={}, headers=bob_headers
        )
        missing = await test_client.put(
            "/api/measurements/00000000-0000-0000-0000-000000000000", json={}, headers=bob_headers
        )
        malformed = await test_client.put(
            "/api/measurements/not-an-id", json={}, headers=bob_headers
        )

        assert foreign.status_code == missing.status_code == malformed.status_code == 404
        assert foreign.json()["message"] == missing.json()["message"] == malformed.json()["message"]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_twice(self, test_client, alice_headers):
        created = await _create(test_client, alice_headers)

        first = await test_client.delete(f"/api/measurements/{created['id']}", headers=alice_headers)
        second = await test_client.delete(f"/api/measurements/{created['id']}", headers=alice_headers)

        assert first.status_code == 200
        assert first.json() == {"message": "Measurement deleted successfully"}
        assert second.status_code == 404

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, test_client, alice_headers, bob_headers):
        created = await _create(test_client, alice_headers)

        response = await test_client.delete(
            f"/api/measurements/{created['id']}", headers=bob_headers
        )

        assert response.status_code == 404
        listing = await test_client.get("/api/measurements", headers=alice_headers)
        assert listing.json()["pagination"]["total"] == 1


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/measurements")

        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"

    @pytest.mark.asyncio
    async def test_unknown_token(self, test_client, sample_payload):
        response = await test_client.post(
            "/api/measurements",
            json=sample_payload,
            headers={"Authorization": "Bearer forged"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Token is not valid"


class TestServiceSurface:

    @pytest.mark.asyncio
    async def test_health_needs_no_auth(self, test_client):
        for path in ("/health", "/api/health"):
            response = await test_client.get(path)
            assert response.status_code == 200
            assert response.json()["status"] == "OK"
            assert response.json()["message"] == "SuiviTens API is running"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

        generated = await test_client.get("/health")
        assert len(generated.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_database_error_is_generic_500(self, test_client, alice_headers):
        with patch.object(
            measurement_service,
            "list_measurements",
            AsyncMock(side_effect=DatabaseError(context={"error_type": "OperationalError"})),
        ):
            response = await test_client.get("/api/measurements", headers=alice_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Server error"
        assert "OperationalError" not in response.text

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic_500(
        self, test_settings, database, identity_resolver, alice_headers
    ):
        app = create_app(
            settings=test_settings,
            database=database,
            identity_resolver=identity_resolver,
        )
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            with patch.object(
                measurement_service,
                "list_measurements",
                AsyncMock(side_effect=RuntimeError("secret internals")),
            ):
                response = await client.get("/api/measurements", headers=alice_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert "secret internals" not in response.text
