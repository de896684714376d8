"""
Horoscope Desk Backend: HTTP API Tests
=======================================

What:  End-to-end requests through middleware, the session gate, services
       and the SQLite gateway.
How:   httpx AsyncClient over ASGITransport (see conftest.test_client).

Authorization matrix checked here:
    no cookie      → 401 on every protected route
    viewer cookie  → 200 on reads, 403 on writes
    admin cookie   → 200/201 on both
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from horoscope_desk.config import settings
from horoscope_desk.services.session import SESSION_COOKIE
from horoscope_desk.services.settings_service import DEFAULT_VIEWER_MENUS


PROFILE = {"registration_id": "M1001", "name": "Arun", "role": "male", "phone": "9876543210"}


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["backend"] == "sqlite"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_error_envelope_carries_request_id(self, test_client):
        response = await test_client.get("/api/follow-ups", headers={"X-Request-ID": "req-1"})
        assert response.status_code == 401
        assert response.json() == {"error": "unauthorized", "message": "Unauthorized", "request_id": "req-1"}


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, test_client):
        response = await test_client.post("/api/auth/login", json={"email": "admin@local", "password": "admin123"})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "role": "admin"}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{SESSION_COOKIE}=")
        assert "HttpOnly" in set_cookie

    @pytest.mark.asyncio
    async def test_login_cookie_opens_protected_routes(self, test_client):
        await test_client.post("/api/auth/login", json={"email": "admin@local", "password": "admin123"})
        response = await test_client.get("/api/settings/viewer-menus")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_login_failures_are_identical(self, test_client):
        wrong = await test_client.post("/api/auth/login", json={"email": "admin@local", "password": "bad"})
        unknown = await test_client.post("/api/auth/login", json={"email": "who@local", "password": "bad"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, test_client):
        response = await test_client.post("/api/auth/login", json={"email": "admin@local"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, test_client):
        for _ in range(2):
            response = await test_client.post("/api/auth/logout")
            assert response.status_code == 200
            assert "Max-Age=0" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_change_password(self, test_client, login_as):
        login_as("admin")
        response = await test_client.post(
            "/api/auth/change-password", json={"currentPassword": "admin123", "newPassword": "s3cret!"}
        )
        assert response.status_code == 200

        relogin = await test_client.post("/api/auth/login", json={"email": "admin@local", "password": "s3cret!"})
        assert relogin.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, test_client, login_as):
        login_as("admin")
        response = await test_client.post(
            "/api/auth/change-password", json={"currentPassword": "nope", "newPassword": "s3cret!"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_change_password_requires_session(self, test_client):
        response = await test_client.post(
            "/api/auth/change-password", json={"currentPassword": "admin123", "newPassword": "s3cret!"}
        )
        assert response.status_code == 401


class TestSettingsRoutes:

    @pytest.mark.asyncio
    async def test_anonymous(self, test_client):
        assert (await test_client.get("/api/settings/viewer-menus")).status_code == 401

    @pytest.mark.asyncio
    async def test_viewer_reads_defaults(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.get("/api/settings/viewer-menus")
        assert response.status_code == 200
        assert response.json() == {"menus": DEFAULT_VIEWER_MENUS}

    @pytest.mark.asyncio
    async def test_viewer_cannot_write(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.put("/api/settings/viewer-menus", json={"menus": ["/dashboard"]})
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_admin_writes(self, test_client, login_as):
        login_as("admin")
        response = await test_client.put("/api/settings/viewer-menus", json={"menus": ["/dashboard/lookup", "/dashboard"]})
        assert response.status_code == 200
        assert (await test_client.get("/api/settings/viewer-menus")).json() == {
            "menus": ["/dashboard/lookup", "/dashboard"]
        }

    @pytest.mark.asyncio
    async def test_write_without_table_is_503(self, test_client, login_as, gateway):
        await gateway.execute("DROP TABLE app_settings")
        login_as("admin")
        response = await test_client.put("/api/settings/viewer-menus", json={"menus": ["/dashboard"]})
        assert response.status_code == 503
        assert "Settings table not found" in response.json()["message"]


class TestRegistrationRoutes:

    @pytest.mark.asyncio
    async def test_viewer_cannot_create(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.post("/api/registrations", json=PROFILE)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_fetch_and_search(self, test_client, login_as):
        login_as("admin")
        created = await test_client.post("/api/registrations", json=PROFILE)
        assert created.status_code == 201
        row_id = created.json()["id"]

        by_row = await test_client.get(f"/api/registrations/{row_id}")
        assert by_row.json()["registration_id"] == "M1001"

        exact = await test_client.get("/api/registrations", params={"registration_id": "M1001"})
        assert exact.json()["id"] == row_id

        found = await test_client.get("/api/registrations", params={"search": "987654"})
        assert [r["registration_id"] for r in found.json()["registrations"]] == ["M1001"]

    @pytest.mark.asyncio
    async def test_exact_lookup_missing(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.get("/api/registrations", params={"registration_id": "NOPE"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_phone_is_409(self, test_client, login_as):
        login_as("admin")
        await test_client.post("/api/registrations", json=PROFILE)
        response = await test_client.post(
            "/api/registrations",
            json={"registration_id": "M1002", "name": "Bala", "role": "male", "phone": "9876543210"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["message"] == "This phone number is already registered"
        assert body["details"] == {"field": "phone"}

    @pytest.mark.asyncio
    async def test_missing_fields_is_400(self, test_client, login_as):
        login_as("admin")
        response = await test_client.post("/api/registrations", json={"name": "No ID"})
        assert response.status_code == 400
        assert response.json()["message"] == "Profile ID, name and gender are required"

    @pytest.mark.asyncio
    async def test_patch_clears_only_sent_fields(self, test_client, login_as):
        login_as("admin")
        row_id = (await test_client.post("/api/registrations", json=PROFILE)).json()["id"]

        response = await test_client.patch(f"/api/registrations/{row_id}", json={"phone": None})
        assert response.status_code == 200

        row = (await test_client.get(f"/api/registrations/{row_id}")).json()
        assert row["phone"] is None
        assert row["name"] == "Arun"

    @pytest.mark.asyncio
    async def test_patch_null_name_is_400(self, test_client, login_as):
        login_as("admin")
        row_id = (await test_client.post("/api/registrations", json=PROFILE)).json()["id"]

        response = await test_client.patch(f"/api/registrations/{row_id}", json={"name": None})

        assert response.status_code == 400
        assert response.json()["message"] == "Name cannot be empty"

    @pytest.mark.asyncio
    async def test_exact_lookup_ignores_surrounding_spaces(self, test_client, login_as):
        login_as("admin")
        row_id = (await test_client.post("/api/registrations", json=PROFILE)).json()["id"]

        response = await test_client.get("/api/registrations", params={"registration_id": "  M1001 "})

        assert response.status_code == 200
        assert response.json()["id"] == row_id


class TestShareAndFollowUpRoutes:

    @pytest.mark.asyncio
    async def test_share_requires_admin(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.post(
            "/api/shares", json={"sender_registration_id": "A", "recipient_registration_id": "B"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_share_unknown_profile(self, test_client, login_as):
        login_as("admin")
        response = await test_client.post(
            "/api/shares", json={"sender_registration_id": "A", "recipient_registration_id": "B"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Profile ID not found. Add the profile first."

    @pytest.mark.asyncio
    async def test_share_twice_is_ok(self, test_client, login_as):
        login_as("admin")
        await test_client.post("/api/registrations", json=PROFILE)
        await test_client.post("/api/registrations", json={"registration_id": "F1", "name": "Meena", "role": "female"})
        body = {"sender_registration_id": "M1001", "recipient_registration_id": "F1", "shared_via": "whatsapp"}

        assert (await test_client.post("/api/shares", json=body)).status_code == 200
        assert (await test_client.post("/api/shares", json={**body, "shared_via": None})).status_code == 200

    @pytest.mark.asyncio
    async def test_follow_up_lifecycle(self, test_client, login_as):
        from datetime import datetime, timezone

        today = datetime.now(timezone.utc).date().isoformat()
        login_as("admin")
        created = await test_client.post(
            "/api/follow-ups", json={"registration_id": "M1001", "due_date": today, "note": "Call back"}
        )
        assert created.status_code == 201
        follow_up_id = created.json()["id"]

        due = (await test_client.get("/api/follow-ups", params={"due": "today"})).json()["followUps"]
        assert [f["id"] for f in due] == [follow_up_id]

        done = await test_client.patch(f"/api/follow-ups/{follow_up_id}", json={"status": "done"})
        assert done.status_code == 200
        assert (await test_client.get("/api/follow-ups", params={"due": "today"})).json() == {"followUps": []}


class TestLookupRoute:

    @pytest.mark.asyncio
    async def test_requires_id(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.get("/api/lookup")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_lookup(self, test_client, login_as):
        login_as("viewer", user_id=2)
        response = await test_client.get("/api/lookup", params={"id": "M1001"})
        assert response.status_code == 200
        assert response.json()["registrationId"] == "M1001"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("debug", [False, True])
    async def test_debug_flag_controls_error_detail(self, test_client, login_as, monkeypatch, debug):
        monkeypatch.setattr(settings, "debug_errors", debug)
        failure = OperationalError("SELECT", {}, Exception("no such table: horoscope_sends"))
        login_as("viewer", user_id=2)

        with patch("horoscope_desk.routes.lookup.lookup_service.lookup", AsyncMock(side_effect=failure)):
            response = await test_client.get("/api/lookup", params={"id": "M1001"})

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Server error"
        if debug:
            assert "no such table" in body["details"]["detail"]
        else:
            assert "details" not in body
