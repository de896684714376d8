"""
Horoscope Desk Backend: Auth Service Tests
===========================================

What:  Login against the seeded admin, indistinguishable failures, and
       change-password re-verification.
How:   Real bcrypt hashes in a temporary SQLite database.
"""

import pytest

from horoscope_desk.exceptions import InvalidCredentialsError, NotFoundError, ValidationError
from horoscope_desk.services.auth_service import AuthService
from horoscope_desk.services.passwords import hash_password
from horoscope_desk.services.session import Session, decode_session, encode_session


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_round_trip(self, gateway):
        session = await self.service.login(gateway, "admin@local", "admin123")
        assert session.role == "admin"
        assert decode_session(encode_session(session)) == session

    @pytest.mark.asyncio
    async def test_viewer_account_gets_viewer_role(self, gateway):
        await gateway.execute(
            "INSERT INTO users (email, password_hash, name, role) VALUES (?, ?, ?, ?)",
            ["desk@office", await hash_password("viewer-pass"), "Front Desk", "viewer"],
        )
        session = await self.service.login(gateway, "desk@office", "viewer-pass")
        assert session.role == "viewer"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, gateway):
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await self.service.login(gateway, "admin@local", "nope")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await self.service.login(gateway, "ghost@local", "admin123")
        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_email_match_is_case_sensitive(self, gateway):
        with pytest.raises(InvalidCredentialsError):
            await self.service.login(gateway, "ADMIN@LOCAL", "admin123")

    @pytest.mark.asyncio
    async def test_missing_fields(self, gateway):
        with pytest.raises(ValidationError):
            await self.service.login(gateway, "", "admin123")


class TestChangePassword:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_change_then_login_with_new_password(self, gateway):
        session = await self.service.login(gateway, "admin@local", "admin123")
        await self.service.change_password(gateway, session, "admin123", "n3w-secret")

        with pytest.raises(InvalidCredentialsError):
            await self.service.login(gateway, "admin@local", "admin123")
        assert (await self.service.login(gateway, "admin@local", "n3w-secret")).role == "admin"

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, gateway):
        session = await self.service.login(gateway, "admin@local", "admin123")
        with pytest.raises(InvalidCredentialsError, match="Current password is incorrect"):
            await self.service.change_password(gateway, session, "guess", "n3w-secret")

    @pytest.mark.asyncio
    async def test_new_password_too_short(self, gateway):
        session = await self.service.login(gateway, "admin@local", "admin123")
        with pytest.raises(ValidationError, match="at least 6"):
            await self.service.change_password(gateway, session, "admin123", "abc")

    @pytest.mark.asyncio
    async def test_missing_user(self, gateway):
        with pytest.raises(NotFoundError):
            await self.service.change_password(gateway, Session(99, "viewer"), "whatever", "n3w-secret")


class TestProvisionUser:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_new_viewer_can_log_in(self, gateway):
        await self.service.provision_user(gateway, "desk@office", "viewer-pass", "viewer")

        session = await self.service.login(gateway, "desk@office", "viewer-pass")
        assert session.role == "viewer"
        row = await gateway.fetch_one("SELECT name FROM users WHERE email = ?", ["desk@office"])
        assert row["name"] == "User"

    @pytest.mark.asyncio
    async def test_existing_email_is_updated_in_place(self, gateway):
        await self.service.provision_user(gateway, "desk@office", "first-pass", "viewer")
        await self.service.provision_user(gateway, "desk@office", "second-pass", "admin", name="Manager")

        rows = await gateway.fetch_all("SELECT name, role FROM users WHERE email = ?", ["desk@office"])
        assert rows == [{"name": "Manager", "role": "admin"}]
        with pytest.raises(InvalidCredentialsError):
            await self.service.login(gateway, "desk@office", "first-pass")
        assert (await self.service.login(gateway, "desk@office", "second-pass")).role == "admin"

    @pytest.mark.asyncio
    async def test_reset_default_admin_password(self, gateway):
        await self.service.provision_user(gateway, "admin@local", "rotated-pass", "admin")
        assert (await gateway.fetch_one("SELECT COUNT(*) AS n FROM users"))["n"] == 1
        assert (await self.service.login(gateway, "admin@local", "rotated-pass")).role == "admin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, password, role", [
        ("", "viewer-pass", "viewer"),
        ("desk@office", "", "viewer"),
        ("desk@office", "abc", "viewer"),
        ("desk@office", "viewer-pass", "owner"),
    ])
    async def test_invalid_input(self, gateway, email, password, role):
        with pytest.raises(ValidationError):
            await self.service.provision_user(gateway, email, password, role)
