"""
Horoscope Desk Backend: CLI Tests
==================================

What:  `create-user` against a temporary SQLite database.
How:   click's CliRunner; the module-level settings are swapped for the
       temporary ones so the command opens the test database.
"""

import asyncio

import pytest
from click.testing import CliRunner

from horoscope_desk import cli as cli_module
from horoscope_desk.cli import cli
from horoscope_desk.database import Gateway
from horoscope_desk.services.auth_service import AuthService


async def login_role(config, email, password):
    gateway = Gateway(config)
    try:
        return (await AuthService().login(gateway, email, password)).role
    finally:
        await gateway.dispose()


class TestCreateUser:

    @pytest.fixture(autouse=True)
    def use_temp_database(self, monkeypatch, sqlite_settings):
        monkeypatch.setattr(cli_module, "settings", sqlite_settings)
        self.config = sqlite_settings
        self.runner = CliRunner()

    def test_creates_viewer_by_default(self):
        result = self.runner.invoke(cli, ["create-user", "desk@office", "--password", "viewer-pass"])

        assert result.exit_code == 0, result.output
        assert "Viewer account ready: desk@office" in result.output
        assert asyncio.run(login_role(self.config, "desk@office", "viewer-pass")) == "viewer"

    def test_password_from_prompt(self):
        result = self.runner.invoke(
            cli, ["create-user", "boss@office", "--role", "admin"], input="boss-pass\nboss-pass\n"
        )

        assert result.exit_code == 0, result.output
        assert asyncio.run(login_role(self.config, "boss@office", "boss-pass")) == "admin"

    def test_short_password_is_rejected(self):
        result = self.runner.invoke(cli, ["create-user", "desk@office", "--password", "abc"])

        assert result.exit_code == 1
        assert "at least 6 characters" in result.output

    def test_unknown_role_is_rejected(self):
        result = self.runner.invoke(cli, ["create-user", "desk@office", "--password", "viewer-pass", "--role", "owner"])
        assert result.exit_code == 2
