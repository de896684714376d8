"""
Horoscope Desk Backend: Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the whole suite.
How:   The embedded backend runs for real against a fresh SQLite file per
       test, so dialect translation, bootstrap, upserts and constraint
       errors go through aiosqlite exactly as in the desktop build. The
       MySQL backend is exercised with mocks in test_gateway.py.

Fixture Hierarchy (all function-scoped):
    ├── sqlite_settings: Settings pointing at tmp_path/horoscope.db
    ├── gateway:         Gateway over that file (disposed after the test)
    ├── test_client:     HTTPX AsyncClient wired to a fresh app + gateway
    └── login_as:        puts a session cookie for a role on test_client
"""

import os
import tempfile

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Before any horoscope_desk import: the settings singleton reads these once.
os.environ["DATABASE_TYPE"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(tempfile.mkdtemp(prefix="horoscope_test_"), "horoscope.db")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SESSION_SECRET", None)
os.environ.pop("ENVIRONMENT", None)

from horoscope_desk.config import Settings  # noqa: E402
from horoscope_desk.database import Gateway  # noqa: E402
from horoscope_desk.services.session import SESSION_COOKIE, Session, encode_session  # noqa: E402

ADMIN_EMAIL = "admin@local"
ADMIN_PASSWORD = "admin123"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sqlite_settings(tmp_path):
    """Settings for an embedded database that does not exist yet."""
    return Settings(
        database_type="sqlite",
        sqlite_path=str(tmp_path / "data" / "horoscope.db"),
        admin_password=ADMIN_PASSWORD,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def gateway(sqlite_settings):
    """
    A Gateway over a brand-new SQLite file.

    Usage:
        async def test_something(gateway):
            rows, _ = await gateway.execute("SELECT * FROM users")
    """
    gw = Gateway(sqlite_settings)
    yield gw
    await gw.dispose()


@pytest_asyncio.fixture
async def test_client(gateway):
    """
    HTTPX AsyncClient talking to a freshly built app.

    ASGITransport does not run the lifespan, so the test gateway is
    installed on app.state directly.
    """
    from horoscope_desk.main import create_app

    app = create_app()
    app.state.gateway = gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def login_as(test_client):
    """
    Returns a function that sets a session cookie on test_client.

    Usage:
        login_as("viewer")
        response = await test_client.get("/api/settings/viewer-menus")
    """

    def _login(role: str, user_id: int = 1) -> None:
        test_client.cookies.set(SESSION_COOKIE, encode_session(Session(user_id=user_id, role=role)))

    return _login


@pytest.fixture
def sample_registration():
    return {
        "registration_id": "M1001",
        "name": "Arun Kumar",
        "role": "male",
        "phone": " 9876543210 ",
        "whatsapp_number": "+91 98765-43210",
        "notes": "Prefers Chennai",
        "address": "  12 Temple Street  ",
    }
