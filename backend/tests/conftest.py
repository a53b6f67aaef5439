"""
Profilebook Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   The environment is pointed at a throwaway SQLite database (aiosqlite)
       and a temporary storage root BEFORE any profilebook module is
       imported, because settings, the engine and the storage service are
       created at import time.

Fixture Hierarchy:
    Function-scoped:
    ├── db_tables:      creates all tables, drops them afterwards, empties images/
    ├── db_session:     AsyncSession on the test database
    ├── test_client:    HTTPX AsyncClient over ASGITransport
    ├── news_transport: swaps the news API for an httpx.MockTransport
    ├── registered:     one registered profile, returns its id
    └── sample_image_bytes
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Optional

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any profilebook import)
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="profilebook_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "public")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["NEWS_API_URL"] = "https://news.test/svc/search.json?api-key="
os.environ["NEWS_API_KEY"] = "test-key-not-real&q="
os.environ["NEWS_TIMEOUT"] = "2"
os.environ["RETRY_MAX_ATTEMPTS"] = "3"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["ERROR_STATUS_MODE"] = "legacy"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from profilebook.database import Base, async_session_factory, engine  # noqa: E402
import profilebook.models.profile  # noqa: E402,F401
from profilebook.services.news_service import news_service  # noqa: E402
from profilebook.services.storage_service import storage_service  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TEST_DIR, ignore_errors=True)


# ══════════════════════════════════════════════════════════════════════════
# Database & Storage
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema and an empty images/ directory for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    for entry in storage_service.images_root.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry, ignore_errors=True)
        else:
            entry.unlink()


@pytest_asyncio.fixture
async def db_session(db_tables):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def images_root() -> Path:
    return storage_service.images_root


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    HTTPX AsyncClient wired straight to the FastAPI app.

    Background tasks finish before the response is handed back, so file
    cleanup is observable right after each call.
    """
    from profilebook.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def registered(test_client) -> Callable:
    """
    Registers a profile and returns its id.

    Usage:
        profile_id = await registered()
        other_id = await registered(name="Bob", email="bob@example.com")
    """

    async def _register(
        name: str = "Ana",
        last_name: str = "Kovac",
        email: str = "ana@example.com",
        password: str = "secret",
    ) -> int:
        response = await test_client.post(
            "/registrate",
            json={"name": name, "lastName": last_name, "email": email, "pass": password},
        )
        assert response.json()["status"] == 200
        login = await test_client.post(
            "/login", json={"name": name, "email": email, "pass": password}
        )
        return login.json()["id"]

    return _register


@pytest_asyncio.fixture
async def news_transport():
    """
    Routes the news client through an httpx.MockTransport.

    Usage:
        news_transport(lambda request: httpx.Response(200, json={"results": []}))

    Returns the list of requests the mock received.
    """
    seen = []

    def install(handler: Callable[[httpx.Request], httpx.Response]):
        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        news_service._transport = httpx.MockTransport(recording)
        news_service._client = None
        return seen

    yield install

    await news_service.close()
    news_service._transport = None


def upload(name: str, content: bytes, content_type: str = "image/jpeg") -> Dict[str, tuple]:
    """Multipart `image` field for httpx."""
    return {"image": (name, content, content_type)}


def files_named(directory: Path, exclude_hidden: bool = True) -> set:
    if not directory.is_dir():
        return set()
    return {p.name for p in directory.iterdir() if not (exclude_hidden and p.name.startswith("."))}


def error_code(payload: Dict) -> Optional[str]:
    """The machine code of an error payload, or None for a normal payload."""
    if isinstance(payload, dict) and payload.get("message") == "Error":
        return payload.get("error")
    return None
