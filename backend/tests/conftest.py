"""
NoteBoard Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Platform fakes (AsyncMock, no network):
    ├── data_client / storage_client / auth_client
    └── platform_clients: the three bundled as PlatformClients

    Board:
    ├── temp_storage / previews: PreviewService on a temporary directory
    └── board: NoteBoard wired to the fakes with a fixed clock

    API:
    ├── registry: SessionRegistry whose sessions all use the fakes
    └── test_client: HTTPX AsyncClient talking to the FastAPI app
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any noteboard import: settings and singletons read them
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="noteboard_test_")
os.environ["PLATFORM_DATA_URL"] = "https://platform.test/data"
os.environ["PLATFORM_STORAGE_URL"] = "https://platform.test/storage"
os.environ["PLATFORM_AUTH_URL"] = "https://platform.test/auth"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

from httpx import AsyncClient, ASGITransport  # noqa: E402

from noteboard.clients.base import PlatformClients  # noqa: E402
from noteboard.schemas.note import CurrentUser  # noqa: E402
from noteboard.services.note_board import NoteBoard  # noqa: E402
from noteboard.services.preview_service import PreviewService  # noqa: E402
from noteboard.services.session_registry import SessionRegistry  # noqa: E402

# Fixed clock: 171.234 s → key prefix "171234"
FIXED_CLOCK = 171.234

TEST_TOKEN = "token-alice"


def signed_url_for(path: str) -> str:
    return f"https://cdn.platform.test/{path}?sig=abc"


# ══════════════════════════════════════════════════════════════════════════
# Platform Fakes
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def data_client():
    """
    Fake DataClient.

    Usage:
        data_client.list_notes.return_value = [Note(id="n1", name="A")]
    """
    client = MagicMock()
    client.list_notes = AsyncMock(return_value=[])
    client.create_note = AsyncMock()
    client.delete_note = AsyncMock(return_value=None)
    return client


@pytest.fixture
def storage_client():
    """
    Fake StorageClient for identity "u1".

    upload() resolves the caller's path builder with "u1" like the platform;
    get_signed_url() returns a deterministic URL per path.
    """
    client = MagicMock()
    client.upload = AsyncMock(side_effect=lambda path, data, content_type=None: path("u1"))
    client.get_signed_url = AsyncMock(side_effect=signed_url_for)
    client.remove = AsyncMock(return_value=None)
    return client


@pytest.fixture
def auth_client():
    client = MagicMock()
    client.get_current_user = AsyncMock(
        return_value=CurrentUser(username="alice", user_id="sub-1")
    )
    client.sign_out = AsyncMock(return_value=None)
    return client


@pytest.fixture
def platform_clients(data_client, storage_client, auth_client):
    return PlatformClients(data=data_client, storage=storage_client, auth=auth_client)


# ══════════════════════════════════════════════════════════════════════════
# Board
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def previews(temp_storage):
    return PreviewService(storage_root=temp_storage)


@pytest.fixture
def board(platform_clients, previews):
    return NoteBoard(platform_clients, previews=previews, clock=lambda: FIXED_CLOCK)


@pytest.fixture
def sample_image_bytes():
    """
    A 1x1 RGBA PNG: signature, IHDR, IDAT and IEND chunks.

    Complete enough for libmagic to report image/png.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
        b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N"
        b"\x00\x00\x00\x00IEND\xaeB`\x82"
    )


# ══════════════════════════════════════════════════════════════════════════
# API
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def registry(platform_clients):
    """SessionRegistry whose every session is bound to the fake clients."""
    reg = SessionRegistry(client_factory=lambda http, token: platform_clients)
    yield reg
    await reg.shutdown()


@pytest_asyncio.fixture
async def test_client(registry):
    """
    Async HTTP test client for endpoint testing.

    The registry dependency is overridden so no request reaches a platform.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from noteboard.main import app
    from noteboard.routes.dependencies import get_registry

    app.dependency_overrides[get_registry] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {TEST_TOKEN}"},
    ) as client:
        yield client
    app.dependency_overrides.clear()
