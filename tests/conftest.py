"""
Pytest fixtures for program content API tests.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from api.deps import get_current_user, get_document_store
from backend.main import create_app
from backend.settings import Settings
from services.program_content import ProgramContentService
from tests.fakes import FakeDocumentStore


# ---------------------------------------------------------------------------
# Auth Mock
# ---------------------------------------------------------------------------

TEST_USER_ID = "creator-123"
OTHER_USER_ID = "creator-456"


async def mock_get_current_user() -> str:
    """Mock auth dependency that returns a test creator."""
    return TEST_USER_ID


# ---------------------------------------------------------------------------
# Test App and Client
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Test settings with minimal configuration."""
    return Settings(
        environment="test",
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="test-key",
        _env_file=None,
    )


@pytest.fixture(scope="session")
def app(test_settings):
    """Create test application instance."""
    return create_app(settings=test_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """
    Per-test FastAPI TestClient (for tests needing fresh state).
    Properly cleans up dependency overrides after each test.
    """
    app.dependency_overrides[get_current_user] = mock_get_current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Mock Environment Variables
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables for tests."""
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "test-supabase-key")
    monkeypatch.setenv("ENVIRONMENT", "test")


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------

PROGRAM_ID = "prog-1"
LIBRARY = f"creator_libraries/{TEST_USER_ID}"
PROGRAM = f"courses/{PROGRAM_ID}"


@pytest.fixture
def library_documents() -> Dict[str, Dict[str, Any]]:
    """
    A creator library with one module of two sessions.

    ls-1 has one exercise with two sets; ls-2 has only a name.
    """
    return {
        f"{LIBRARY}/modules/lm-1": {
            "title": "Fuerza base",
            "version": "2.0",
            "sessionRefs": [
                {"librarySessionRef": "ls-1", "order": 0},
                {"librarySessionRef": "ls-2", "order": 1},
            ],
        },
        f"{LIBRARY}/sessions/ls-1": {"title": "Pierna", "version": "1.3", "image_url": "leg.png"},
        f"{LIBRARY}/sessions/ls-2": {"name": "Empuje"},
        f"{LIBRARY}/sessions/ls-1/exercises/le-1": {"title": "Sentadilla", "order": 0},
        f"{LIBRARY}/sessions/ls-1/exercises/le-1/sets/set-a": {"order": 0, "reps": 5},
        f"{LIBRARY}/sessions/ls-1/exercises/le-1/sets/set-b": {"order": 1, "reps": 3},
    }


@pytest.fixture
def program_documents() -> Dict[str, Dict[str, Any]]:
    """A program with one library module and one standalone module."""
    return {
        PROGRAM: {
            "creator_id": TEST_USER_ID,
            "title": "Programa de prueba",
            "status": "draft",
            "version": "2026-01",
        },
        f"{PROGRAM}/modules/mod-lib": {"order": 0, "libraryModuleRef": "lm-1"},
        f"{PROGRAM}/modules/mod-std": {"order": 1, "title": "Semana 2", "description": "Cardio"},
        f"{PROGRAM}/modules/mod-std/sessions/sess-1": {"order": 0, "title": "Día 1"},
        f"{PROGRAM}/modules/mod-std/sessions/sess-1/exercises/ex-1": {
            "order": 0,
            "title": "Remo",
            "name": "Remo",
        },
        f"{PROGRAM}/modules/mod-std/sessions/sess-1/exercises/ex-1/sets/set-1": {
            "order": 0,
            "title": "Serie 1",
        },
    }


@pytest.fixture
def fake_store() -> FakeDocumentStore:
    """Create an empty fake document store."""
    return FakeDocumentStore()


@pytest.fixture
def seeded_store(fake_store, library_documents, program_documents) -> FakeDocumentStore:
    """Fake store seeded with the library and program fixtures."""
    fake_store.seed(library_documents)
    fake_store.seed(program_documents)
    return fake_store


@pytest.fixture
def content_service(seeded_store) -> ProgramContentService:
    """ProgramContentService over the seeded fake store."""
    return ProgramContentService(seeded_store)


@pytest.fixture
def client_with_fake_store(app, fake_store) -> Generator[TestClient, None, None]:
    """TestClient with the empty fake store injected."""
    app.dependency_overrides[get_current_user] = mock_get_current_user
    app.dependency_overrides[get_document_store] = lambda: fake_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client_with_seeded_store(app, seeded_store) -> Generator[TestClient, None, None]:
    """TestClient with the seeded fake store injected."""
    app.dependency_overrides[get_current_user] = mock_get_current_user
    app.dependency_overrides[get_document_store] = lambda: seeded_store
    yield TestClient(app)
    app.dependency_overrides.clear()
