"""
Tests for lazy session materialization.
"""

import asyncio

import pytest

from services.materializer import SessionMaterializer, placeholder_session_id

SESSIONS = "courses/prog-1/modules/mod-1/sessions"


@pytest.mark.unit
class TestPlaceholderSessionId:
    """Tests for deterministic placeholder IDs."""

    def test_is_deterministic(self):
        assert placeholder_session_id("mod-1", "ls-1") == placeholder_session_id("mod-1", "ls-1")

    def test_differs_by_module_and_session(self):
        ids = {
            placeholder_session_id("mod-1", "ls-1"),
            placeholder_session_id("mod-2", "ls-1"),
            placeholder_session_id("mod-1", "ls-2"),
        }
        assert len(ids) == 3

    def test_is_a_valid_path_segment(self):
        session_id = placeholder_session_id("mod-1", "ls/1")

        assert session_id.startswith("lib-")
        assert "/" not in session_id


@pytest.mark.unit
class TestEnsureSessionDocument:
    """Tests for SessionMaterializer.ensure_session_document."""

    @pytest.mark.asyncio
    async def test_existing_session_is_reused(self, fake_store):
        fake_store.seed({f"{SESSIONS}/old-random-id": {"order": 0, "librarySessionRef": "ls-1"}})

        session_id = await SessionMaterializer(fake_store).ensure_session_document(
            "prog-1", "mod-1", "ls-1"
        )

        assert session_id == "old-random-id"
        assert fake_store.created == []

    @pytest.mark.asyncio
    async def test_creates_placeholder(self, fake_store):
        session_id = await SessionMaterializer(fake_store).ensure_session_document(
            "prog-1", "mod-1", "ls-1", order=3
        )

        document = fake_store.document(f"{SESSIONS}/{session_id}")
        assert session_id == placeholder_session_id("mod-1", "ls-1")
        assert document["order"] == 3
        assert document["librarySessionRef"] == "ls-1"
        assert "created_at" in document and "updated_at" in document

    @pytest.mark.asyncio
    async def test_order_defaults_to_sibling_count(self, fake_store):
        fake_store.seed(
            {
                f"{SESSIONS}/a": {"order": 0, "title": "A"},
                f"{SESSIONS}/b": {"order": 1, "title": "B"},
            }
        )

        session_id = await SessionMaterializer(fake_store).ensure_session_document(
            "prog-1", "mod-1", "ls-1"
        )

        assert fake_store.document(f"{SESSIONS}/{session_id}")["order"] == 2

    @pytest.mark.asyncio
    async def test_second_call_creates_nothing(self, fake_store):
        materializer = SessionMaterializer(fake_store)

        first = await materializer.ensure_session_document("prog-1", "mod-1", "ls-1", 0)
        second = await materializer.ensure_session_document("prog-1", "mod-1", "ls-1", 0)

        assert first == second
        assert len(fake_store.created) == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_converge_on_one_document(self, fake_store):
        materializer = SessionMaterializer(fake_store)

        ids = await asyncio.gather(
            *(materializer.ensure_session_document("prog-1", "mod-1", "ls-1", 0) for _ in range(5))
        )

        assert len(set(ids)) == 1
        assert fake_store.count(SESSIONS) == 1
