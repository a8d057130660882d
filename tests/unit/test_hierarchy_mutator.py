"""
Tests for hierarchy writes: creates, reorders, updates and cascading deletes.
"""

from typing import Any, Dict

import pytest

from application.exceptions import (
    BatchLimitExceededError,
    CascadeDeleteError,
    DocumentNotFoundError,
)
from services.hierarchy_mutator import HierarchyMutator

PROGRAM = "courses/prog-1"
MODULES = f"{PROGRAM}/modules"


def build_tree(modules: int, sessions: int, exercises: int, sets: int) -> Dict[str, Dict[str, Any]]:
    """A program with the given number of children at every level."""
    docs: Dict[str, Dict[str, Any]] = {PROGRAM: {"creator_id": "creator-123"}}
    for m in range(modules):
        module = f"{MODULES}/m{m}"
        docs[module] = {"order": m}
        for s in range(sessions):
            session = f"{module}/sessions/s{s}"
            docs[session] = {"order": s}
            for e in range(exercises):
                exercise = f"{session}/exercises/e{e}"
                docs[exercise] = {"order": e}
                for k in range(sets):
                    docs[f"{exercise}/sets/k{k}"] = {"order": k}
    return docs


@pytest.mark.unit
class TestCreates:
    """Tests for create operations."""

    @pytest.mark.asyncio
    async def test_modules_append_with_derived_titles(self, fake_store):
        mutator = HierarchyMutator(fake_store)

        created = [await mutator.create_module("prog-1", name=f"  M{i}  ") for i in range(3)]

        assert [m["order"] for m in created] == [0, 1, 2]
        assert [m["title"] for m in created] == ["Semana 1", "Semana 2", "Semana 3"]
        assert created[0]["description"] == "M0"
        assert fake_store.document(f"{MODULES}/{created[2]['id']}")["order"] == 2

    @pytest.mark.asyncio
    async def test_order_is_max_plus_one_not_count(self, fake_store):
        fake_store.seed({f"{MODULES}/a": {"order": 0}, f"{MODULES}/c": {"order": 2}})

        module = await HierarchyMutator(fake_store).create_module("prog-1", name="Nuevo")

        assert module["order"] == 3
        assert module["title"] == "Semana 4"

    @pytest.mark.asyncio
    async def test_library_module_stores_only_the_reference(self, fake_store):
        module = await HierarchyMutator(fake_store).create_module(
            "prog-1", library_module_ref="lm-1"
        )

        stored = fake_store.document(f"{MODULES}/{module['id']}")
        assert stored["libraryModuleRef"] == "lm-1"
        assert "description" not in stored

    @pytest.mark.asyncio
    async def test_session_exercise_and_set(self, fake_store):
        mutator = HierarchyMutator(fake_store)

        session = await mutator.create_session("prog-1", "m0", name=" Día 1 ", image_url="a.png")
        library_session = await mutator.create_session("prog-1", "m0", library_session_ref="ls-1")
        exercise = await mutator.create_exercise("prog-1", "m0", session["id"], " Remo ")
        first_set = await mutator.create_set("prog-1", "m0", session["id"], exercise["id"])
        second_set = await mutator.create_set("prog-1", "m0", session["id"], exercise["id"])

        assert session["title"] == "Día 1"
        assert session["image_url"] == "a.png"
        assert library_session["order"] == 1
        assert library_session["librarySessionRef"] == "ls-1"
        assert "title" not in library_session
        assert exercise["title"] == exercise["name"] == "Remo"
        assert exercise["order"] == 0
        assert (first_set["title"], second_set["title"]) == ("Serie 1", "Serie 2")

    @pytest.mark.asyncio
    async def test_explicit_order_is_kept(self, fake_store):
        session = await HierarchyMutator(fake_store).create_session("prog-1", "m0", name="X", order=7)

        assert session["order"] == 7


@pytest.mark.unit
class TestReorders:
    """Tests for batched order updates."""

    @pytest.mark.asyncio
    async def test_module_order_rewrites_titles_in_one_batch(self, fake_store):
        fake_store.seed(build_tree(2, 0, 0, 0))

        written = await HierarchyMutator(fake_store).update_module_order(
            "prog-1", [{"id": "m0", "order": 1}, {"id": "m1", "order": 0}]
        )

        assert written == 2
        assert len(fake_store.batches) == 1
        assert fake_store.document(f"{MODULES}/m0")["title"] == "Semana 2"
        assert fake_store.document(f"{MODULES}/m1")["order"] == 0

    @pytest.mark.asyncio
    async def test_entries_without_id_are_skipped(self, fake_store):
        fake_store.seed(build_tree(1, 2, 0, 0))

        written = await HierarchyMutator(fake_store).update_session_order(
            "prog-1", "m0", [{"id": "s1", "order": 0}, {"id": "", "order": 1}]
        )

        assert written == 1
        assert fake_store.document(f"{MODULES}/m0/sessions/s1")["order"] == 0

    @pytest.mark.asyncio
    async def test_empty_reorder_writes_nothing(self, fake_store):
        assert await HierarchyMutator(fake_store).update_exercise_order("prog-1", "m0", "s0", []) == 0
        assert fake_store.batches == []

    @pytest.mark.asyncio
    async def test_over_limit_writes_nothing(self, fake_store):
        fake_store.seed(build_tree(3, 0, 0, 0))
        mutator = HierarchyMutator(fake_store, batch_limit=2)

        with pytest.raises(BatchLimitExceededError) as exc_info:
            await mutator.update_module_order(
                "prog-1", [{"id": f"m{i}", "order": 2 - i} for i in range(3)]
            )

        assert exc_info.value.count == 3
        assert exc_info.value.limit == 2
        assert fake_store.batches == []
        assert fake_store.document(f"{MODULES}/m0")["order"] == 0

    @pytest.mark.asyncio
    async def test_limit_is_capped_at_store_maximum(self, fake_store):
        mutator = HierarchyMutator(fake_store, batch_limit=10_000)

        with pytest.raises(BatchLimitExceededError):
            await mutator.update_module_order(
                "prog-1", [{"id": f"m{i}", "order": i} for i in range(501)]
            )

    @pytest.mark.asyncio
    async def test_missing_document_fails_whole_batch(self, fake_store):
        fake_store.seed(build_tree(1, 0, 0, 0))

        with pytest.raises(DocumentNotFoundError):
            await HierarchyMutator(fake_store).update_module_order(
                "prog-1", [{"id": "m0", "order": 4}, {"id": "ghost", "order": 0}]
            )

        assert fake_store.document(f"{MODULES}/m0")["order"] == 0


@pytest.mark.unit
class TestUpdates:
    """Tests for direct field updates and overrides."""

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, fake_store):
        fake_store.seed(build_tree(1, 1, 1, 1))
        mutator = HierarchyMutator(fake_store)

        await mutator.update_set("prog-1", "m0", "s0", "e0", "k0", {"reps": 8})

        stored = fake_store.document(f"{MODULES}/m0/sessions/s0/exercises/e0/sets/k0")
        assert stored["reps"] == 8
        assert stored["order"] == 0
        assert "updated_at" in stored

    @pytest.mark.asyncio
    async def test_update_missing_document(self, fake_store):
        with pytest.raises(DocumentNotFoundError):
            await HierarchyMutator(fake_store).update_session("prog-1", "m0", "nope", {"title": "X"})

    @pytest.mark.asyncio
    async def test_session_override_created_then_merged(self, fake_store):
        fake_store.seed(build_tree(1, 1, 0, 0))
        mutator = HierarchyMutator(fake_store)
        path = f"{MODULES}/m0/sessions/s0/overrides/data"

        await mutator.update_session_override("prog-1", "m0", "s0", {"title": "A"})
        await mutator.update_session_override("prog-1", "m0", "s0", {"image_url": None})

        stored = fake_store.document(path)
        assert stored["title"] == "A"
        assert stored["image_url"] is None

    @pytest.mark.asyncio
    async def test_override_on_unknown_session_leaves_nothing_behind(self, fake_store):
        fake_store.seed(build_tree(1, 1, 0, 0))
        mutator = HierarchyMutator(fake_store)

        with pytest.raises(DocumentNotFoundError):
            await mutator.update_session_override("prog-1", "m0", "no-such-session", {"title": "A"})
        await mutator.update_session_override("prog-1", "m0", "s0", {"title": "B"})
        await mutator.delete_program("prog-1")

        assert fake_store.paths(PROGRAM) == []


@pytest.mark.unit
class TestCompleteness:
    """Tests for completeness flags."""

    @pytest.mark.asyncio
    async def test_single_flags(self, fake_store):
        fake_store.seed(build_tree(1, 1, 0, 0))
        mutator = HierarchyMutator(fake_store)

        await mutator.update_module_completeness("prog-1", "m0", True)
        await mutator.update_session_completeness("prog-1", "m0", "s0", False)

        module = fake_store.document(f"{MODULES}/m0")
        assert module["isComplete"] is True
        assert "completenessCheckedAt" in module
        assert fake_store.document(f"{MODULES}/m0/sessions/s0")["isComplete"] is False

    @pytest.mark.asyncio
    async def test_batch_skips_unknown_types(self, fake_store):
        fake_store.seed(build_tree(1, 1, 0, 0))

        written = await HierarchyMutator(fake_store).batch_update_completeness(
            [
                {"type": "module", "program_id": "prog-1", "module_id": "m0", "is_complete": True},
                {
                    "type": "session",
                    "program_id": "prog-1",
                    "module_id": "m0",
                    "session_id": "s0",
                    "is_complete": True,
                },
                {"type": "exercise", "program_id": "prog-1", "module_id": "m0", "is_complete": True},
            ]
        )

        assert written == 2
        assert len(fake_store.batches) == 1
        assert fake_store.document(f"{MODULES}/m0/sessions/s0")["isComplete"] is True

    @pytest.mark.asyncio
    async def test_batch_skips_session_without_id(self, fake_store):
        fake_store.seed(build_tree(1, 1, 0, 0))

        written = await HierarchyMutator(fake_store).batch_update_completeness(
            [
                {"type": "session", "program_id": "prog-1", "module_id": "m0", "is_complete": True},
                {"type": "module", "program_id": "prog-1", "module_id": "m0", "is_complete": False},
            ]
        )

        assert written == 1
        assert fake_store.document(f"{MODULES}/m0")["isComplete"] is False
        assert "isComplete" not in fake_store.document(f"{MODULES}/m0/sessions/s0")

    @pytest.mark.asyncio
    async def test_batch_over_limit(self, fake_store):
        updates = [
            {"type": "module", "program_id": "prog-1", "module_id": f"m{i}", "is_complete": True}
            for i in range(3)
        ]

        with pytest.raises(BatchLimitExceededError):
            await HierarchyMutator(fake_store, batch_limit=2).batch_update_completeness(updates)


@pytest.mark.unit
class TestCascadeDeletes:
    """Tests for bottom-up cascading deletes."""

    @pytest.mark.asyncio
    async def test_program_delete_removes_every_document(self, fake_store):
        fake_store.seed(build_tree(2, 2, 2, 2))

        deleted = await HierarchyMutator(fake_store).delete_program("prog-1")

        # 1 program + 2 modules + 4 sessions + 8 exercises + 16 sets
        assert deleted == 31
        assert fake_store.count() == 0

    @pytest.mark.asyncio
    async def test_session_override_is_deleted_with_its_session(self, fake_store):
        fake_store.seed(build_tree(2, 2, 2, 2))
        fake_store.seed({f"{MODULES}/m1/sessions/s0/overrides/data": {"title": "X"}})

        deleted = await HierarchyMutator(fake_store).delete_program("prog-1")

        assert deleted == 32
        assert fake_store.count() == 0

    @pytest.mark.asyncio
    async def test_children_deleted_before_parents(self, fake_store):
        fake_store.seed(build_tree(1, 1, 1, 1))

        await HierarchyMutator(fake_store).delete_module("prog-1", "m0")

        deleted = [path for op, path in fake_store.operations if op == "delete"]
        assert deleted == [
            f"{MODULES}/m0/sessions/s0/exercises/e0/sets/k0",
            f"{MODULES}/m0/sessions/s0/exercises/e0",
            f"{MODULES}/m0/sessions/s0",
            f"{MODULES}/m0",
        ]
        assert fake_store.paths() == [PROGRAM]

    @pytest.mark.asyncio
    async def test_failure_stops_and_reports_progress(self, fake_store):
        fake_store.seed(build_tree(2, 2, 2, 2))
        failing = f"{MODULES}/m1/sessions/s0/exercises/e0/sets/k0"
        fake_store.fail_on_delete(failing)

        with pytest.raises(CascadeDeleteError) as exc_info:
            await HierarchyMutator(fake_store).delete_program("prog-1")

        # the whole of m0 (2 sessions of 7 documents, plus the module)
        assert exc_info.value.deleted_count == 15
        assert exc_info.value.path == failing
        assert fake_store.document(PROGRAM) is not None
        assert fake_store.paths(f"{MODULES}/m0") == []
        assert fake_store.document(failing) is not None

    @pytest.mark.asyncio
    async def test_list_failure_is_a_cascade_error(self, fake_store):
        fake_store.seed(build_tree(1, 1, 1, 0))
        fake_store.fail_on_list(f"{MODULES}/m0/sessions/s0/exercises")

        with pytest.raises(CascadeDeleteError) as exc_info:
            await HierarchyMutator(fake_store).delete_session("prog-1", "m0", "s0")

        assert exc_info.value.deleted_count == 0

    @pytest.mark.asyncio
    async def test_leaf_deletes(self, fake_store):
        fake_store.seed(build_tree(1, 1, 1, 2))
        mutator = HierarchyMutator(fake_store)

        assert await mutator.delete_set("prog-1", "m0", "s0", "e0", "k1") == 1
        assert await mutator.delete_exercise("prog-1", "m0", "s0", "e0") == 2
        assert fake_store.paths(f"{MODULES}/m0/sessions/s0/") == []
