"""
Unit tests for the Supabase document store adapter.

The Supabase client is replaced by a MagicMock whose query builder returns
itself, so each test can check the calls the adapter makes.
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, Mock

import pytest

from application.exceptions import BatchLimitExceededError, DocumentNotFoundError, StoreError
from application.ports import BatchOperation
from infrastructure.db.document_store import SupabaseDocumentStore

pytestmark = pytest.mark.unit

_BUILDER_METHODS = ("select", "eq", "contains", "filter", "order", "limit", "insert", "upsert", "delete")


@pytest.fixture
def query():
    """Query builder mock; every builder call returns the same mock."""
    builder = MagicMock()
    for name in _BUILDER_METHODS:
        getattr(builder, name).return_value = builder
    builder.execute.return_value = Mock(data=[])
    return builder


@pytest.fixture
def supabase_client(query):
    client = MagicMock()
    client.table.return_value = query
    client.rpc.return_value.execute.return_value = Mock(data=True)
    return client


@pytest.fixture
def store(supabase_client):
    executor = ThreadPoolExecutor(max_workers=1)
    yield SupabaseDocumentStore(supabase_client, table="documents", executor=executor)
    executor.shutdown(wait=True)


class TestReads:
    """Tests for get and list."""

    @pytest.mark.asyncio
    async def test_get_returns_fields_with_id(self, store, supabase_client, query):
        query.execute.return_value = Mock(data=[{"doc_id": "m1", "data": {"order": 0}}])

        document = await store.get("courses/p1/modules/m1")

        assert document == {"order": 0, "id": "m1"}
        supabase_client.table.assert_called_with("documents")
        query.eq.assert_called_with("path", "courses/p1/modules/m1")
        query.limit.assert_called_with(1)

    @pytest.mark.asyncio
    async def test_get_missing_document(self, store):
        assert await store.get("courses/p1") is None

    @pytest.mark.asyncio
    async def test_list_filters_by_collection(self, store, query):
        query.execute.return_value = Mock(
            data=[{"doc_id": "a", "data": {"order": 1}}, {"doc_id": "b", "data": None}]
        )

        documents = await store.list("courses/p1/modules")

        assert documents == [{"order": 1, "id": "a"}, {"id": "b"}]
        query.eq.assert_called_with("collection", "courses/p1/modules")
        query.order.assert_not_called()
        query.contains.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_ordered_excludes_missing_field(self, store, query):
        await store.list("courses/p1/modules", order_by="order", descending=True, limit=1)

        query.filter.assert_called_with("data->order", "not.is", "null")
        query.order.assert_called_with("data->order", desc=True)
        query.limit.assert_called_with(1)

    @pytest.mark.asyncio
    async def test_list_where_uses_jsonb_containment(self, store, query):
        await store.list("client_programs", where={"program_id": "p1"})

        query.contains.assert_called_with("data", {"program_id": "p1"})

    @pytest.mark.asyncio
    async def test_client_error_becomes_store_error(self, store, query):
        query.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(StoreError, match="connection reset"):
            await store.get("courses/p1")


class TestWrites:
    """Tests for create, set, update, delete and batch writes."""

    @pytest.mark.asyncio
    async def test_create_inserts_path_keyed_row(self, store, query):
        doc_id = await store.create("courses/p1/modules", {"order": 0}, doc_id="m1")

        assert doc_id == "m1"
        query.insert.assert_called_with(
            {
                "path": "courses/p1/modules/m1",
                "collection": "courses/p1/modules",
                "doc_id": "m1",
                "data": {"order": 0},
            }
        )

    @pytest.mark.asyncio
    async def test_create_generates_id(self, store, query):
        doc_id = await store.create("courses", {"title": "P"})

        assert doc_id
        assert query.insert.call_args[0][0]["path"] == f"courses/{doc_id}"

    @pytest.mark.asyncio
    async def test_create_if_absent(self, store, query):
        query.execute.return_value = Mock(data=[{"path": "x/y"}])
        assert await store.create_if_absent("x/y", {"a": 1}) is True
        query.upsert.assert_called_with(
            {"path": "x/y", "collection": "x", "doc_id": "y", "data": {"a": 1}},
            on_conflict="path",
            ignore_duplicates=True,
        )

        query.execute.return_value = Mock(data=[])
        assert await store.create_if_absent("x/y", {"a": 1}) is False

    @pytest.mark.asyncio
    async def test_set_upserts(self, store, query):
        await store.set("client_programs/u1_p1", {"program_id": "p1"})

        query.upsert.assert_called_with(
            {
                "path": "client_programs/u1_p1",
                "collection": "client_programs",
                "doc_id": "u1_p1",
                "data": {"program_id": "p1"},
            },
            on_conflict="path",
        )

    @pytest.mark.asyncio
    async def test_update_calls_merge_procedure(self, store, supabase_client):
        await store.update("courses/p1", {"title": "T"})

        supabase_client.rpc.assert_called_with(
            "merge_document", {"p_path": "courses/p1", "p_fields": {"title": "T"}}
        )

    @pytest.mark.asyncio
    async def test_update_missing_document(self, store, supabase_client):
        supabase_client.rpc.return_value.execute.return_value = Mock(data=False)

        with pytest.raises(DocumentNotFoundError):
            await store.update("courses/p1", {"title": "T"})

    @pytest.mark.asyncio
    async def test_delete(self, store, query):
        await store.delete("courses/p1/modules/m1")

        query.delete.assert_called_once()
        query.eq.assert_called_with("path", "courses/p1/modules/m1")

    @pytest.mark.asyncio
    async def test_batch_write_is_one_procedure_call(self, store, supabase_client):
        supabase_client.rpc.return_value.execute.return_value = Mock(data=[])

        await store.batch_write(
            [
                BatchOperation("courses/p1/modules/a", {"order": 1}),
                BatchOperation("courses/p1/modules/b", {"order": 0}),
            ]
        )

        supabase_client.rpc.assert_called_once_with(
            "merge_documents_batch",
            {
                "p_ops": [
                    {"path": "courses/p1/modules/a", "fields": {"order": 1}},
                    {"path": "courses/p1/modules/b", "fields": {"order": 0}},
                ]
            },
        )

    @pytest.mark.asyncio
    async def test_batch_write_with_missing_document(self, store, supabase_client):
        supabase_client.rpc.return_value.execute.return_value = Mock(data=["courses/p1/modules/ghost"])

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await store.batch_write(
                [
                    BatchOperation("courses/p1/modules/a", {"order": 1}),
                    BatchOperation("courses/p1/modules/ghost", {"order": 0}),
                ]
            )

        assert exc_info.value.path == "courses/p1/modules/ghost"

    @pytest.mark.asyncio
    async def test_batch_write_over_limit(self, store, supabase_client):
        operations = [BatchOperation(f"courses/p1/modules/m{i}", {"order": i}) for i in range(3)]

        with pytest.raises(BatchLimitExceededError):
            await store.batch_write(operations, max_ops=2)

        supabase_client.rpc.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_batch_is_a_no_op(self, store, supabase_client):
        await store.batch_write([])

        supabase_client.rpc.assert_not_called()
