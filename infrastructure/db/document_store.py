"""
Supabase implementation of DocumentStore.

Hierarchical documents are stored as rows of a single table (``documents``
by default) keyed by their full path:

    create table documents (
        path        text primary key,
        collection  text not null,
        doc_id      text not null,
        data        jsonb not null default '{}'::jsonb,
        created_at  timestamptz not null default now(),
        updated_at  timestamptz not null default now()
    );
    create index documents_collection_idx on documents (collection);

Field merges go through two stored procedures so that each document update
(and each batch) is applied atomically by Postgres:

    merge_document(p_path text, p_fields jsonb) returns boolean
    merge_documents_batch(p_ops jsonb) returns text[]

``merge_document`` returns false when the row is missing.
``merge_documents_batch`` first collects the paths in ``p_ops`` with no row;
when any are missing it writes nothing and returns them, otherwise it merges
every operation and returns an empty array.

The Supabase Python client is synchronous; every call runs in a thread
pool so the async engine above never blocks the event loop.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from supabase import Client

from application.exceptions import BatchLimitExceededError, DocumentNotFoundError, StoreError
from application.ports.document_store import BatchOperation
from core.constants import MAX_BATCH_OPERATIONS
from core.paths import document_id, join, parent_collection

logger = logging.getLogger(__name__)


class SupabaseDocumentStore:
    """
    Supabase-backed document store implementation.

    Queries against a single path-keyed table:
    - path: full document path (primary key)
    - collection: parent collection path (listing index)
    - data: document fields as jsonb
    """

    def __init__(
        self,
        client: Client,
        table: str = "documents",
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Initialize store with Supabase client.

        Args:
            client: Authenticated Supabase client
            table: Name of the documents table
            executor: Thread pool for the blocking client calls
        """
        self._client = client
        self._table = table
        self._executor = executor or ThreadPoolExecutor(
            max_workers=8, thread_name_prefix="document_store_"
        )

    async def _run(self, description: str, fn: Callable[[], Any]) -> Any:
        """Run a blocking client call in the pool, wrapping client errors."""
        try:
            return await asyncio.get_event_loop().run_in_executor(self._executor, fn)
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Document store call failed ({description}): {e}")
            raise StoreError(f"Document store {description} failed: {e}") from e

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> Dict[str, Any]:
        return {**(row.get("data") or {}), "id": row["doc_id"]}

    def _row(self, path: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "path": path,
            "collection": parent_collection(path),
            "doc_id": document_id(path),
            "data": fields,
        }

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Get a single document by path.

        Args:
            path: Document path

        Returns:
            Document dictionary if found, None otherwise
        """

        def _query():
            return (
                self._client.table(self._table)
                .select("doc_id, data")
                .eq("path", path)
                .limit(1)
                .execute()
            )

        response = await self._run(f"get {path}", _query)
        if not response.data:
            return None
        return self._to_document(response.data[0])

    async def list(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        List documents of a collection.

        When ``order_by`` is given, documents lacking that field are left out
        of the result, matching the ordered-query semantics of the store.

        Args:
            collection_path: Collection path
            order_by: Field to sort by
            descending: Reverse the sort
            limit: Maximum number of documents
            where: Equality filters on top-level fields

        Returns:
            List of document dictionaries
        """

        def _query():
            query = (
                self._client.table(self._table)
                .select("doc_id, data")
                .eq("collection", collection_path)
            )
            if where:
                query = query.contains("data", where)
            if order_by:
                query = query.filter(f"data->{order_by}", "not.is", "null")
                query = query.order(f"data->{order_by}", desc=descending)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        response = await self._run(f"list {collection_path}", _query)
        return [self._to_document(row) for row in response.data or []]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        collection_path: str,
        fields: Dict[str, Any],
        doc_id: Optional[str] = None,
    ) -> str:
        """
        Create a new document.

        Args:
            collection_path: Collection path
            fields: Document fields
            doc_id: Explicit ID, generated when omitted

        Returns:
            The new document's ID
        """
        new_id = doc_id or str(uuid4())
        row = self._row(join(collection_path, new_id), fields)

        def _insert():
            return self._client.table(self._table).insert(row).execute()

        await self._run(f"create in {collection_path}", _insert)
        return new_id

    async def create_if_absent(self, path: str, fields: Dict[str, Any]) -> bool:
        """
        Insert the document unless a row with the same path exists.

        Args:
            path: Document path
            fields: Document fields

        Returns:
            True if a row was inserted
        """
        row = self._row(path, fields)

        def _upsert():
            return (
                self._client.table(self._table)
                .upsert(row, on_conflict="path", ignore_duplicates=True)
                .execute()
            )

        response = await self._run(f"create_if_absent {path}", _upsert)
        return bool(response.data)

    async def set(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Create or replace the document at path.

        Args:
            path: Document path
            fields: Complete document fields
        """
        row = self._row(path, fields)

        def _upsert():
            return (
                self._client.table(self._table)
                .upsert(row, on_conflict="path")
                .execute()
            )

        await self._run(f"set {path}", _upsert)

    async def update(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Args:
            path: Document path
            fields: Fields to merge

        Raises:
            DocumentNotFoundError: If no document exists at path
        """

        def _merge():
            return self._client.rpc(
                "merge_document",
                {"p_path": path, "p_fields": fields},
            ).execute()

        response = await self._run(f"update {path}", _merge)
        if not response.data:
            raise DocumentNotFoundError(path)

    async def delete(self, path: str) -> None:
        """
        Delete a single document.

        Args:
            path: Document path
        """

        def _delete():
            return self._client.table(self._table).delete().eq("path", path).execute()

        await self._run(f"delete {path}", _delete)

    async def batch_write(
        self,
        operations: List[BatchOperation],
        max_ops: int = MAX_BATCH_OPERATIONS,
    ) -> None:
        """
        Merge fields into several documents in one stored-procedure call.

        Args:
            operations: Partial updates
            max_ops: Maximum operations per batch

        Raises:
            BatchLimitExceededError: If the batch is too large
            DocumentNotFoundError: If any target document is missing; nothing is written
        """
        if len(operations) > max_ops:
            raise BatchLimitExceededError(len(operations), max_ops, "operations")
        if not operations:
            return

        payload = [{"path": op.path, "fields": op.fields} for op in operations]

        def _merge_batch():
            return self._client.rpc("merge_documents_batch", {"p_ops": payload}).execute()

        response = await self._run(f"batch_write ({len(operations)} ops)", _merge_batch)
        missing = response.data or []
        if missing:
            logger.warning(f"Batch rejected, {len(missing)} of {len(operations)} documents missing")
            raise DocumentNotFoundError(missing[0])
        logger.debug(f"Committed batch of {len(operations)} document updates")
