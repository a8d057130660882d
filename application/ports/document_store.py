"""
Document store port (interface).

This Protocol defines the contract for the remote hierarchical document
store that backs programs, libraries and plans. Infrastructure
implementations (e.g., Supabase) must satisfy this interface.

The store offers per-document atomic writes and bounded batched writes.
It does not offer multi-document transactions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from core.constants import MAX_BATCH_OPERATIONS


@dataclass
class BatchOperation:
    """A single partial update inside a batched write."""

    path: str
    fields: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    """
    Repository interface for hierarchical document persistence.

    Documents are dictionaries. Returned documents always carry their ``id``
    (the last path segment) merged over the stored fields.
    """

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Get a single document.

        Args:
            path: Document path, e.g. "courses/p1/modules/m1"

        Returns:
            Document dictionary with "id" if found, None otherwise
        """
        ...

    async def list(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        where: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        List the documents directly inside a collection.

        Args:
            collection_path: Collection path, e.g. "courses/p1/modules"
            order_by: Field to sort by (documents without it are excluded)
            descending: Reverse the sort
            limit: Maximum number of documents to return
            where: Equality filters on top-level fields

        Returns:
            List of document dictionaries with "id"
        """
        ...

    async def create(
        self,
        collection_path: str,
        fields: Dict[str, Any],
        doc_id: Optional[str] = None,
    ) -> str:
        """
        Create a new document in a collection.

        Args:
            collection_path: Collection to create the document in
            fields: Document fields
            doc_id: Explicit document ID (generated when omitted)

        Returns:
            The new document's ID
        """
        ...

    async def create_if_absent(self, path: str, fields: Dict[str, Any]) -> bool:
        """
        Create a document at an exact path unless one already exists.

        Args:
            path: Document path
            fields: Document fields

        Returns:
            True if this call created the document, False if it existed
        """
        ...

    async def set(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Create or fully replace the document at ``path``.

        Args:
            path: Document path
            fields: Complete document fields
        """
        ...

    async def update(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Args:
            path: Document path
            fields: Fields to overwrite; other fields are kept

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        ...

    async def delete(self, path: str) -> None:
        """
        Delete a single document. Child collections are not touched.

        Args:
            path: Document path
        """
        ...

    async def batch_write(
        self,
        operations: List[BatchOperation],
        max_ops: int = MAX_BATCH_OPERATIONS,
    ) -> None:
        """
        Apply partial updates to several documents in one batch.

        The batch is all-or-nothing: every target must exist, otherwise no
        update is applied.

        Args:
            operations: Updates to apply
            max_ops: Ceiling on the number of operations

        Raises:
            BatchLimitExceededError: If more than ``max_ops`` operations are given
            DocumentNotFoundError: If any target document is missing
        """
        ...
