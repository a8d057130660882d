"""
Database infrastructure package.
"""

from infrastructure.db.document_store import SupabaseDocumentStore

__all__ = [
    "SupabaseDocumentStore",
]
