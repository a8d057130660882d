"""
Fake implementations for testing.

This package provides in-memory fake implementations of the store
interface for fast, isolated testing without database dependencies.
"""

from tests.fakes.document_store import FakeDocumentStore

__all__ = [
    "FakeDocumentStore",
]
