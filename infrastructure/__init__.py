"""
Infrastructure layer package for the program content API.

This package contains concrete implementations of the port interfaces.
"""

from infrastructure.db import SupabaseDocumentStore

__all__ = [
    "SupabaseDocumentStore",
]
