"""
Port interfaces (Protocols) for the program content API.

This package defines the interface contracts that the infrastructure
layer must implement. Using Protocols enables:
- Clean separation of concerns
- Easy testing with in-memory fakes
- Dependency inversion (depend on abstractions, not concretions)
"""

from application.ports.document_store import BatchOperation, DocumentStore

__all__ = [
    "BatchOperation",
    "DocumentStore",
]
