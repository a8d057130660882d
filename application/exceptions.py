"""
Application-layer exceptions.

These exceptions are used across application and infrastructure layers.
Reference-resolution problems never surface through them: the resolver logs
and falls back to standalone data instead.
"""

from typing import Optional


class ContentError(Exception):
    """Base class for program content errors."""

    pass


class ProgramNotFoundError(ContentError):
    """Raised when a program document does not exist."""

    def __init__(self, program_id: str):
        super().__init__(f"Program {program_id} not found")
        self.program_id = program_id


class LibraryModuleNotFoundError(ContentError):
    """Raised when a library module required for a write cannot be found."""

    def __init__(self, library_module_ref: str, creator_id: Optional[str] = None):
        super().__init__(f"Library module {library_module_ref} not found")
        self.library_module_ref = library_module_ref
        self.creator_id = creator_id


class StoreError(ContentError):
    """Error reading from or writing to the document store.

    Adapters wrap client exceptions in this type so callers can handle
    store I/O failures without knowing the backing client.
    """

    pass


class DocumentNotFoundError(StoreError):
    """Raised when a partial update targets a document that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Document {path} not found")
        self.path = path


class BatchLimitExceededError(ContentError):
    """Raised before any write when a batch exceeds the store's ceiling."""

    def __init__(self, count: int, limit: int, what: str = "documents"):
        super().__init__(f"Too many {what} to update at once (max {limit}, got {count})")
        self.count = count
        self.limit = limit


class CascadeDeleteError(ContentError):
    """Error during a bottom-up cascading delete.

    The descendants deleted before the failure stay deleted; ``deleted_count``
    says how many documents that was.
    """

    def __init__(self, path: str, deleted_count: int, cause: Exception):
        super().__init__(f"Failed to delete {path} after {deleted_count} deletions: {cause}")
        self.path = path
        self.deleted_count = deleted_count
