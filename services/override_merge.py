"""
Session overrides.

A program session that references a library session may carry one sparse
override document (``.../sessions/{sid}/overrides/data``). Reads merge it over
the library session; writes merge into it.
"""

import logging
from typing import Any, Dict, Optional

from application.exceptions import DocumentNotFoundError, StoreError
from application.ports import DocumentStore
from core import paths
from core.constants import OVERRIDE_BOOKKEEPING_FIELDS
from core.timestamps import utc_timestamp

logger = logging.getLogger(__name__)


def merge_override(
    library_content: Dict[str, Any],
    override: Optional[Dict[str, Any]],
    program_session_id: str,
    library_session_id: Optional[str] = None,
    order: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Merge a session override over resolved library session content.

    Override keys win, including keys explicitly set to None. The override's
    own ``created_at`` / ``updated_at`` are not copied.

    Args:
        library_content: Library session fields
        override: Override document, or None
        program_session_id: ID of the program-side session (forced as ``id``)
        library_session_id: Library session ID stored as ``librarySessionRef``
        order: Program-side order, applied when given

    Returns:
        Merged session dictionary with the raw override under ``_overrides``
    """
    merged = dict(library_content)
    if override:
        merged.update(
            {
                key: value
                for key, value in override.items()
                if key not in OVERRIDE_BOOKKEEPING_FIELDS and key != "id"
            }
        )

    merged["id"] = program_session_id
    merged["librarySessionRef"] = library_session_id or library_content.get("id")
    if order is not None:
        merged["order"] = order
    merged["_overrides"] = override or None
    return merged


def session_title(session: Dict[str, Any]) -> Optional[str]:
    """Display title of a resolved session: title, else name."""
    return session.get("title") or session.get("name")


class OverrideStore:
    """Reads and writes the per-session override singleton."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get(
        self, program_id: str, module_id: str, session_id: str
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch the override of a program session.

        Returns:
            Override fields (without ``id``), or None when absent or unreadable
        """
        path = paths.program_paths(program_id).override(module_id, session_id)
        try:
            override = await self._store.get(path)
        except StoreError as e:
            logger.error(f"Error fetching session override {path}: {e}")
            return None
        if override is None:
            return None
        return {key: value for key, value in override.items() if key != "id"}

    async def put(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        fields: Dict[str, Any],
    ) -> None:
        """
        Merge fields into the session override, creating it when absent.

        The override only attaches to an existing program session document,
        so cascade deletes of that session always reach it.

        Args:
            program_id: Program ID
            module_id: Module ID
            session_id: Program session ID
            fields: Override fields to set

        Raises:
            DocumentNotFoundError: If the program session does not exist
        """
        program = paths.program_paths(program_id)
        session_path = program.session(module_id, session_id)
        session = await self._store.get(session_path)
        if session is None:
            raise DocumentNotFoundError(session_path)
        if not session.get("librarySessionRef"):
            logger.warning(f"Override written on standalone session {session_path}; reads ignore it")

        path = program.override(module_id, session_id)
        now = utc_timestamp()
        try:
            await self._store.update(path, {**fields, "updated_at": now})
        except DocumentNotFoundError:
            logger.info(f"Creating session override {path}")
            await self._store.set(path, {**fields, "created_at": now, "updated_at": now})
