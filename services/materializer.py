"""
Lazy creation of program-side sessions for library sessions.

When a library module is resolved and one of its library sessions has no
program session yet, a placeholder session document is created so that an
override has somewhere to attach.
"""

import hashlib
import logging
from typing import Optional

from application.ports import DocumentStore
from core import paths
from core.timestamps import utc_timestamp

logger = logging.getLogger(__name__)

PLACEHOLDER_ID_PREFIX = "lib-"


def placeholder_session_id(module_id: str, library_session_id: str) -> str:
    """
    Deterministic ID for the placeholder of a library session in a module.

    Concurrent resolutions of the same module compute the same ID, so only
    one placeholder can ever be created.
    """
    digest = hashlib.sha1(f"{module_id}:{library_session_id}".encode("utf-8")).hexdigest()
    return f"{PLACEHOLDER_ID_PREFIX}{digest[:20]}"


class SessionMaterializer:
    """Ensures a program session exists for a library session reference."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def ensure_session_document(
        self,
        program_id: str,
        module_id: str,
        library_session_id: str,
        order: Optional[int] = None,
    ) -> str:
        """
        Return the program session referencing ``library_session_id``,
        creating a placeholder when none exists.

        Args:
            program_id: Program ID
            module_id: Program module ID
            library_session_id: Library session ID to reference
            order: Placeholder order (defaults to the number of sibling sessions)

        Returns:
            ID of the existing or newly created program session
        """
        program = paths.program_paths(program_id)
        siblings = await self._store.list(program.sessions(module_id))
        for session in siblings:
            if session.get("librarySessionRef") == library_session_id:
                return session["id"]

        session_id = placeholder_session_id(module_id, library_session_id)
        now = utc_timestamp()
        created = await self._store.create_if_absent(
            program.session(module_id, session_id),
            {
                "order": order if order is not None else len(siblings),
                "librarySessionRef": library_session_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        if created:
            logger.info(
                f"Materialized session {session_id} for library session "
                f"{library_session_id} in {program_id}/{module_id}"
            )
        return session_id
