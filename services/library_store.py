"""
Read access to a creator's library.

Library modules and sessions live under ``creator_libraries/{creatorId}``.
Library session exercises carry their sets nested, the shape every program
read returns for library-backed sessions.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from application.ports import DocumentStore
from core import paths

logger = logging.getLogger(__name__)


class LibraryStore:
    """Fetches library modules, sessions, exercises and sets for one store."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_library_module(
        self, creator_id: str, library_module_id: str
    ) -> Optional[Dict[str, Any]]:
        return await self._store.get(paths.library_module(creator_id, library_module_id))

    async def get_library_session(
        self, creator_id: str, library_session_id: str
    ) -> Optional[Dict[str, Any]]:
        return await self._store.get(paths.library_session(creator_id, library_session_id))

    async def get_library_exercise_sets(
        self, creator_id: str, library_session_id: str, exercise_id: str
    ) -> List[Dict[str, Any]]:
        return await self._store.list(
            paths.library_sets(creator_id, library_session_id, exercise_id),
            order_by="order",
        )

    async def get_library_session_exercises(
        self, creator_id: str, library_session_id: str
    ) -> List[Dict[str, Any]]:
        """
        Exercises of a library session, each with its ``sets``.

        Args:
            creator_id: Owner of the library
            library_session_id: Library session ID

        Returns:
            Exercises ordered by ``order``, sets nested under ``sets``
        """
        exercises = await self._store.list(
            paths.library_exercises(creator_id, library_session_id),
            order_by="order",
        )
        if not exercises:
            return []

        set_lists = await asyncio.gather(
            *(
                self.get_library_exercise_sets(creator_id, library_session_id, exercise["id"])
                for exercise in exercises
            )
        )
        logger.debug(
            f"Loaded {len(exercises)} exercises for library session {library_session_id}"
        )
        return [
            {**exercise, "sets": sets}
            for exercise, sets in zip(exercises, set_lists)
        ]
