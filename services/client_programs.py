"""
Client program assignment.

Assigning a program to a client writes ``client_programs/{userId}_{programId}``
with a snapshot of the program and library versions the client received,
plus per-client overrides stored at dotted paths inside the document.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from application.exceptions import DocumentNotFoundError, ProgramNotFoundError
from application.ports import DocumentStore
from core import paths
from core.constants import DEFAULT_LIBRARY_VERSION
from core.timestamps import utc_timestamp
from services.library_store import LibraryStore
from services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def set_dotted(document: Dict[str, Any], dotted_path: str, value: Any) -> Dict[str, Any]:
    """
    Set ``value`` at ``dotted_path`` inside a copy of ``document``.

    Intermediate mappings are created (or replaced when they are not mappings).

    Returns:
        The updated copy
    """
    keys = dotted_path.split(".")
    updated = dict(document)
    current = updated
    for key in keys[:-1]:
        child = current.get(key)
        current[key] = dict(child) if isinstance(child, dict) else {}
        current = current[key]
    current[keys[-1]] = value
    return updated


class ClientProgramService:
    """Creates and updates the per-client copy of a program."""

    def __init__(
        self,
        store: DocumentStore,
        resolver: Optional[ReferenceResolver] = None,
        library: Optional[LibraryStore] = None,
    ):
        self._store = store
        self._library = library or LibraryStore(store)
        self._resolver = resolver or ReferenceResolver(store, library=self._library)

    async def _library_version(self, kind: str, fetch, ref: str) -> Optional[str]:
        try:
            doc = await fetch(ref)
        except Exception as e:
            logger.warning(f"Could not fetch library {kind} {ref} version: {e}")
            return None
        if doc is None:
            return None
        return doc.get("version") or DEFAULT_LIBRARY_VERSION

    async def extract_library_versions(self, program: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
        """
        Versions of the library modules and sessions a program references.

        Lookups that fail are logged and left out.

        Args:
            program: Program document

        Returns:
            ``{"modules": {ref: version}, "sessions": {ref: version}}``
        """
        versions: Dict[str, Dict[str, str]] = {"modules": {}, "sessions": {}}
        creator_id = program.get("creator_id")
        if not creator_id:
            logger.warning(f"Program {program['id']} has no creator_id, skipping library versions")
            return versions

        modules = await self._resolver.resolve_modules(program)
        module_refs = {m["libraryModuleRef"] for m in modules if m.get("libraryModuleRef")}
        session_refs = {
            session["librarySessionRef"]
            for module in modules
            for session in module.get("sessions") or []
            if session.get("librarySessionRef")
        }

        async def collect(kind: str, refs, fetch) -> Dict[str, str]:
            ordered = sorted(refs)
            found = await asyncio.gather(
                *(self._library_version(kind, fetch, ref) for ref in ordered)
            )
            return {ref: version for ref, version in zip(ordered, found) if version is not None}

        versions["modules"], versions["sessions"] = await asyncio.gather(
            collect(
                "module",
                module_refs,
                lambda ref: self._library.get_library_module(creator_id, ref),
            ),
            collect(
                "session",
                session_refs,
                lambda ref: self._library.get_library_session(creator_id, ref),
            ),
        )
        return versions

    async def assign_program_to_client(
        self,
        program_id: str,
        user_id: str,
        initial_overrides: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Assign a program to a client.

        Args:
            program_id: Program ID
            user_id: Client user ID
            initial_overrides: Fields written over the defaults

        Returns:
            Client program document ID

        Raises:
            ProgramNotFoundError: If the program does not exist
        """
        initial_overrides = initial_overrides or {}
        program = await self._store.get(paths.program(program_id))
        if program is None:
            raise ProgramNotFoundError(program_id)

        logger.info(f"Assigning program {program_id} to client {user_id}")
        library_versions = await self.extract_library_versions(program)

        now = utc_timestamp()
        document = {
            "program_id": program_id,
            "user_id": user_id,
            "content_plan_id": initial_overrides.get("content_plan_id"),
            "version_snapshot": {
                "program_version": program.get("version") or DEFAULT_LIBRARY_VERSION,
                "library_versions": library_versions,
            },
            "created_at": now,
            "updated_at": now,
            **initial_overrides,
        }
        await self._store.set(paths.client_program(user_id, program_id), document)
        return paths.client_program_id(user_id, program_id)

    async def get_client_program(self, program_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return await self._store.get(paths.client_program(user_id, program_id))

    async def get_client_programs_for_program(self, program_id: str) -> List[Dict[str, Any]]:
        return await self._store.list(
            paths.client_programs_collection(), where={"program_id": program_id}
        )

    async def update_client_override(
        self, program_id: str, user_id: str, dotted_path: str, value: Any
    ) -> None:
        """
        Set one override inside a client program.

        Args:
            program_id: Program ID
            user_id: Client user ID
            dotted_path: Path such as ``modules.m1.sessions.s1.title``
            value: Value to store (None stores null)

        Raises:
            DocumentNotFoundError: If the client program does not exist
        """
        path = paths.client_program(user_id, program_id)
        document = await self._store.get(path)
        if document is None:
            raise DocumentNotFoundError(path)

        top_key = dotted_path.split(".", 1)[0]
        updated = set_dotted(document, dotted_path, value)
        await self._store.update(path, {top_key: updated[top_key], "updated_at": utc_timestamp()})
        logger.info(f"Client override updated: {path} {dotted_path}")

    async def bulk_update_client_programs(
        self, program_id: str, user_ids: List[str], dotted_path: str, value: Any
    ) -> int:
        """Apply the same override to several clients in parallel."""
        await asyncio.gather(
            *(
                self.update_client_override(program_id, user_id, dotted_path, value)
                for user_id in user_ids
            )
        )
        logger.info(f"Bulk updated {len(user_ids)} client programs of {program_id}")
        return len(user_ids)
