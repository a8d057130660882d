"""
Reference resolution for program reads.

Modules and sessions of a program may point at creator library content
(``libraryModuleRef`` / ``librarySessionRef``). Every read goes through the
resolver, which replaces a reference with the library content it points at,
merged with the program's own order and session overrides.

A reference that cannot be followed (missing target, store failure) is never
an error for the reader: it is logged and the program's own stored fields
are returned instead.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from application.ports import DocumentStore
from core import paths
from core.constants import module_title
from models.session_refs import NormalizedSessionRef, normalize_session_refs
from services.library_store import LibraryStore
from services.materializer import SessionMaterializer
from services.override_merge import OverrideStore, merge_override

logger = logging.getLogger(__name__)


def _has_order(doc: Dict[str, Any]) -> bool:
    order = doc.get("order")
    return isinstance(order, int) and not isinstance(order, bool)


def sort_by_order(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort documents by ``order``; documents without one sort last."""
    return sorted(docs, key=lambda doc: (0, doc["order"]) if _has_order(doc) else (1, 0))


def _with_module_title(module: Dict[str, Any], fallback_order: Optional[int] = None) -> Dict[str, Any]:
    order = module["order"] if _has_order(module) else fallback_order
    if order is not None:
        module["title"] = module_title(order)
    return module


class ReferenceResolver:
    """
    Resolves library references for the modules, sessions, exercises and sets
    of a program.

    Module-level traversal of a library module materializes missing program
    sessions; all other reads are side-effect free.
    """

    def __init__(
        self,
        store: DocumentStore,
        library: Optional[LibraryStore] = None,
        overrides: Optional[OverrideStore] = None,
        materializer: Optional[SessionMaterializer] = None,
    ):
        self._store = store
        self._library = library or LibraryStore(store)
        self._overrides = overrides or OverrideStore(store)
        self._materializer = materializer or SessionMaterializer(store)

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    async def resolve_modules(self, program: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Resolve every module of a program.

        Args:
            program: Program document (with ``id`` and ``creator_id``)

        Returns:
            Modules sorted by order, titles derived from their position
        """
        module_docs = await self._store.list(paths.program_paths(program["id"]).modules())
        modules = await asyncio.gather(
            *(self.resolve_module(program, module_doc) for module_doc in module_docs)
        )
        return [
            _with_module_title(module, index)
            for index, module in enumerate(sort_by_order(list(modules)))
        ]

    async def resolve_module(
        self, program: Dict[str, Any], module_doc: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Resolve one module document.

        A module referencing a library module is returned with the library
        fields, its program ID and order, and its resolved ``sessions``. Any
        failure returns the stored module instead.

        Args:
            program: Program document
            module_doc: Stored module document (with ``id``)

        Returns:
            Resolved module dictionary
        """
        library_module_ref = module_doc.get("libraryModuleRef")
        creator_id = program.get("creator_id")
        if library_module_ref and creator_id:
            try:
                library_module = await self._library.get_library_module(
                    creator_id, library_module_ref
                )
                if library_module is not None:
                    sessions = await self._resolve_library_module_sessions(
                        program, module_doc["id"], library_module
                    )
                    resolved = {
                        **library_module,
                        "id": module_doc["id"],
                        "libraryModuleRef": library_module_ref,
                        "order": module_doc.get("order"),
                        "description": library_module.get("title") or library_module.get("name"),
                        "sessions": sessions,
                    }
                    return _with_module_title(resolved)
                logger.warning(
                    f"Library module {library_module_ref} not found for module "
                    f"{module_doc['id']} of program {program['id']}"
                )
            except Exception as e:
                logger.error(f"Error resolving library module {library_module_ref}: {e}")

        return _with_module_title(dict(module_doc))

    async def _resolve_library_module_sessions(
        self,
        program: Dict[str, Any],
        module_id: str,
        library_module: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        refs = normalize_session_refs(library_module.get("sessionRefs"))
        if not refs:
            return []

        existing = await self._store.list(
            paths.program_paths(program["id"]).sessions(module_id)
        )
        by_ref = {
            session["librarySessionRef"]: session
            for session in existing
            if session.get("librarySessionRef")
        }
        sessions = await asyncio.gather(
            *(
                self._resolve_session_ref(program, module_id, ref, by_ref.get(ref.library_session_id))
                for ref in refs
            )
        )
        return sort_by_order([session for session in sessions if session is not None])

    async def _resolve_session_ref(
        self,
        program: Dict[str, Any],
        module_id: str,
        ref: NormalizedSessionRef,
        program_session: Optional[Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        library_session = await self._library.get_library_session(
            program["creator_id"], ref.library_session_id
        )
        if library_session is None:
            logger.warning(
                f"Library session {ref.library_session_id} not found, "
                f"dropping it from module {module_id}"
            )
            return None

        if program_session is None:
            session_id = await self._materializer.ensure_session_document(
                program["id"], module_id, ref.library_session_id, ref.order
            )
            order = ref.order
            override = None
        else:
            session_id = program_session["id"]
            order = program_session["order"] if _has_order(program_session) else ref.order
            override = await self._overrides.get(program["id"], module_id, session_id)

        return self._merge_session(library_session, override, session_id, ref.library_session_id, order)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def resolve_sessions(
        self, program: Dict[str, Any], module_id: str
    ) -> List[Dict[str, Any]]:
        """
        Resolve the sessions of one module.

        Args:
            program: Program document
            module_id: Program module ID

        Returns:
            Sessions sorted by order
        """
        program_paths = paths.program_paths(program["id"])
        creator_id = program.get("creator_id")

        module_doc = await self._store.get(program_paths.module(module_id))
        library_module_ref = (module_doc or {}).get("libraryModuleRef")
        if library_module_ref and creator_id:
            try:
                library_module = await self._library.get_library_module(
                    creator_id, library_module_ref
                )
                if library_module is not None:
                    return await self._resolve_library_module_sessions(
                        program, module_id, library_module
                    )
                logger.warning(
                    f"Library module {library_module_ref} not found, "
                    f"listing stored sessions of module {module_id}"
                )
            except Exception as e:
                logger.error(f"Error resolving sessions of library module {library_module_ref}: {e}")

        session_docs = await self._store.list(program_paths.sessions(module_id))
        sessions = await asyncio.gather(
            *(self._resolve_session_doc(program, module_id, doc) for doc in session_docs)
        )
        return sort_by_order(list(sessions))

    async def _resolve_session_doc(
        self,
        program: Dict[str, Any],
        module_id: str,
        session_doc: Dict[str, Any],
    ) -> Dict[str, Any]:
        library_session_id = session_doc.get("librarySessionRef")
        creator_id = program.get("creator_id")
        if not (library_session_id and creator_id):
            return session_doc

        try:
            library_session = await self._library.get_library_session(
                creator_id, library_session_id
            )
            if library_session is not None:
                override = await self._overrides.get(program["id"], module_id, session_doc["id"])
                return self._merge_session(
                    library_session,
                    override,
                    session_doc["id"],
                    library_session_id,
                    session_doc.get("order"),
                )
            logger.warning(f"Library session {library_session_id} not found for session {session_doc['id']}")
        except Exception as e:
            logger.error(f"Error resolving library session {library_session_id}: {e}")
        return session_doc

    @staticmethod
    def _merge_session(
        library_session: Dict[str, Any],
        override: Optional[Dict[str, Any]],
        session_id: str,
        library_session_id: str,
        order: Optional[int],
    ) -> Dict[str, Any]:
        merged = merge_override(library_session, override, session_id, library_session_id, order)
        title = (override or {}).get("title") or library_session.get("title") or library_session.get("name")
        if title is not None:
            merged["title"] = title
        return merged

    # -------------------------------------------------------------------------
    # Exercises and sets
    # -------------------------------------------------------------------------

    async def _library_session_for(
        self, program: Dict[str, Any], module_id: str, session_id: str
    ) -> Optional[str]:
        """
        Library session backing a program session, if any.

        When the session document does not exist but the module is a library
        module, ``session_id`` is taken to be a library session ID.
        """
        program_paths = paths.program_paths(program["id"])
        session_doc = await self._store.get(program_paths.session(module_id, session_id))
        if session_doc is not None:
            return session_doc.get("librarySessionRef")

        module_doc = await self._store.get(program_paths.module(module_id))
        if module_doc and module_doc.get("libraryModuleRef"):
            return session_id
        return None

    async def resolve_exercises(
        self, program: Dict[str, Any], module_id: str, session_id: str
    ) -> List[Dict[str, Any]]:
        """
        Exercises of a session, with library sessions resolved.

        Returns:
            Exercises ordered by ``order`` (library exercises carry ``sets``)
        """
        creator_id = program.get("creator_id")
        if creator_id:
            library_session_id = await self._library_session_for(program, module_id, session_id)
            if library_session_id:
                try:
                    return await self._library.get_library_session_exercises(
                        creator_id, library_session_id
                    )
                except Exception as e:
                    logger.error(
                        f"Error loading exercises of library session {library_session_id}: {e}"
                    )

        return await self._store.list(
            paths.program_paths(program["id"]).exercises(module_id, session_id),
            order_by="order",
        )

    async def resolve_sets(
        self,
        program: Dict[str, Any],
        module_id: str,
        session_id: str,
        exercise_id: str,
    ) -> List[Dict[str, Any]]:
        """
        Sets of an exercise, with library sessions resolved.

        Returns:
            Sets ordered by ``order``
        """
        creator_id = program.get("creator_id")
        if creator_id:
            library_session_id = await self._library_session_for(program, module_id, session_id)
            if library_session_id:
                try:
                    return await self._library.get_library_exercise_sets(
                        creator_id, library_session_id, exercise_id
                    )
                except Exception as e:
                    logger.error(
                        f"Error loading sets of library session {library_session_id}: {e}"
                    )

        return await self._store.list(
            paths.program_paths(program["id"]).sets(module_id, session_id, exercise_id),
            order_by="order",
        )
