"""
Program content service.

Single entry point for everything the API does with programs: program CRUD,
reads of the Module/Session/Exercise/Set hierarchy (library references
resolved, plan-backed programs redirected to their plan), hierarchy writes,
completeness flags and client assignment.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from application.exceptions import LibraryModuleNotFoundError, ProgramNotFoundError
from application.ports import DocumentStore
from core import paths
from core.constants import MAX_BATCH_OPERATIONS
from core.timestamps import utc_timestamp
from models.program import ProgramCreate, ProgramType
from models.session_refs import normalize_session_refs
from services.client_programs import ClientProgramService
from services.hierarchy_mutator import HierarchyMutator
from services.library_store import LibraryStore
from services.materializer import SessionMaterializer
from services.override_merge import OverrideStore
from services.plan_content import PlanContentService
from services.reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)


def initial_version() -> str:
    """Version string given to a new program ("2026-01")."""
    return f"{datetime.now(timezone.utc).year}-01"


class ProgramContentService:
    """
    Facade over the resolver, mutator, plan reader and client service.

    Reads load the program first: a program with ``content_plan_id`` reads
    its hierarchy from the plan, any other program goes through reference
    resolution.
    """

    def __init__(self, store: DocumentStore, batch_limit: int = MAX_BATCH_OPERATIONS):
        """
        Initialize the service and its collaborators over one store.

        Args:
            store: Document store backing programs, libraries and plans
            batch_limit: Ceiling on batched writes (capped at the store maximum)
        """
        self._store = store
        self._library = LibraryStore(store)
        self._overrides = OverrideStore(store)
        self._materializer = SessionMaterializer(store)
        self._resolver = ReferenceResolver(
            store,
            library=self._library,
            overrides=self._overrides,
            materializer=self._materializer,
        )
        self._mutator = HierarchyMutator(store, overrides=self._overrides, batch_limit=batch_limit)
        self._plans = PlanContentService(store)
        self._clients = ClientProgramService(store, resolver=self._resolver, library=self._library)

    # -------------------------------------------------------------------------
    # Programs
    # -------------------------------------------------------------------------

    async def _load_program(self, program_id: str) -> Dict[str, Any]:
        program = await self._store.get(paths.program(program_id))
        if program is None:
            raise ProgramNotFoundError(program_id)
        return program

    async def get_program(
        self, program_id: str, creator_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get a program.

        Args:
            program_id: Program ID
            creator_id: When given, programs owned by someone else are not found

        Returns:
            Program dictionary; ``published_version`` falls back to ``version``

        Raises:
            ProgramNotFoundError: If the program does not exist (or is not owned)
        """
        program = await self._load_program(program_id)
        if creator_id is not None and program.get("creator_id") != creator_id:
            raise ProgramNotFoundError(program_id)
        if not program.get("published_version"):
            program["published_version"] = program.get("version")
        return program

    async def get_programs_by_creator(self, creator_id: str) -> List[Dict[str, Any]]:
        return await self._store.list(
            paths.programs_collection(), where={"creator_id": creator_id}
        )

    async def create_program(
        self, creator_id: str, data: ProgramCreate, creator_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Create a program with its default settings.

        Args:
            creator_id: Owner of the program
            data: Program settings
            creator_name: Display name of the creator

        Returns:
            Created program dictionary with ``id``
        """
        now = utc_timestamp()
        version = initial_version()
        fields: Dict[str, Any] = {
            "creator_id": creator_id,
            "creatorName": data.creator_name or creator_name,
            "title": data.title,
            "description": data.description,
            "discipline": data.discipline,
            "deliveryType": data.delivery_type.value,
            "access_duration": "monthly" if data.program_type == ProgramType.SUBSCRIPTION else "yearly",
            "status": data.status.value,
            "price": data.price,
            "free_trial": {
                "active": data.free_trial_active,
                "duration_days": data.free_trial_duration_days if data.free_trial_active else 0,
            },
            "duration": data.duration,
            "programSettings": {
                "streakEnabled": data.streak_enabled,
                "minimumSessionsPerWeek": data.minimum_sessions_per_week if data.streak_enabled else 0,
            },
            "weight_suggestions": data.weight_suggestions,
            "availableLibraries": data.available_libraries,
            "content_plan_id": data.content_plan_id,
            "tutorials": data.tutorials,
            "version": version,
            "published_version": version,
            "created_at": now,
            "last_update": now,
            "updated_at": now,
        }
        if data.image_url:
            fields["image_url"] = data.image_url

        program_id = await self._store.create(paths.programs_collection(), fields)
        logger.info(f"Created program {program_id} for creator {creator_id}")
        return {"id": program_id, **fields}

    async def update_program(self, program_id: str, updates: Dict[str, Any]) -> None:
        """
        Patch program fields.

        ``published_version`` is never written here (use ``release_program``)
        and None values are dropped.
        """
        if "published_version" in updates:
            logger.warning(
                f"Ignoring published_version update on {program_id}; use release to publish"
            )
        clean = {
            key: value
            for key, value in updates.items()
            if key not in ("published_version", "id") and value is not None
        }
        now = utc_timestamp()
        await self._store.update(
            paths.program(program_id), {**clean, "last_update": now, "updated_at": now}
        )

    async def release_program(self, program_id: str) -> Dict[str, str]:
        """
        Publish the program's current version to its users.

        Returns:
            ``{"published_version": version}``

        Raises:
            ProgramNotFoundError: If the program does not exist
        """
        program = await self._load_program(program_id)
        version = program.get("version") or initial_version()
        now = utc_timestamp()
        await self._store.update(
            paths.program(program_id),
            {"published_version": version, "last_update": now, "updated_at": now},
        )
        logger.info(f"Released program {program_id} version {version}")
        return {"published_version": version}

    async def delete_program(self, program_id: str) -> int:
        return await self._mutator.delete_program(program_id)

    # -------------------------------------------------------------------------
    # Hierarchy reads
    # -------------------------------------------------------------------------

    async def get_modules_by_program(self, program_id: str) -> List[Dict[str, Any]]:
        program = await self._load_program(program_id)
        if program.get("content_plan_id"):
            return await self._plans.get_modules_with_content(program["content_plan_id"])
        return await self._resolver.resolve_modules(program)

    async def get_modules_with_counts(self, program_id: str) -> List[Dict[str, Any]]:
        """Stored modules by order, with count and completeness defaults."""
        modules = await self._store.list(
            paths.program_paths(program_id).modules(), order_by="order"
        )
        return [
            {
                **module,
                "sessionCount": module.get("sessionCount") or 0,
                "exerciseCount": module.get("exerciseCount") or 0,
                "isComplete": module.get("isComplete"),
            }
            for module in modules
        ]

    async def get_sessions_by_module(self, program_id: str, module_id: str) -> List[Dict[str, Any]]:
        program = await self._load_program(program_id)
        if program.get("content_plan_id"):
            return await self._plans.get_sessions(program["content_plan_id"], module_id)
        return await self._resolver.resolve_sessions(program, module_id)

    async def get_exercises_by_session(
        self, program_id: str, module_id: str, session_id: str
    ) -> List[Dict[str, Any]]:
        program = await self._load_program(program_id)
        if program.get("content_plan_id"):
            return await self._plans.get_exercises(program["content_plan_id"], module_id, session_id)
        return await self._resolver.resolve_exercises(program, module_id, session_id)

    async def get_sets_by_exercise(
        self, program_id: str, module_id: str, session_id: str, exercise_id: str
    ) -> List[Dict[str, Any]]:
        program = await self._load_program(program_id)
        if program.get("content_plan_id"):
            return await self._plans.get_sets(
                program["content_plan_id"], module_id, session_id, exercise_id
            )
        return await self._resolver.resolve_sets(program, module_id, session_id, exercise_id)

    async def get_session_overrides(
        self, program_id: str, module_id: str, session_id: str
    ) -> Optional[Dict[str, Any]]:
        return await self._overrides.get(program_id, module_id, session_id)

    # -------------------------------------------------------------------------
    # Hierarchy writes
    # -------------------------------------------------------------------------

    async def create_module(
        self,
        program_id: str,
        name: Optional[str] = None,
        library_module_ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._mutator.create_module(program_id, name, library_module_ref)

    async def create_module_from_library(
        self, program_id: str, library_module_ref: str
    ) -> Dict[str, Any]:
        """
        Create a module referencing a library module, with one program session
        per library session.

        Sessions that fail to be created are logged and skipped; reads
        materialize them later.

        Args:
            program_id: Program ID
            library_module_ref: Library module ID

        Returns:
            Created module dictionary, with the created session IDs in ``sessionIds``

        Raises:
            ProgramNotFoundError: If the program does not exist
            LibraryModuleNotFoundError: If the program has no creator or the
                library module does not exist
        """
        program = await self._load_program(program_id)
        creator_id = program.get("creator_id")
        if not creator_id:
            raise LibraryModuleNotFoundError(library_module_ref)

        library_module = await self._library.get_library_module(creator_id, library_module_ref)
        if library_module is None:
            raise LibraryModuleNotFoundError(library_module_ref, creator_id)

        module = await self._mutator.create_module(program_id, library_module_ref=library_module_ref)
        refs = normalize_session_refs(library_module.get("sessionRefs"))
        session_ids: List[str] = []
        for index, ref in enumerate(refs):
            try:
                session_ids.append(
                    await self._materializer.ensure_session_document(
                        program_id, module["id"], ref.library_session_id, ref.order
                    )
                )
            except Exception as e:
                logger.error(
                    f"Error creating session {index + 1}/{len(refs)} "
                    f"({ref.library_session_id}) for module {module['id']}: {e}"
                )

        logger.info(
            f"Created module {module['id']} from library module {library_module_ref} "
            f"with {len(session_ids)}/{len(refs)} sessions"
        )
        return {**module, "sessionIds": session_ids}

    async def create_session(
        self,
        program_id: str,
        module_id: str,
        name: Optional[str] = None,
        order: Optional[int] = None,
        image_url: Optional[str] = None,
        library_session_ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._mutator.create_session(
            program_id, module_id, name, order, image_url, library_session_ref
        )

    async def create_session_from_library(
        self,
        program_id: str,
        module_id: str,
        library_session_ref: str,
        order: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._mutator.create_session(
            program_id, module_id, order=order, library_session_ref=library_session_ref
        )

    async def create_exercise(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        name: str,
        order: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._mutator.create_exercise(program_id, module_id, session_id, name, order)

    async def create_set(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        order: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._mutator.create_set(program_id, module_id, session_id, exercise_id, order)

    async def update_module_order(self, program_id: str, entries: List[Dict[str, Any]]) -> int:
        return await self._mutator.update_module_order(program_id, entries)

    async def update_session_order(
        self, program_id: str, module_id: str, entries: List[Dict[str, Any]]
    ) -> int:
        return await self._mutator.update_session_order(program_id, module_id, entries)

    async def update_exercise_order(
        self, program_id: str, module_id: str, session_id: str, entries: List[Dict[str, Any]]
    ) -> int:
        return await self._mutator.update_exercise_order(program_id, module_id, session_id, entries)

    async def update_session(
        self, program_id: str, module_id: str, session_id: str, fields: Dict[str, Any]
    ) -> None:
        await self._mutator.update_session(program_id, module_id, session_id, fields)

    async def update_exercise(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        fields: Dict[str, Any],
    ) -> None:
        await self._mutator.update_exercise(program_id, module_id, session_id, exercise_id, fields)

    async def update_set(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        set_id: str,
        fields: Dict[str, Any],
    ) -> None:
        await self._mutator.update_set(program_id, module_id, session_id, exercise_id, set_id, fields)

    async def update_session_override(
        self, program_id: str, module_id: str, session_id: str, fields: Dict[str, Any]
    ) -> None:
        await self._mutator.update_session_override(program_id, module_id, session_id, fields)

    async def delete_module(self, program_id: str, module_id: str) -> int:
        return await self._mutator.delete_module(program_id, module_id)

    async def delete_session(self, program_id: str, module_id: str, session_id: str) -> int:
        return await self._mutator.delete_session(program_id, module_id, session_id)

    async def delete_exercise(
        self, program_id: str, module_id: str, session_id: str, exercise_id: str
    ) -> int:
        return await self._mutator.delete_exercise(program_id, module_id, session_id, exercise_id)

    async def delete_set(
        self, program_id: str, module_id: str, session_id: str, exercise_id: str, set_id: str
    ) -> int:
        return await self._mutator.delete_set(program_id, module_id, session_id, exercise_id, set_id)

    # -------------------------------------------------------------------------
    # Completeness flags
    # -------------------------------------------------------------------------

    async def update_module_completeness(
        self, program_id: str, module_id: str, is_complete: bool
    ) -> None:
        await self._mutator.update_module_completeness(program_id, module_id, is_complete)

    async def update_session_completeness(
        self, program_id: str, module_id: str, session_id: str, is_complete: bool
    ) -> None:
        await self._mutator.update_session_completeness(program_id, module_id, session_id, is_complete)

    async def batch_update_completeness(self, updates: List[Dict[str, Any]]) -> int:
        return await self._mutator.batch_update_completeness(updates)

    # -------------------------------------------------------------------------
    # Client programs
    # -------------------------------------------------------------------------

    async def assign_program_to_client(
        self, program_id: str, user_id: str, initial_overrides: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self._clients.assign_program_to_client(program_id, user_id, initial_overrides)

    async def get_client_program(self, program_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return await self._clients.get_client_program(program_id, user_id)

    async def get_client_programs_for_program(self, program_id: str) -> List[Dict[str, Any]]:
        return await self._clients.get_client_programs_for_program(program_id)

    async def update_client_override(
        self, program_id: str, user_id: str, dotted_path: str, value: Any
    ) -> None:
        await self._clients.update_client_override(program_id, user_id, dotted_path, value)

    async def bulk_update_client_programs(
        self, program_id: str, user_ids: List[str], dotted_path: str, value: Any
    ) -> int:
        return await self._clients.bulk_update_client_programs(
            program_id, user_ids, dotted_path, value
        )
