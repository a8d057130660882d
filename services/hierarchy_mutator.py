"""
Writes to the Module/Session/Exercise/Set hierarchy of a program.

Creates append after the last sibling, reorders go through one batched
write, and deletes cascade bottom-up one document at a time (the store has
no multi-document transactions).
"""

import logging
from typing import Any, Dict, List, Optional

from application.exceptions import BatchLimitExceededError, CascadeDeleteError, StoreError
from application.ports import BatchOperation, DocumentStore
from core import paths
from core.constants import MAX_BATCH_OPERATIONS, module_title, set_title
from core.timestamps import utc_timestamp
from services.override_merge import OverrideStore

logger = logging.getLogger(__name__)


class _CascadeDelete:
    """Sequential delete that stops at the first failure."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self.deleted = 0

    async def children(self, collection_path: str) -> List[Dict[str, Any]]:
        try:
            return await self._store.list(collection_path)
        except StoreError as e:
            raise CascadeDeleteError(collection_path, self.deleted, e) from e

    async def exists(self, path: str) -> bool:
        try:
            return await self._store.get(path) is not None
        except StoreError as e:
            raise CascadeDeleteError(path, self.deleted, e) from e

    async def delete(self, path: str) -> None:
        try:
            await self._store.delete(path)
        except StoreError as e:
            raise CascadeDeleteError(path, self.deleted, e) from e
        self.deleted += 1
        logger.debug(f"Deleted {path}")


class HierarchyMutator:
    """Creates, reorders, updates and deletes program hierarchy documents."""

    def __init__(
        self,
        store: DocumentStore,
        overrides: Optional[OverrideStore] = None,
        batch_limit: int = MAX_BATCH_OPERATIONS,
    ):
        self._store = store
        self._overrides = overrides or OverrideStore(store)
        self._batch_limit = min(batch_limit, MAX_BATCH_OPERATIONS)

    async def next_order(self, collection_path: str) -> int:
        """Order for a new document appended to ``collection_path``."""
        last = await self._store.list(collection_path, order_by="order", descending=True, limit=1)
        if not last:
            return 0
        return last[0]["order"] + 1

    async def _create(self, collection_path: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_timestamp()
        fields = {**fields, "created_at": now, "updated_at": now}
        doc_id = await self._store.create(collection_path, fields)
        return {"id": doc_id, **fields}

    # -------------------------------------------------------------------------
    # Creates
    # -------------------------------------------------------------------------

    async def create_module(
        self,
        program_id: str,
        name: Optional[str] = None,
        library_module_ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a module at the end of the program.

        A module referencing a library module stores only the reference; a
        standalone module keeps the given name as its description. Either way
        its title is derived from its order.
        """
        collection_path = paths.program_paths(program_id).modules()
        order = await self.next_order(collection_path)
        fields: Dict[str, Any] = {"order": order, "title": module_title(order)}
        if library_module_ref:
            fields["libraryModuleRef"] = library_module_ref
        else:
            fields["description"] = (name or "").strip()
        module = await self._create(collection_path, fields)
        logger.info(f"Created module {module['id']} in program {program_id} at order {order}")
        return module

    async def create_session(
        self,
        program_id: str,
        module_id: str,
        name: Optional[str] = None,
        order: Optional[int] = None,
        image_url: Optional[str] = None,
        library_session_ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a standalone session, or one referencing a library session."""
        collection_path = paths.program_paths(program_id).sessions(module_id)
        if order is None:
            order = await self.next_order(collection_path)
        fields: Dict[str, Any] = {"order": order}
        if library_session_ref:
            fields["librarySessionRef"] = library_session_ref
        else:
            fields["title"] = (name or "").strip()
            if image_url:
                fields["image_url"] = image_url
        return await self._create(collection_path, fields)

    async def create_exercise(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        name: str,
        order: Optional[int] = None,
    ) -> Dict[str, Any]:
        collection_path = paths.program_paths(program_id).exercises(module_id, session_id)
        if order is None:
            order = await self.next_order(collection_path)
        # name mirrors title for older readers
        return await self._create(
            collection_path, {"title": name.strip(), "name": name.strip(), "order": order}
        )

    async def create_set(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        order: Optional[int] = None,
    ) -> Dict[str, Any]:
        collection_path = paths.program_paths(program_id).sets(module_id, session_id, exercise_id)
        if order is None:
            order = await self.next_order(collection_path)
        return await self._create(collection_path, {"title": set_title(order), "order": order})

    # -------------------------------------------------------------------------
    # Reorders
    # -------------------------------------------------------------------------

    async def _reorder(
        self,
        what: str,
        entries: List[Dict[str, Any]],
        path_for,
        extra_fields=None,
    ) -> int:
        if not entries:
            return 0
        if len(entries) > self._batch_limit:
            raise BatchLimitExceededError(len(entries), self._batch_limit, what)

        now = utc_timestamp()
        operations: List[BatchOperation] = []
        for entry in entries:
            entry_id = entry.get("id")
            if not entry_id:
                logger.warning(f"Skipping invalid {what} order update: missing id")
                continue
            fields = {"order": entry["order"], "updated_at": now}
            if extra_fields is not None:
                fields.update(extra_fields(entry["order"]))
            operations.append(BatchOperation(path_for(entry_id), fields))

        await self._store.batch_write(operations, max_ops=self._batch_limit)
        logger.info(f"Reordered {len(operations)} {what}")
        return len(operations)

    async def update_module_order(self, program_id: str, entries: List[Dict[str, Any]]) -> int:
        """
        Apply new module orders in one batch, re-deriving each title.

        Args:
            program_id: Program ID
            entries: ``{"id", "order"}`` mappings

        Returns:
            Number of modules written

        Raises:
            BatchLimitExceededError: If there are more entries than one batch allows
        """
        program = paths.program_paths(program_id)
        return await self._reorder(
            "modules",
            entries,
            program.module,
            lambda order: {"title": module_title(order)},
        )

    async def update_session_order(
        self, program_id: str, module_id: str, entries: List[Dict[str, Any]]
    ) -> int:
        program = paths.program_paths(program_id)
        return await self._reorder(
            "sessions", entries, lambda session_id: program.session(module_id, session_id)
        )

    async def update_exercise_order(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        entries: List[Dict[str, Any]],
    ) -> int:
        program = paths.program_paths(program_id)
        return await self._reorder(
            "exercises",
            entries,
            lambda exercise_id: program.exercise(module_id, session_id, exercise_id),
        )

    # -------------------------------------------------------------------------
    # Direct updates
    # -------------------------------------------------------------------------

    async def _update(self, path: str, fields: Dict[str, Any]) -> None:
        await self._store.update(path, {**fields, "updated_at": utc_timestamp()})

    async def update_session(
        self, program_id: str, module_id: str, session_id: str, fields: Dict[str, Any]
    ) -> None:
        await self._update(paths.program_paths(program_id).session(module_id, session_id), fields)

    async def update_exercise(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        fields: Dict[str, Any],
    ) -> None:
        await self._update(
            paths.program_paths(program_id).exercise(module_id, session_id, exercise_id), fields
        )

    async def update_set(
        self,
        program_id: str,
        module_id: str,
        session_id: str,
        exercise_id: str,
        set_id: str,
        fields: Dict[str, Any],
    ) -> None:
        await self._update(
            paths.program_paths(program_id).set(module_id, session_id, exercise_id, set_id), fields
        )

    async def update_session_override(
        self, program_id: str, module_id: str, session_id: str, fields: Dict[str, Any]
    ) -> None:
        await self._overrides.put(program_id, module_id, session_id, fields)

    # -------------------------------------------------------------------------
    # Completeness flags
    # -------------------------------------------------------------------------

    @staticmethod
    def _completeness_fields(is_complete: bool) -> Dict[str, Any]:
        return {"isComplete": is_complete, "completenessCheckedAt": utc_timestamp()}

    async def update_module_completeness(
        self, program_id: str, module_id: str, is_complete: bool
    ) -> None:
        await self._store.update(
            paths.program_paths(program_id).module(module_id),
            self._completeness_fields(is_complete),
        )

    async def update_session_completeness(
        self, program_id: str, module_id: str, session_id: str, is_complete: bool
    ) -> None:
        await self._store.update(
            paths.program_paths(program_id).session(module_id, session_id),
            self._completeness_fields(is_complete),
        )

    async def batch_update_completeness(self, updates: List[Dict[str, Any]]) -> int:
        """
        Write several completeness flags in one batch.

        Args:
            updates: Mappings with ``type`` ("module" or "session"),
                ``program_id``, ``module_id``, ``session_id`` and ``is_complete``

        Returns:
            Number of documents written

        Raises:
            BatchLimitExceededError: If there are more updates than one batch allows
        """
        if not updates:
            return 0
        if len(updates) > self._batch_limit:
            raise BatchLimitExceededError(len(updates), self._batch_limit, "completeness updates")

        operations: List[BatchOperation] = []
        for update in updates:
            program = paths.program_paths(update["program_id"])
            if update.get("type") == "module":
                path = program.module(update["module_id"])
            elif update.get("type") == "session":
                if not update.get("session_id"):
                    logger.warning(f"Session completeness update without session_id in module {update['module_id']}")
                    continue
                path = program.session(update["module_id"], update["session_id"])
            else:
                logger.warning(f"Unknown completeness update type: {update.get('type')}")
                continue
            operations.append(BatchOperation(path, self._completeness_fields(update["is_complete"])))

        await self._store.batch_write(operations, max_ops=self._batch_limit)
        return len(operations)

    # -------------------------------------------------------------------------
    # Cascading deletes
    # -------------------------------------------------------------------------

    async def _delete_exercise_tree(
        self, cascade: _CascadeDelete, program_id: str, module_id: str, session_id: str, exercise_id: str
    ) -> None:
        program = paths.program_paths(program_id)
        for set_doc in await cascade.children(program.sets(module_id, session_id, exercise_id)):
            await cascade.delete(program.set(module_id, session_id, exercise_id, set_doc["id"]))
        await cascade.delete(program.exercise(module_id, session_id, exercise_id))

    async def _delete_session_tree(
        self, cascade: _CascadeDelete, program_id: str, module_id: str, session_id: str
    ) -> None:
        program = paths.program_paths(program_id)
        for exercise in await cascade.children(program.exercises(module_id, session_id)):
            await self._delete_exercise_tree(cascade, program_id, module_id, session_id, exercise["id"])

        override_path = program.override(module_id, session_id)
        if await cascade.exists(override_path):
            await cascade.delete(override_path)
        await cascade.delete(program.session(module_id, session_id))

    async def _delete_module_tree(
        self, cascade: _CascadeDelete, program_id: str, module_id: str
    ) -> None:
        program = paths.program_paths(program_id)
        for session in await cascade.children(program.sessions(module_id)):
            await self._delete_session_tree(cascade, program_id, module_id, session["id"])
        await cascade.delete(program.module(module_id))

    async def delete_program(self, program_id: str) -> int:
        """
        Delete a program and everything below it, bottom-up.

        Returns:
            Number of documents deleted

        Raises:
            CascadeDeleteError: On the first failing read or delete; documents
                deleted before it stay deleted
        """
        cascade = _CascadeDelete(self._store)
        for module in await cascade.children(paths.program_paths(program_id).modules()):
            await self._delete_module_tree(cascade, program_id, module["id"])
        await cascade.delete(paths.program(program_id))
        logger.info(f"Deleted program {program_id} ({cascade.deleted} documents)")
        return cascade.deleted

    async def delete_module(self, program_id: str, module_id: str) -> int:
        cascade = _CascadeDelete(self._store)
        await self._delete_module_tree(cascade, program_id, module_id)
        logger.info(f"Deleted module {module_id} of {program_id} ({cascade.deleted} documents)")
        return cascade.deleted

    async def delete_session(self, program_id: str, module_id: str, session_id: str) -> int:
        cascade = _CascadeDelete(self._store)
        await self._delete_session_tree(cascade, program_id, module_id, session_id)
        logger.info(f"Deleted session {session_id} of {program_id}/{module_id} ({cascade.deleted} documents)")
        return cascade.deleted

    async def delete_exercise(
        self, program_id: str, module_id: str, session_id: str, exercise_id: str
    ) -> int:
        cascade = _CascadeDelete(self._store)
        await self._delete_exercise_tree(cascade, program_id, module_id, session_id, exercise_id)
        return cascade.deleted

    async def delete_set(
        self, program_id: str, module_id: str, session_id: str, exercise_id: str, set_id: str
    ) -> int:
        cascade = _CascadeDelete(self._store)
        await cascade.delete(
            paths.program_paths(program_id).set(module_id, session_id, exercise_id, set_id)
        )
        return cascade.deleted
