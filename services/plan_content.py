"""
Read access to plan content.

A plan has the same Module/Session/Exercise/Set shape as a program, rooted at
``plans/{planId}``. Programs with ``content_plan_id`` read all their content
from the plan.
"""

import asyncio
import logging
from typing import Any, Dict, List

from application.ports import DocumentStore
from core import paths
from core.constants import module_title
from services.reference_resolver import sort_by_order

logger = logging.getLogger(__name__)


class PlanContentService:
    """Reads the hierarchy of a plan."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_modules(self, plan_id: str) -> List[Dict[str, Any]]:
        modules = await self._store.list(paths.plan_paths(plan_id).modules())
        return sort_by_order(modules)

    async def get_sessions(self, plan_id: str, module_id: str) -> List[Dict[str, Any]]:
        return await self._store.list(paths.plan_paths(plan_id).sessions(module_id), order_by="order")

    async def get_exercises(
        self, plan_id: str, module_id: str, session_id: str
    ) -> List[Dict[str, Any]]:
        return await self._store.list(
            paths.plan_paths(plan_id).exercises(module_id, session_id), order_by="order"
        )

    async def get_sets(
        self, plan_id: str, module_id: str, session_id: str, exercise_id: str
    ) -> List[Dict[str, Any]]:
        return await self._store.list(
            paths.plan_paths(plan_id).sets(module_id, session_id, exercise_id), order_by="order"
        )

    async def get_modules_with_content(self, plan_id: str) -> List[Dict[str, Any]]:
        """
        Plan modules with their sessions and each session's exercises nested.

        Modules without a title are named after their position; modules
        without an order take their position as order.

        Args:
            plan_id: Plan ID

        Returns:
            Modules sorted by order, each with ``sessions`` (each with ``exercises``)
        """
        modules = await self.get_modules(plan_id)

        async def with_sessions(index: int, module: Dict[str, Any]) -> Dict[str, Any]:
            sessions = await self.get_sessions(plan_id, module["id"])
            exercise_lists = await asyncio.gather(
                *(self.get_exercises(plan_id, module["id"], session["id"]) for session in sessions)
            )
            return {
                **module,
                "title": module.get("title") or module_title(index),
                "order": module["order"] if module.get("order") is not None else index,
                "sessions": [
                    {**session, "exercises": exercises}
                    for session, exercises in zip(sessions, exercise_lists)
                ],
            }

        resolved = await asyncio.gather(
            *(with_sessions(index, module) for index, module in enumerate(modules))
        )
        logger.debug(f"Loaded {len(resolved)} modules from plan {plan_id}")
        return list(resolved)
