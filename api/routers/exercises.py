"""
Exercises and sets router.

Endpoints for the exercises of one session and the sets of one exercise.
Sessions backed by a library session list the library's exercises (each
with its sets).
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from api.deps import get_content_service, get_owned_program
from models.content import ExerciseCreate, FieldUpdate, OrderUpdate, SetCreate, patch_fields
from services.program_content import ProgramContentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs/{program_id}/modules/{module_id}/sessions/{session_id}/exercises",
    tags=["Exercises"],
)


# =============================================================================
# Exercises
# =============================================================================


@router.get("")
async def list_exercises(
    module_id: str,
    session_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    return await service.get_exercises_by_session(program["id"], module_id, session_id)


@router.post("", status_code=201)
async def create_exercise(
    module_id: str,
    session_id: str,
    data: ExerciseCreate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    return await service.create_exercise(
        program["id"], module_id, session_id, data.name, data.order
    )


@router.put("/order")
async def update_exercise_order(
    module_id: str,
    session_id: str,
    data: OrderUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, int]:
    """
    Reorder exercises in one batch.

    Raises:
        413: More entries than one batch allows
    """
    updated = await service.update_exercise_order(
        program["id"], module_id, session_id, [entry.model_dump() for entry in data.items]
    )
    return {"updated": updated}


@router.patch("/{exercise_id}", status_code=204)
async def update_exercise(
    module_id: str,
    session_id: str,
    exercise_id: str,
    data: FieldUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.update_exercise(
        program["id"], module_id, session_id, exercise_id, patch_fields(data)
    )


@router.delete("/{exercise_id}", status_code=204)
async def delete_exercise(
    module_id: str,
    session_id: str,
    exercise_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.delete_exercise(program["id"], module_id, session_id, exercise_id)


# =============================================================================
# Sets
# =============================================================================


@router.get("/{exercise_id}/sets")
async def list_sets(
    module_id: str,
    session_id: str,
    exercise_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    return await service.get_sets_by_exercise(program["id"], module_id, session_id, exercise_id)


@router.post("/{exercise_id}/sets", status_code=201)
async def create_set(
    module_id: str,
    session_id: str,
    exercise_id: str,
    data: SetCreate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    return await service.create_set(program["id"], module_id, session_id, exercise_id, data.order)


@router.patch("/{exercise_id}/sets/{set_id}", status_code=204)
async def update_set(
    module_id: str,
    session_id: str,
    exercise_id: str,
    set_id: str,
    data: FieldUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.update_set(
        program["id"], module_id, session_id, exercise_id, set_id, patch_fields(data)
    )


@router.delete("/{exercise_id}/sets/{set_id}", status_code=204)
async def delete_set(
    module_id: str,
    session_id: str,
    exercise_id: str,
    set_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.delete_set(program["id"], module_id, session_id, exercise_id, set_id)
