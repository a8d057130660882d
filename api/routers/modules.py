"""
Modules router.

Endpoints for the modules of a program: resolved listing, summary counts,
creation (standalone, referencing, or from a library module with its
sessions), batched reordering, cascading delete and completeness flags.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from api.deps import get_content_service, get_owned_program
from models.content import (
    CompletenessBatchEntry,
    CompletenessUpdate,
    LibraryModuleCreate,
    ModuleCreate,
    OrderUpdate,
)
from services.program_content import ProgramContentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs/{program_id}/modules",
    tags=["Modules"],
)


@router.get("")
async def list_modules(
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    """
    List the program's modules with library references resolved.

    Library modules include their ``sessions``; plan-backed programs return
    the plan's modules with sessions and exercises nested.
    """
    return await service.get_modules_by_program(program["id"])


@router.get("/counts")
async def list_modules_with_counts(
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    """Stored modules with session/exercise counts and completeness."""
    return await service.get_modules_with_counts(program["id"])


@router.post("", status_code=201)
async def create_module(
    data: ModuleCreate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    return await service.create_module(program["id"], data.name, data.library_module_ref)


@router.post("/from-library", status_code=201)
async def create_module_from_library(
    data: LibraryModuleCreate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """
    Create a module from a library module, with one session per library session.

    Raises:
        404: Library module not found
    """
    return await service.create_module_from_library(program["id"], data.library_module_ref)


@router.put("/order")
async def update_module_order(
    data: OrderUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, int]:
    """
    Reorder modules in one batch; each module's title follows its new order.

    Raises:
        413: More entries than one batch allows
    """
    updated = await service.update_module_order(
        program["id"], [entry.model_dump() for entry in data.items]
    )
    return {"updated": updated}


@router.put("/completeness")
async def batch_update_completeness(
    entries: List[CompletenessBatchEntry],
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, int]:
    """
    Write several module/session completeness flags of this program at once.

    Raises:
        413: More entries than one batch allows
    """
    updates = [{**entry.model_dump(), "program_id": program["id"]} for entry in entries]
    updated = await service.batch_update_completeness(updates)
    return {"updated": updated}


@router.delete("/{module_id}", status_code=204)
async def delete_module(
    module_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """
    Delete a module with its sessions, exercises and sets.

    Raises:
        502: A delete failed part way
    """
    await service.delete_module(program["id"], module_id)


@router.patch("/{module_id}/completeness", status_code=204)
async def update_module_completeness(
    module_id: str,
    data: CompletenessUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.update_module_completeness(program["id"], module_id, data.is_complete)
