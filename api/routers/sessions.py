"""
Sessions router.

Endpoints for the sessions of one module: resolved listing, creation,
batched reordering, partial updates, cascading delete, the per-session
override and completeness flags.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from api.deps import get_content_service, get_owned_program
from models.content import (
    CompletenessUpdate,
    FieldUpdate,
    OrderUpdate,
    OverridePatch,
    SessionCreate,
    patch_fields,
)
from services.program_content import ProgramContentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs/{program_id}/modules/{module_id}/sessions",
    tags=["Sessions"],
)


@router.get("")
async def list_sessions(
    module_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    """
    List a module's sessions, library sessions resolved and overrides applied.

    Reading a library module's sessions creates any missing program sessions.
    """
    return await service.get_sessions_by_module(program["id"], module_id)


@router.post("", status_code=201)
async def create_session(
    module_id: str,
    data: SessionCreate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """Create a standalone session, or one referencing a library session."""
    if data.library_session_ref:
        return await service.create_session_from_library(
            program["id"], module_id, data.library_session_ref, data.order
        )
    return await service.create_session(
        program["id"], module_id, data.name, data.order, data.image_url
    )


@router.put("/order")
async def update_session_order(
    module_id: str,
    data: OrderUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, int]:
    """
    Reorder sessions in one batch.

    Raises:
        413: More entries than one batch allows
    """
    updated = await service.update_session_order(
        program["id"], module_id, [entry.model_dump() for entry in data.items]
    )
    return {"updated": updated}


@router.patch("/{session_id}", status_code=204)
async def update_session(
    module_id: str,
    session_id: str,
    data: FieldUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """
    Update session fields.

    Raises:
        404: Session not found
    """
    await service.update_session(program["id"], module_id, session_id, patch_fields(data))


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    module_id: str,
    session_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """
    Delete a session with its override, exercises and sets.

    Raises:
        502: A delete failed part way
    """
    await service.delete_session(program["id"], module_id, session_id)


# =============================================================================
# Overrides
# =============================================================================


@router.get("/{session_id}/overrides")
async def get_session_overrides(
    module_id: str,
    session_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """The session's override, or ``{"overrides": null}`` when it has none."""
    overrides = await service.get_session_overrides(program["id"], module_id, session_id)
    return {"overrides": overrides}


@router.put("/{session_id}/overrides", status_code=204)
async def update_session_override(
    module_id: str,
    session_id: str,
    data: OverridePatch,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """Merge fields into the session's override, creating it when absent."""
    await service.update_session_override(
        program["id"], module_id, session_id, patch_fields(data)
    )


@router.patch("/{session_id}/completeness", status_code=204)
async def update_session_completeness(
    module_id: str,
    session_id: str,
    data: CompletenessUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    await service.update_session_completeness(
        program["id"], module_id, session_id, data.is_complete
    )
