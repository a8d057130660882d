"""
Client programs router.

Endpoints for assigning a program to client users and for the per-client
overrides stored on each assignment.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_content_service, get_owned_program
from models.client import BulkClientOverrideUpdate, ClientAssignment, ClientOverrideUpdate
from services.program_content import ProgramContentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs/{program_id}/clients",
    tags=["Clients"],
)


@router.post("", status_code=201)
async def assign_program_to_client(
    data: ClientAssignment,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, str]:
    """
    Assign the program to a client, snapshotting program and library versions.

    Returns:
        The client program ID
    """
    client_program_id = await service.assign_program_to_client(
        program["id"], data.user_id, data.initial_overrides
    )
    return {"id": client_program_id}


@router.get("")
async def list_client_programs(
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> List[Dict[str, Any]]:
    return await service.get_client_programs_for_program(program["id"])


@router.patch("/overrides")
async def bulk_update_client_overrides(
    data: BulkClientOverrideUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, int]:
    """
    Apply the same override to several clients.

    Raises:
        404: One of the clients has no assignment
    """
    updated = await service.bulk_update_client_programs(
        program["id"], data.user_ids, data.path, data.value
    )
    return {"updated": updated}


@router.get("/{user_id}")
async def get_client_program(
    user_id: str,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """
    Get one client's assignment.

    Raises:
        404: The client has no assignment for this program
    """
    client_program = await service.get_client_program(program["id"], user_id)
    if client_program is None:
        raise HTTPException(
            status_code=404,
            detail=f"Program {program['id']} is not assigned to {user_id}",
        )
    return client_program


@router.patch("/{user_id}/overrides", status_code=204)
async def update_client_override(
    user_id: str,
    data: ClientOverrideUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """
    Set one override inside a client's assignment.

    Raises:
        404: The client has no assignment for this program
    """
    await service.update_client_override(program["id"], user_id, data.path, data.value)
