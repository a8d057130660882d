"""
Programs CRUD router.

This router provides endpoints for managing a creator's programs:
- List the creator's programs (with status filter and pagination)
- Get program details
- Create new programs
- Update programs (partial updates)
- Release the current version to users
- Delete programs (cascading hard delete)
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_content_service, get_current_user, get_owned_program
from models.program import (
    ProgramCreate,
    ProgramListResponse,
    ProgramStatus,
    ProgramUpdate,
    ReleaseResponse,
)
from services.program_content import ProgramContentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/programs",
    tags=["Programs"],
)


# =============================================================================
# List Programs
# =============================================================================


@router.get("", response_model=ProgramListResponse)
async def list_programs(
    user_id: str = Depends(get_current_user),
    service: ProgramContentService = Depends(get_content_service),
    status: Optional[ProgramStatus] = Query(
        None, description="Filter by program status"
    ),
    limit: int = Query(20, ge=1, le=100, description="Maximum programs to return"),
    offset: int = Query(0, ge=0, description="Number of programs to skip"),
) -> ProgramListResponse:
    """
    List all programs of the current creator.

    Args:
        status: Optional status filter (draft, published, archived)
        limit: Maximum number of programs to return (default 20, max 100)
        offset: Number of programs to skip for pagination

    Returns:
        Paginated list of programs
    """
    logger.info(f"Listing programs for creator {user_id}, status={status}")

    programs = await service.get_programs_by_creator(user_id)
    if status:
        programs = [p for p in programs if p.get("status") == status.value]

    return ProgramListResponse(
        programs=programs[offset : offset + limit],
        total=len(programs),
        limit=limit,
        offset=offset,
    )


# =============================================================================
# Get / Create
# =============================================================================


@router.get("/{program_id}")
async def get_program(
    program: Dict[str, Any] = Depends(get_owned_program),
) -> Dict[str, Any]:
    """
    Get a single program.

    Raises:
        404: Program not found (or owned by another creator)
    """
    return program


@router.post("", status_code=201)
async def create_program(
    data: ProgramCreate,
    user_id: str = Depends(get_current_user),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """
    Create a new program owned by the current creator.

    Args:
        data: Program settings

    Returns:
        The created program
    """
    logger.info(f"Creating program for creator {user_id}")
    return await service.create_program(user_id, data)


# =============================================================================
# Update / Release
# =============================================================================


@router.patch("/{program_id}")
async def update_program(
    update: ProgramUpdate,
    program: Dict[str, Any] = Depends(get_owned_program),
    user_id: str = Depends(get_current_user),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """
    Update an existing program.

    Only the fields sent are changed; ``published_version`` is ignored.

    Returns:
        The updated program

    Raises:
        404: Program not found
    """
    update_data = update.model_dump(exclude_unset=True, mode="json")
    if not update_data:
        return program

    logger.info(f"Updating program {program['id']} for creator {user_id}")
    await service.update_program(program["id"], update_data)
    return await service.get_program(program["id"], creator_id=user_id)


@router.post("/{program_id}/release", response_model=ReleaseResponse)
async def release_program(
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> ReleaseResponse:
    """
    Release the program's current version to its users.

    Raises:
        404: Program not found
    """
    result = await service.release_program(program["id"])
    return ReleaseResponse(**result)


# =============================================================================
# Delete Program
# =============================================================================


@router.delete("/{program_id}", status_code=204)
async def delete_program(
    program: Dict[str, Any] = Depends(get_owned_program),
    service: ProgramContentService = Depends(get_content_service),
) -> None:
    """
    Delete a program with all its modules, sessions, exercises and sets.

    Raises:
        404: Program not found
        502: A delete failed part way (already deleted documents stay deleted)
    """
    deleted = await service.delete_program(program["id"])
    logger.info(f"Deleted program {program['id']} ({deleted} documents)")
