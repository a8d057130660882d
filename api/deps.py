"""
FastAPI Dependency Providers for the Program Content API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations.

Architecture:
- Settings, Supabase client and the store thread pool are cached per-process (lru_cache)
- Store and service providers create new instances per-request
- Auth providers extract the creator from headers

Usage in routers:
    from api.deps import get_content_service, get_current_user
    from services.program_content import ProgramContentService

    @router.get("/programs")
    async def list_programs(
        user_id: str = Depends(get_current_user),
        service: ProgramContentService = Depends(get_content_service),
    ):
        return await service.get_programs_by_creator(user_id)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_document_store] = lambda: FakeDocumentStore()
"""

from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException
from supabase import Client, create_client

from application.ports import DocumentStore
from backend.settings import Settings, get_settings as _get_settings
from infrastructure.db import SupabaseDocumentStore
from services.program_content import ProgramContentService


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Creates a Supabase client using credentials from settings.
    Returns None if credentials are not configured.

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Use this dependency when the endpoint requires database access.
    Raises HTTPException 503 if database is not available.

    Returns:
        Client: Supabase client instance

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


@lru_cache
def get_store_executor() -> ThreadPoolExecutor:
    """Thread pool shared by every request's document store (cached)."""
    return ThreadPoolExecutor(
        max_workers=_get_settings().store_max_workers,
        thread_name_prefix="document_store_",
    )


# =============================================================================
# Store and Service Providers
# =============================================================================


def get_document_store(
    client: Client = Depends(get_supabase_client_required),
    settings: Settings = Depends(get_settings),
) -> DocumentStore:
    """
    Get DocumentStore implementation.

    Returns a SupabaseDocumentStore instance with injected client.
    The return type is the Protocol to enable easy mocking.

    Args:
        client: Supabase client (injected)
        settings: Application settings (injected)

    Returns:
        DocumentStore: Store for programs, libraries and plans
    """
    return SupabaseDocumentStore(
        client,
        table=settings.documents_table,
        executor=get_store_executor(),
    )


def get_content_service(
    store: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings),
) -> ProgramContentService:
    """
    Get the program content service for this request.

    Args:
        store: Document store (injected)
        settings: Application settings (injected)

    Returns:
        ProgramContentService: Facade over reads, writes and client assignment
    """
    return ProgramContentService(store, batch_limit=settings.batch_write_limit)


# =============================================================================
# Authentication Providers
# =============================================================================


async def get_current_user(
    authorization: Optional[str] = Header(None),
) -> str:
    """
    Get the current authenticated creator ID.

    Extracts the creator ID from the Authorization header.

    Args:
        authorization: Bearer token header

    Returns:
        str: Creator ID from authentication

    Raises:
        HTTPException: 401 if authentication fails
        RuntimeError: If auth stub is used in production
    """
    # Block production deployment with the auth stub
    if _get_settings().is_production:
        raise RuntimeError(
            "Authentication stub cannot be used in production. "
            "Implement proper JWT validation before deploying."
        )

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing authorization header",
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format",
        )

    token = authorization[7:]  # Remove "Bearer " prefix
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
        )

    # Stub: the token is the creator ID
    return token


async def get_owned_program(
    program_id: str,
    user_id: str = Depends(get_current_user),
    service: ProgramContentService = Depends(get_content_service),
) -> Dict[str, Any]:
    """
    Load the program addressed by the path, scoped to the current creator.

    A program owned by another creator is reported as not found so that
    program IDs cannot be enumerated.

    Raises:
        ProgramNotFoundError: If the program is missing or not owned (404)
    """
    return await service.get_program(program_id, creator_id=user_id)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    "get_store_executor",
    # Store and services
    "get_document_store",
    "get_content_service",
    # Authentication
    "get_current_user",
    "get_owned_program",
]
