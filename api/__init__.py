"""
API package for the Program Content API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_content_service,
    get_current_user,
    get_document_store,
    get_owned_program,
    get_settings,
    get_store_executor,
    get_supabase_client,
    get_supabase_client_required,
)

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
