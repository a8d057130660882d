"""Request models for client program assignment."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ClientAssignment(BaseModel):
    """Assign a program to a client user."""

    user_id: str = Field(min_length=1)
    initial_overrides: Dict[str, Any] = {}


class ClientOverrideUpdate(BaseModel):
    """
    Set a value inside a client program at a dotted path, e.g.
    ``modules.m1.sessions.s1.title``.
    """

    path: str = Field(min_length=1, pattern=r"^[^.]+(\.[^.]+)*$")
    value: Any = None


class BulkClientOverrideUpdate(ClientOverrideUpdate):
    """Apply the same override to several clients."""

    user_ids: List[str] = Field(min_length=1)
