"""Request models for the Module/Session/Exercise/Set hierarchy."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.constants import MAX_BATCH_OPERATIONS


class ModuleCreate(BaseModel):
    """Create a standalone module, or one referencing a library module."""

    name: Optional[str] = Field(None, max_length=200)
    library_module_ref: Optional[str] = None


class LibraryModuleCreate(BaseModel):
    """Create a module from a library module, with its session placeholders."""

    library_module_ref: str = Field(min_length=1)


class SessionCreate(BaseModel):
    """Create a standalone session, or one referencing a library session."""

    name: Optional[str] = Field(None, max_length=200)
    order: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    library_session_ref: Optional[str] = None


class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    order: Optional[int] = Field(None, ge=0)


class SetCreate(BaseModel):
    order: Optional[int] = Field(None, ge=0)


class OrderEntry(BaseModel):
    """New position of one sibling."""

    id: str = Field(min_length=1)
    order: int = Field(ge=0)


class OrderUpdate(BaseModel):
    """
    Batched reorder request.

    The size ceiling is checked by the service (so direct callers get the same
    rejection); the API schema advertises it too.
    """

    items: List[OrderEntry] = Field(json_schema_extra={"maxItems": MAX_BATCH_OPERATIONS})


class FieldUpdate(BaseModel):
    """Partial update of a session, exercise or set."""

    model_config = ConfigDict(extra="allow")


class OverridePatch(BaseModel):
    """Sparse patch merged over a library session."""

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(None, max_length=200)
    image_url: Optional[str] = None


class CompletenessUpdate(BaseModel):
    is_complete: bool


class CompletenessBatchEntry(BaseModel):
    """One completeness flag inside a batch update."""

    type: Literal["module", "session"]
    program_id: Optional[str] = None
    module_id: str
    session_id: Optional[str] = None
    is_complete: bool

    @model_validator(mode="after")
    def require_session_id(self) -> "CompletenessBatchEntry":
        """Session entries must name their session."""
        if self.type == "session" and not self.session_id:
            raise ValueError("session_id is required for session completeness updates")
        return self


def patch_fields(model: BaseModel) -> Dict[str, Any]:
    """Fields explicitly sent in a PATCH body (declared and extra)."""
    return model.model_dump(exclude_unset=True)
