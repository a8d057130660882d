"""Models package for the program content API."""

from models.client import BulkClientOverrideUpdate, ClientAssignment, ClientOverrideUpdate
from models.content import (
    CompletenessBatchEntry,
    CompletenessUpdate,
    ExerciseCreate,
    FieldUpdate,
    LibraryModuleCreate,
    ModuleCreate,
    OrderEntry,
    OrderUpdate,
    OverridePatch,
    SessionCreate,
    SetCreate,
)
from models.program import (
    DeliveryType,
    ProgramCreate,
    ProgramListResponse,
    ProgramStatus,
    ProgramType,
    ProgramUpdate,
    ReleaseResponse,
)
from models.session_refs import (
    BareRef,
    NormalizedSessionRef,
    OrderedRef,
    SessionRef,
    normalize_session_refs,
)

__all__ = [
    # Programs
    "DeliveryType",
    "ProgramCreate",
    "ProgramListResponse",
    "ProgramStatus",
    "ProgramType",
    "ProgramUpdate",
    "ReleaseResponse",
    # Hierarchy
    "CompletenessBatchEntry",
    "CompletenessUpdate",
    "ExerciseCreate",
    "FieldUpdate",
    "LibraryModuleCreate",
    "ModuleCreate",
    "OrderEntry",
    "OrderUpdate",
    "OverridePatch",
    "SessionCreate",
    "SetCreate",
    # Session refs
    "BareRef",
    "NormalizedSessionRef",
    "OrderedRef",
    "SessionRef",
    "normalize_session_refs",
    # Clients
    "BulkClientOverrideUpdate",
    "ClientAssignment",
    "ClientOverrideUpdate",
]
