"""
Services package for the program content API.

Contains the business logic for:
- Library reference resolution (modules, sessions, exercises, sets)
- Session overrides and lazy session materialization
- Hierarchy writes (create, reorder, update, cascading delete)
- Plan-backed program content
- Client program assignment
"""

from services.client_programs import ClientProgramService
from services.hierarchy_mutator import HierarchyMutator
from services.library_store import LibraryStore
from services.materializer import SessionMaterializer, placeholder_session_id
from services.override_merge import OverrideStore, merge_override
from services.plan_content import PlanContentService
from services.program_content import ProgramContentService
from services.reference_resolver import ReferenceResolver, sort_by_order

__all__ = [
    # Facade
    "ProgramContentService",
    # Resolution
    "LibraryStore",
    "ReferenceResolver",
    "sort_by_order",
    # Overrides
    "OverrideStore",
    "merge_override",
    # Materialization
    "SessionMaterializer",
    "placeholder_session_id",
    # Writes
    "HierarchyMutator",
    # Plans
    "PlanContentService",
    # Clients
    "ClientProgramService",
]
