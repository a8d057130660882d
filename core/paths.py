"""
Document paths for the program content hierarchy.

Paths are slash-joined segments alternating collection / document id:

    courses/{programId}/modules/{moduleId}/sessions/{sessionId}/...
    creator_libraries/{creatorId}/modules/{libraryModuleId}
    creator_libraries/{creatorId}/sessions/{librarySessionId}/exercises/...
    plans/{planId}/modules/{moduleId}/...

Every builder rejects empty ids and ids containing ``/`` so a bad argument
never addresses a parent collection or a foreign subtree by accident.
"""

from core.constants import (
    CLIENT_PROGRAMS_COLLECTION,
    EXERCISES_COLLECTION,
    LIBRARIES_COLLECTION,
    MODULES_COLLECTION,
    OVERRIDE_DOC_ID,
    OVERRIDES_COLLECTION,
    PLANS_COLLECTION,
    PROGRAMS_COLLECTION,
    SESSIONS_COLLECTION,
    SETS_COLLECTION,
)


def join(prefix: str, *segments: str) -> str:
    """
    Append segments to a path.

    ``prefix`` may already be a multi-segment path. Every appended segment is
    a single id or collection name: non-empty and without ``/``.
    """
    if not prefix:
        raise ValueError(f"Empty path prefix before {segments!r}")
    for segment in segments:
        if not segment:
            raise ValueError(f"Empty path segment after {prefix!r}")
        if "/" in segment:
            raise ValueError(f"Path segment must not contain '/': {segment!r}")
    return "/".join((prefix,) + segments)


def parent_collection(path: str) -> str:
    """Collection path that holds the document at ``path``."""
    return path.rsplit("/", 1)[0]


def document_id(path: str) -> str:
    """Last segment of a document path."""
    return path.rsplit("/", 1)[-1]


class ContentPaths:
    """
    Path builder for a Module/Session/Exercise/Set hierarchy rooted at
    ``{root_collection}/{root_id}``.

    Programs and plans share the same shape below the root document, so the
    same builder serves both.
    """

    def __init__(self, root_collection: str, root_id: str):
        self.root = join(root_collection, root_id)

    def modules(self) -> str:
        return join(self.root, MODULES_COLLECTION)

    def module(self, module_id: str) -> str:
        return join(self.modules(), module_id)

    def sessions(self, module_id: str) -> str:
        return join(self.module(module_id), SESSIONS_COLLECTION)

    def session(self, module_id: str, session_id: str) -> str:
        return join(self.sessions(module_id), session_id)

    def override(self, module_id: str, session_id: str) -> str:
        return join(self.session(module_id, session_id), OVERRIDES_COLLECTION, OVERRIDE_DOC_ID)

    def exercises(self, module_id: str, session_id: str) -> str:
        return join(self.session(module_id, session_id), EXERCISES_COLLECTION)

    def exercise(self, module_id: str, session_id: str, exercise_id: str) -> str:
        return join(self.exercises(module_id, session_id), exercise_id)

    def sets(self, module_id: str, session_id: str, exercise_id: str) -> str:
        return join(self.exercise(module_id, session_id, exercise_id), SETS_COLLECTION)

    def set(self, module_id: str, session_id: str, exercise_id: str, set_id: str) -> str:
        return join(self.sets(module_id, session_id, exercise_id), set_id)


def program_paths(program_id: str) -> ContentPaths:
    """Paths under ``courses/{program_id}``."""
    return ContentPaths(PROGRAMS_COLLECTION, program_id)


def plan_paths(plan_id: str) -> ContentPaths:
    """Paths under ``plans/{plan_id}``."""
    return ContentPaths(PLANS_COLLECTION, plan_id)


def programs_collection() -> str:
    return PROGRAMS_COLLECTION


def program(program_id: str) -> str:
    return join(PROGRAMS_COLLECTION, program_id)


# -----------------------------------------------------------------------------
# Creator library
# -----------------------------------------------------------------------------


def library_module(creator_id: str, library_module_id: str) -> str:
    return join(LIBRARIES_COLLECTION, creator_id, MODULES_COLLECTION, library_module_id)


def library_session(creator_id: str, library_session_id: str) -> str:
    return join(LIBRARIES_COLLECTION, creator_id, SESSIONS_COLLECTION, library_session_id)


def library_exercises(creator_id: str, library_session_id: str) -> str:
    return join(library_session(creator_id, library_session_id), EXERCISES_COLLECTION)


def library_sets(creator_id: str, library_session_id: str, exercise_id: str) -> str:
    return join(library_exercises(creator_id, library_session_id), exercise_id, SETS_COLLECTION)


# -----------------------------------------------------------------------------
# Client programs
# -----------------------------------------------------------------------------


def client_programs_collection() -> str:
    return CLIENT_PROGRAMS_COLLECTION


def client_program_id(user_id: str, program_id: str) -> str:
    return f"{user_id}_{program_id}"


def client_program(user_id: str, program_id: str) -> str:
    return join(CLIENT_PROGRAMS_COLLECTION, client_program_id(user_id, program_id))
