"""
Shared constants.

This module has no dependencies on models or services to avoid circular imports.
"""

# Store ceiling for a single batched write
MAX_BATCH_OPERATIONS = 500

# Collection names as they exist in the document store
PROGRAMS_COLLECTION = "courses"
MODULES_COLLECTION = "modules"
SESSIONS_COLLECTION = "sessions"
EXERCISES_COLLECTION = "exercises"
SETS_COLLECTION = "sets"
OVERRIDES_COLLECTION = "overrides"
OVERRIDE_DOC_ID = "data"
LIBRARIES_COLLECTION = "creator_libraries"
PLANS_COLLECTION = "plans"
CLIENT_PROGRAMS_COLLECTION = "client_programs"

# Delivery types
DELIVERY_LOW_TICKET = "low_ticket"
DELIVERY_ONE_ON_ONE = "one_on_one"

# Fields never copied from an override onto library content
OVERRIDE_BOOKKEEPING_FIELDS = frozenset({"created_at", "updated_at"})

# Default version recorded for library entities without one
DEFAULT_LIBRARY_VERSION = "1.0"


def module_title(order: int) -> str:
    """Display title of a module at the given order ("Semana 1" for order 0)."""
    return f"Semana {order + 1}"


def set_title(order: int) -> str:
    """Display title of a set at the given order ("Serie 1" for order 0)."""
    return f"Serie {order + 1}"
