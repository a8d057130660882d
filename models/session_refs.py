"""
Library module session references.

A library module lists its sessions in ``sessionRefs``. Two encodings exist
in stored data:

    ["ls-1", "ls-2"]                                   # bare ids
    [{"librarySessionRef": "ls-1", "order": 0}, ...]   # ordered objects

Both are parsed once, here, into ``BareRef | OrderedRef`` and then
normalized to ``NormalizedSessionRef`` (library session id + effective
order). Nothing downstream inspects the raw shape.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

logger = logging.getLogger(__name__)

# Keys that may carry the library session id inside an object ref
_REF_ID_KEYS = ("librarySessionRef", "ref", "id")


@dataclass(frozen=True)
class BareRef:
    """A bare library session id. Its order is its position in the list."""

    library_session_id: str


@dataclass(frozen=True)
class OrderedRef:
    """A library session id with an explicit order (None when not stored)."""

    library_session_id: str
    order: Optional[int] = None


SessionRef = Union[BareRef, OrderedRef]


@dataclass(frozen=True)
class NormalizedSessionRef:
    """A session reference with its effective order resolved."""

    library_session_id: str
    order: int


def parse_session_ref(raw: Any) -> Optional[SessionRef]:
    """
    Parse one stored ``sessionRefs`` entry.

    Args:
        raw: A string id or a mapping carrying the id and optional order

    Returns:
        BareRef or OrderedRef, or None if no library session id can be found
    """
    if isinstance(raw, str):
        return BareRef(raw) if raw else None

    if isinstance(raw, dict):
        ref_id = next((raw[key] for key in _REF_ID_KEYS if raw.get(key)), None)
        if not isinstance(ref_id, str):
            return None
        order = raw.get("order")
        if isinstance(order, bool) or not isinstance(order, int):
            order = None
        return OrderedRef(ref_id, order)

    return None


def effective_order(ref: SessionRef, index: int) -> int:
    """Order of a parsed ref at list position ``index``."""
    if isinstance(ref, OrderedRef) and ref.order is not None:
        return ref.order
    return index


def normalize_session_refs(raw_refs: Any) -> List[NormalizedSessionRef]:
    """
    Normalize a stored ``sessionRefs`` value.

    Unparseable entries are logged and skipped; their list position is still
    consumed so the remaining bare refs keep their original order.

    Args:
        raw_refs: The stored ``sessionRefs`` value (list or None)

    Returns:
        Normalized refs in list order
    """
    if not raw_refs:
        return []
    if not isinstance(raw_refs, list):
        logger.warning(f"Ignoring sessionRefs of unexpected type {type(raw_refs).__name__}")
        return []

    normalized: List[NormalizedSessionRef] = []
    for index, raw in enumerate(raw_refs):
        ref = parse_session_ref(raw)
        if ref is None:
            logger.warning(f"Skipping invalid sessionRef at position {index}: {raw!r}")
            continue
        normalized.append(NormalizedSessionRef(ref.library_session_id, effective_order(ref, index)))
    return normalized
