from __future__ import annotations

from typing import Any, Hashable, Iterable

from sqlalchemy import inspect
from sqlalchemy.orm import InstanceState


def _identity_key(item: Any) -> Hashable:
    # Mapped instances are unique per session identity map, so object identity
    # is the root entity identity.
    if isinstance(inspect(item, raiseerr=False), InstanceState):
        return ("entity", id(item))
    return ("value", item)


def _is_hashable(key: Hashable) -> bool:
    try:
        hash(key)
    except TypeError:
        return False
    return True


def distinct_root_entities(items: Iterable[Any]) -> list[Any]:
    """Collapse duplicates caused by join fan-out, keeping first-seen order.

    Rows carrying unhashable values (JSON dicts or lists) are compared by
    equality against the other unhashable rows seen so far.
    """

    seen: set[Hashable] = set()
    unhashable_seen: list[Any] = []
    unique: list[Any] = []
    for item in items:
        key = _identity_key(item)
        if _is_hashable(key):
            if key in seen:
                continue
            seen.add(key)
        else:
            if any(item == other for other in unhashable_seen):
                continue
            unhashable_seen.append(item)
        unique.append(item)
    return unique


__all__ = ["distinct_root_entities"]
