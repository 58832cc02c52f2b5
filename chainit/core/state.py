"""Record storage with in-place or copy-on-write semantics.

Pure functions with no state.
"""

from collections.abc import Hashable
from typing import Any


def clone(record: Any) -> Any:
    """Shallow copy a record.

    Lists become new lists with the same elements, anything else becomes a new
    dict with the same top-level pairs.
    """
    if isinstance(record, list):
        return list(record)
    return dict(record)


def write(record: Any, key: Hashable, value: Any, immutable: bool) -> Any:
    """Set ``key`` on the record and return the committed record.

    Args:
        record: Current record
        key: Field to set
        value: Value after middleware
        immutable: Copy the record first instead of mutating it

    Returns:
        The same record in mutable mode, a fresh copy in immutable mode
    """
    target = clone(record) if immutable else record
    target[key] = value
    return target


def replace(record: Any, immutable: bool) -> Any:
    """Apply the copy policy to a whole-record replacement."""
    return clone(record) if immutable else record


def unique(items: list) -> list:
    """Drop duplicate items, keeping first occurrences in order.

    Hashable items are deduplicated by hash. Lists holding unhashable items
    such as dicts or lists fall back to equality comparison.
    """
    try:
        return list(dict.fromkeys(items))
    except TypeError:
        seen: list = []
        for item in items:
            if item not in seen:
                seen.append(item)
        return seen
