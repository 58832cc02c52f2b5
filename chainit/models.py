"""Domain models for chain builders."""

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class WriteContext:
    """Context handed to every middleware call.

    Attributes:
        field: Field being written
        record: Record as it stood when the middleware was invoked
        root: Record of the outermost builder, shared by nested children
    """

    field: Hashable
    record: Any
    root: Any
