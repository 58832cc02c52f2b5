"""Core protocols for chain builders.

Protocols (PEP 544) describe the middleware contract and the handle surface
shared by the sync and queued engines, so either engine can be passed where a
handle is expected and middleware can be plain functions.
"""

from collections.abc import Callable, Hashable
from typing import Any, Protocol, Self, runtime_checkable

from ..config.defaults import ChainConfig
from ..models import WriteContext


@runtime_checkable
class Middleware(Protocol):
    """Callable run for every field write it applies to.

    Outcomes:
    - a replacement value
    - None or UNCHANGED to keep the incoming value
    - SKIP to cancel the write
    - raising to fail the write
    """

    def __call__(self, key: Hashable, value: Any, ctx: WriteContext) -> Any:
        """Handle one field write.

        Args:
            key: Field being written
            value: Incoming value (output of the previous middleware)
            ctx: Write context

        Returns:
            Outcome (may be awaitable for queued chains)
        """
        ...


@runtime_checkable
class ChainHandle(Protocol):
    """Fluent handle over a record.

    Implemented by:
    - Chain (immediate, synchronous writes)
    - AsyncChain (queued writes, awaited with value())
    """

    config: ChainConfig

    @property
    def target(self) -> Any:
        """Current record (best effort for queued chains)."""
        ...

    @property
    def root(self) -> Any:
        """Record of the outermost builder."""
        ...

    def get(self, key: Hashable, *default: Any) -> Any:
        """Read a field of the current record."""
        ...

    def set(self, key: Hashable, value: Any) -> Self:
        """Write a field through the middleware pipeline."""
        ...

    def field(self, key: Hashable, *args: Any) -> Any:
        """Read when called with no value, write otherwise."""
        ...

    def update(self, fields: Any = None, /, **kwargs: Any) -> Self:
        """Write several fields in order."""
        ...

    def tap(self, fn: Callable[[Any], Any]) -> Self:
        """Call ``fn(record)`` for its side effect."""
        ...

    def pipe(self, fn: Callable[[Any], Any]) -> Self:
        """Replace the record with ``fn(record)``."""
        ...

    def value(self) -> Any:
        """Final record (a coroutine for queued chains)."""
        ...
