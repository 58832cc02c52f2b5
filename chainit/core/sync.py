"""Immediate (synchronous) chain builder."""

import inspect
import logging
from collections.abc import Callable, Hashable, Mapping
from typing import Any, Self

from ..config.defaults import ChainConfig
from ..models import WriteContext
from . import state
from .pipeline import run_middleware
from .protocols import ChainHandle
from .shared import SKIP, Nested

logger = logging.getLogger(__name__)


class Chain:
    """Synchronous fluent builder.

    Every write runs its middleware and commits before returning, so later
    calls in the chain observe it.

    Example:
        >>> user = (
        ...     chainit({}, use=[trim_strings()])
        ...     .set("name", "  Alice  ")
        ...     .set("age", 42)
        ... )
        >>> user.value()
        {'name': 'Alice', 'age': 42}
    """

    def __init__(
        self,
        target: Any = None,
        config: ChainConfig | None = None,
        *,
        root: Any = None,
    ):
        """Initialize builder.

        Args:
            target: Initial record (a new dict if omitted)
            config: Builder configuration (defaults if omitted)
            root: Root record shared with an outer builder
        """
        self._state = {} if target is None else target
        self._root = self._state if root is None else root
        self.config = config or ChainConfig()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._state!r})"

    @property
    def target(self) -> Any:
        """Current record."""
        return self._state

    @property
    def root(self) -> Any:
        """Record of the outermost builder."""
        return self._root

    def value(self) -> Any:
        """Return the current record.

        Live reference in mutable mode, latest committed copy in immutable mode.
        """
        return self._state

    def get(self, key: Hashable, *default: Any) -> Any:
        """Read a field of the current record.

        Args:
            key: Field to read
            default: Optional value returned when the field is missing

        Raises:
            KeyError: If the field is missing and no default was given
            IndexError, TypeError: For list records, on a bad index and no default
        """
        try:
            return self._state[key]
        except (KeyError, IndexError, TypeError):
            if default:
                return default[0]
            raise

    def set(self, key: Hashable, value: Any) -> Self:
        """Write a field through the middleware pipeline.

        Args:
            key: Field to write
            value: Plain value, or Nested to build the value with a child chain

        Returns:
            Self for chaining (also when middleware cancelled the write)
        """
        if isinstance(value, Nested):
            value = self._build_nested(value)

        ctx = WriteContext(field=key, record=self._state, root=self._root)
        result = run_middleware(self.config, key, value, ctx)

        if result is SKIP:
            return self

        self._state = state.write(self._state, key, result, self.config.immutable)
        logger.debug(f"Set {key!r}")
        return self

    def field(self, key: Hashable, *args: Any) -> Any:
        """Generic accessor: ``field(k)`` reads, ``field(k, v)`` writes."""
        if not args:
            return self.get(key)
        if len(args) > 1:
            raise TypeError(f"field() takes at most one value, got {len(args)}")
        return self.set(key, args[0])

    def update(self, fields: Mapping[Hashable, Any] | None = None, /, **kwargs: Any) -> Self:
        """Write several fields in insertion order, each through the pipeline."""
        for key, value in {**(fields or {}), **kwargs}.items():
            self.set(key, value)
        return self

    def tap(self, fn: Callable[[Any], Any]) -> Self:
        """Call ``fn(record)`` for its side effect."""
        fn(self._state)
        return self

    def pipe(self, fn: Callable[[Any], Any]) -> Self:
        """Replace the whole record with ``fn(record)``.

        The result goes through the copy policy but not through middleware.
        """
        self._state = state.replace(fn(self._state), self.config.immutable)
        return self

    def _build_nested(self, marker: Nested) -> Any:
        child = type(self)({}, self.config, root=self._root)
        result = marker.build(child, self)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError("Nested builder callback returned an awaitable; use chainit_async()")
        return child.value()


def chainit(
    target: Any = None,
    config: ChainConfig | Mapping[str, Any] | None = None,
    *,
    root: Any = None,
    **options: Any,
) -> Chain:
    """Create a synchronous chain builder.

    Args:
        target: Initial record (a new dict if omitted)
        config: ChainConfig or mapping with immutable/use/props/fail_fast
        root: Root record shared with an outer builder
        **options: Individual config overrides

    Returns:
        Chain handle

    Example:
        >>> form = chainit({}, use=[trim_strings()], props={"age": [to_number()]})
        >>> form.set("name", " Mona ").set("age", "42").value()
        {'name': 'Mona', 'age': 42}
    """
    return Chain(target, ChainConfig.from_options(config, **options), root=root)


# Verify protocol implementation at module load time
assert isinstance(Chain(), ChainHandle), "Chain must implement ChainHandle protocol"
