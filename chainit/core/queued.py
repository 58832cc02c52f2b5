"""Queued (asyncio) chain builder.

Same surface as the synchronous builder, but every write is appended to an
ordered task list and returns immediately. A single worker runs the tasks one
at a time, so an awaiting middleware delays the next write instead of
interleaving with it. ``await chain.value()`` drains the list and returns the
final record.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from types import TracebackType
from typing import Any, Self

from ..config.defaults import ChainConfig
from ..models import WriteContext
from . import state
from .pipeline import arun_middleware
from .protocols import ChainHandle
from .shared import SKIP, Nested

logger = logging.getLogger(__name__)

Task = Callable[[Any], Awaitable[Any]]


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class AsyncChain:
    """Queued fluent builder.

    Writes are queued and applied strictly in call order, each against the
    record current when its turn comes. ``get()`` and ``target`` are best
    effort and may not reflect queued writes yet; ``value()`` is authoritative.

    Example:
        >>> chain = chainit_async({}, use=[check_username])
        >>> chain.set("username", "alice").set("username", "bob")
        >>> await chain.value()
        {'username': 'bob'}
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

        self._tasks: list[Task] = []
        self._cursor = 0
        self._worker: asyncio.Task | None = None
        # (exception, traceback at capture), in task order
        self._errors: list[tuple[Exception, TracebackType | None]] = []
        self._reported = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._state!r}, pending={self.pending})"

    @property
    def target(self) -> Any:
        """Current record, not waiting for queued writes."""
        return self._state

    @property
    def root(self) -> Any:
        """Record of the outermost builder."""
        return self._root

    @property
    def pending(self) -> int:
        """Number of queued tasks not yet started."""
        return len(self._tasks) - self._cursor

    def get(self, key: Hashable, *default: Any) -> Any:
        """Read a field of the current record without waiting for the queue.

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
        """Queue a field write.

        Args:
            key: Field to write
            value: Plain value, or Nested to build the value with a child chain

        Returns:
            Self for chaining
        """

        async def write(record: Any) -> Any:
            incoming = value
            if isinstance(incoming, Nested):
                incoming = await self._build_nested(incoming)

            ctx = WriteContext(field=key, record=record, root=self._root)
            result = await arun_middleware(self.config, key, incoming, ctx)

            if result is SKIP:
                return record

            logger.debug(f"Set {key!r}")
            return state.write(record, key, result, self.config.immutable)

        return self._enqueue(write)

    def field(self, key: Hashable, *args: Any) -> Any:
        """Generic accessor: ``field(k)`` reads, ``field(k, v)`` queues a write."""
        if not args:
            return self.get(key)
        if len(args) > 1:
            raise TypeError(f"field() takes at most one value, got {len(args)}")
        return self.set(key, args[0])

    def update(self, fields: Mapping[Hashable, Any] | None = None, /, **kwargs: Any) -> Self:
        """Queue one write per field, in insertion order."""
        for key, value in {**(fields or {}), **kwargs}.items():
            self.set(key, value)
        return self

    def tap(self, fn: Callable[[Any], Any]) -> Self:
        """Queue ``fn(record)`` for its side effect; ``fn`` may be async."""

        async def side_effect(record: Any) -> Any:
            await _resolve(fn(record))
            return record

        return self._enqueue(side_effect)

    def pipe(self, fn: Callable[[Any], Any]) -> Self:
        """Queue a whole-record replacement with ``fn(record)``; ``fn`` may be async."""

        async def transform(record: Any) -> Any:
            return state.replace(await _resolve(fn(record)), self.config.immutable)

        return self._enqueue(transform)

    async def value(self) -> Any:
        """Wait for every queued task and return the final record.

        Tasks queued while waiting are waited for too. Every awaiter sees the
        failures captured since the last report, including awaiters that were
        waiting at the same time.

        Raises:
            Exception: The first failure raised by a queued task
        """
        start = self._reported
        while self._worker is not None or self.pending:
            if self._worker is None or self._worker.done():
                if not self.pending:
                    break
                self._start_worker(asyncio.get_running_loop())
            await asyncio.shield(self._worker)

        failures = self._errors[start:]
        if failures:
            # fail_fast keeps reporting the same failure
            if not self.config.fail_fast:
                self._reported = max(self._reported, len(self._errors))
            error, tb = failures[0]
            if len(failures) > 1:
                note = f"{len(failures) - 1} later task failure(s) were logged"
                if note not in getattr(error, "__notes__", ()):
                    error.add_note(note)
            raise error.with_traceback(tb)

        return self._state

    def _enqueue(self, task: Task) -> Self:
        self._tasks.append(task)
        if self._worker is None or self._worker.done():
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop yet; value() starts the worker
                return self
            self._start_worker(loop)
        return self

    def _start_worker(self, loop: asyncio.AbstractEventLoop) -> None:
        self._worker = loop.create_task(self._drain())

    async def _drain(self) -> None:
        """Run queued tasks one at a time, in append order."""
        while self._cursor < len(self._tasks):
            task = self._tasks[self._cursor]
            self._cursor += 1

            if self._errors and self.config.fail_fast:
                logger.debug("Discarding queued task after earlier failure")
                continue

            try:
                self._state = await task(self._state)
            except Exception as e:
                logger.error(f"Queued task {self._cursor} failed: {e}", exc_info=True)
                self._errors.append((e, e.__traceback__))

    async def _build_nested(self, marker: Nested) -> Any:
        child = type(self)({}, self.config, root=self._root)
        await _resolve(marker.build(child, self))
        return await child.value()


def chainit_async(
    target: Any = None,
    config: ChainConfig | Mapping[str, Any] | None = None,
    *,
    root: Any = None,
    **options: Any,
) -> AsyncChain:
    """Create a queued chain builder.

    Args:
        target: Initial record (a new dict if omitted)
        config: ChainConfig or mapping with immutable/use/props/fail_fast
        root: Root record shared with an outer builder
        **options: Individual config overrides

    Returns:
        AsyncChain handle

    Example:
        >>> chain = chainit_async({}, use=[delay(0.05)])
        >>> chain.set("name", "Bob").set("age", 28)
        >>> await chain.value()
        {'name': 'Bob', 'age': 28}
    """
    return AsyncChain(target, ChainConfig.from_options(config, **options), root=root)


# Verify protocol implementation at module load time
assert isinstance(AsyncChain(), ChainHandle), "AsyncChain must implement ChainHandle protocol"
