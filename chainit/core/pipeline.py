"""Middleware runners for field writes.

This module provides pure function pipelines with no state. A write runs the
global ``use`` list first and then, unless it was cancelled, the list
registered for the field under ``props``.
"""

import inspect
import logging
from collections.abc import Hashable, Iterable
from typing import Any

from ..config.defaults import ChainConfig
from ..models import WriteContext
from .shared import SKIP, UNCHANGED, should_run

logger = logging.getLogger(__name__)


def _fold(current: Any, result: Any) -> Any:
    """Combine a middleware outcome with the current value."""
    if result is None or result is UNCHANGED:
        return current
    return result


def _name(entry: Any) -> str:
    fn = getattr(entry, "fn", entry)
    return getattr(fn, "__qualname__", type(fn).__name__)


def run_list(
    entries: Iterable[Any],
    key: Hashable,
    value: Any,
    ctx: WriteContext,
) -> Any:
    """Run middleware synchronously in registration order.

    Args:
        entries: Middleware entries (plain callables or Plugin)
        key: Field being written
        value: Incoming value
        ctx: Write context

    Returns:
        Final value, or SKIP if an entry cancelled the write

    Raises:
        TypeError: If an entry returns an awaitable
    """
    current = value
    for entry in entries:
        if not should_run(entry, key):
            continue

        result = entry(key, current, ctx)

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError(
                f"Middleware {_name(entry)} returned an awaitable for {key!r}; "
                "use chainit_async() for async middleware"
            )

        if result is SKIP:
            logger.debug(f"Write to {key!r} cancelled by {_name(entry)}")
            return SKIP

        current = _fold(current, result)

    return current


async def arun_list(
    entries: Iterable[Any],
    key: Hashable,
    value: Any,
    ctx: WriteContext,
) -> Any:
    """Run middleware in registration order, awaiting awaitable outcomes.

    Args:
        entries: Middleware entries (plain callables or Plugin)
        key: Field being written
        value: Incoming value
        ctx: Write context

    Returns:
        Final value, or SKIP if an entry cancelled the write
    """
    current = value
    for entry in entries:
        if not should_run(entry, key):
            continue

        result = entry(key, current, ctx)
        if inspect.isawaitable(result):
            result = await result

        if result is SKIP:
            logger.debug(f"Write to {key!r} cancelled by {_name(entry)}")
            return SKIP

        current = _fold(current, result)

    return current


def run_middleware(config: ChainConfig, key: Hashable, value: Any, ctx: WriteContext) -> Any:
    """Run the global pass, then the field-scoped pass."""
    current = run_list(config.use, key, value, ctx)
    if current is SKIP:
        return SKIP
    return run_list(config.middleware_for(key), key, current, ctx)


async def arun_middleware(config: ChainConfig, key: Hashable, value: Any, ctx: WriteContext) -> Any:
    """Async variant of run_middleware."""
    current = await arun_list(config.use, key, value, ctx)
    if current is SKIP:
        return SKIP
    return await arun_list(config.middleware_for(key), key, current, ctx)
