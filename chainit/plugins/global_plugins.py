"""Reusable global middleware.

These are meant for ``use`` and run on every write unless filtered with
``plugin(fn, only=..., except_=...)``. Every factory returns a middleware
following the usual contract:

    (key, value, ctx) -> new value | None | SKIP

Returning None keeps the incoming value, SKIP cancels the write.
"""

import asyncio
import inspect
import json
import logging
import math
import re
import time
import uuid as _uuid
from collections.abc import Callable, Hashable, Mapping
from types import MappingProxyType
from typing import Any

from ..core.protocols import Middleware
from ..core.shared import SKIP
from ..core.state import unique

logger = logging.getLogger(__name__)


# Logging / debug


def log_writes(label: str = "chainit", level: int = logging.INFO) -> Middleware:
    """Log every write as ``[label] key -> value``."""

    def log_write(key, value, ctx):
        logger.log(level, f"[{label}] {key} -> {value!r}")

    return log_write


def debug_logger() -> Middleware:
    """Log key, value, current record and root record at DEBUG level."""

    def log_write(key, value, ctx):
        logger.debug(f"key={key!r} value={value!r} current={ctx.record!r} root={ctx.root!r}")

    return log_write


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType(value)
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, set):
        return frozenset(value)
    return value


def freeze_values() -> Middleware:
    """Shallow freeze containers: dict to read-only mapping, list to tuple, set to frozenset."""

    def freeze(key, value, ctx):
        return _freeze(value)

    return freeze


def deep_freeze() -> Middleware:
    """Recursively freeze containers. Slower than freeze_values()."""

    def freeze_all(value: Any) -> Any:
        if isinstance(value, Mapping):
            return MappingProxyType({k: freeze_all(v) for k, v in value.items()})
        if isinstance(value, (list, tuple)):
            return tuple(freeze_all(v) for v in value)
        if isinstance(value, (set, frozenset)):
            return frozenset(freeze_all(v) for v in value)
        return value

    def freeze(key, value, ctx):
        return freeze_all(value)

    return freeze


# String sanitization


def _on_strings(fn: Callable[[str], Any]) -> Middleware:
    def apply(key, value, ctx):
        return fn(value) if isinstance(value, str) else value

    return apply


def trim_strings() -> Middleware:
    """Strip leading and trailing whitespace."""
    return _on_strings(str.strip)


def normalize_spaces() -> Middleware:
    """Collapse runs of whitespace into a single space."""
    return _on_strings(lambda s: re.sub(r"\s+", " ", s))


def to_lower() -> Middleware:
    return _on_strings(str.lower)


def to_upper() -> Middleware:
    return _on_strings(str.upper)


# Type transforms


_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def _parse_number(text: str) -> int | float | None:
    """Parse a plain decimal literal; None if ``text`` is not one.

    Digit separators ("1_000") and the "inf"/"nan" spellings are rejected.
    Only "Infinity" with an optional sign maps to an infinite float.
    """
    text = text.strip()
    if not text or "_" in text:
        return None
    if text in _INFINITIES:
        return _INFINITIES[text]
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number):
        return None
    if math.isinf(number) and text.lstrip("+-").lower() in ("inf", "infinity"):
        return None
    return number


def to_number() -> Middleware:
    """Convert numeric strings to int or float, leave everything else alone."""

    def convert(key, value, ctx):
        if not isinstance(value, str):
            return value
        number = _parse_number(value)
        return value if number is None else number

    return convert


def to_boolean() -> Middleware:
    """Convert "true"/"false" to booleans."""

    def convert(key, value, ctx):
        if value == "true":
            return True
        if value == "false":
            return False
        return value

    return convert


def parse_json() -> Middleware:
    """Decode JSON strings; strings that are not JSON are kept as-is."""

    def convert(key, value, ctx):
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except ValueError:
            return value

    return convert


# Defaults / generated values


def default_if_empty(default: Any) -> Middleware:
    """Replace None or "" with ``default``."""

    def fill(key, value, ctx):
        return default if value is None or value == "" else value

    return fill


def timestamp() -> Middleware:
    """Replace the value with the current Unix time in milliseconds."""

    def now(key, value, ctx):
        return int(time.time() * 1000)

    return now


def uuid() -> Middleware:
    """Replace the value with a random UUID4 string."""

    def generate(key, value, ctx):
        return str(_uuid.uuid4())

    return generate


# Lists


def ensure_list() -> Middleware:
    """Wrap non-list values in a list."""

    def wrap(key, value, ctx):
        return value if isinstance(value, list) else [value]

    return wrap


def unique_list() -> Middleware:
    """Drop duplicate list items, keeping first occurrences in order."""

    def dedupe(key, value, ctx):
        return unique(value) if isinstance(value, list) else value

    return dedupe


# Cleaning


def omit_empty_strings() -> Middleware:
    """Cancel writes of ""."""

    def omit(key, value, ctx):
        return SKIP if value == "" else value

    return omit


def omit_none() -> Middleware:
    """Cancel writes of None."""

    def omit(key, value, ctx):
        return SKIP if value is None else value

    return omit


def mask(replacement: Any = "***") -> Middleware:
    """Replace every value with ``replacement``."""

    def hide(key, value, ctx):
        return replacement

    return hide


# Timing


def measure_time(middleware: Middleware) -> Middleware:
    """Log how long ``middleware`` takes for each write (sync or async)."""
    name = getattr(middleware, "__qualname__", type(middleware).__name__)

    def report(key: Hashable, start: float) -> None:
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"{name} on {key!r} took {elapsed:.3f}ms")

    def timed(key, value, ctx):
        start = time.perf_counter()
        result = middleware(key, value, ctx)
        if not inspect.isawaitable(result):
            report(key, start)
            return result

        async def finish():
            try:
                return await result
            finally:
                report(key, start)

        return finish()

    return timed


def delay(seconds: float = 0.1) -> Middleware:
    """Sleep before passing the value on. Queued chains only."""

    async def wait(key, value, ctx):
        await asyncio.sleep(seconds)
        return value

    return wait
