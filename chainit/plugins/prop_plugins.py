"""Field-scoped middleware.

These are meant for ``props`` and run only for the field they are registered
under:

    chainit({}, props={
        "email": [required(), normalize_email()],
        "age": [conforms(int), minimum(18)],
    })

Validators raise ValueError and otherwise return None (keep the value).
Helpers whose inner callables may be coroutines return awaitables only when
they have to, so they also work with the synchronous chain.
"""

import base64
import inspect
import re
from collections.abc import Callable, Collection, Hashable
from typing import Any

from pydantic import TypeAdapter

from ..core.protocols import Middleware
from ..core.shared import SKIP, UNCHANGED
from ..core.state import unique
from ..models import WriteContext


def _then(result: Any, fn: Callable[[Any], Any]) -> Any:
    """Apply ``fn`` to ``result``, deferring if ``result`` is awaitable."""
    if not inspect.isawaitable(result):
        return fn(result)

    async def resolve():
        return fn(await result)

    return resolve()


# Presence


def required(message: str | None = None) -> Middleware:
    """Fail on None or ""."""

    def check(key, value, ctx):
        if value is None or value == "":
            raise ValueError(message or f"{key} is required")

    return check


def defined(message: str | None = None) -> Middleware:
    """Fail on None only ("" is allowed)."""

    def check(key, value, ctx):
        if value is None:
            raise ValueError(message or f"{key} must be defined")

    return check


# Strings


def min_length(n: int) -> Middleware:
    def check(key, value, ctx):
        if len(value) < n:
            raise ValueError(f"{key} must be at least {n} characters")

    return check


def max_length(n: int) -> Middleware:
    def check(key, value, ctx):
        if len(value) > n:
            raise ValueError(f"{key} must be at most {n} characters")

    return check


def length_between(low: int, high: int) -> Middleware:
    def check(key, value, ctx):
        if not low <= len(value) <= high:
            raise ValueError(f"{key} length must be between {low}-{high}")

    return check


def match(pattern: str | re.Pattern[str], message: str | None = None) -> Middleware:
    """Fail unless ``pattern`` is found in the value."""
    regex = re.compile(pattern)

    def check(key, value, ctx):
        if not regex.search(value):
            raise ValueError(message or f"{key} format is invalid")

    return check


# Numbers


def minimum(n: float) -> Middleware:
    def check(key, value, ctx):
        if value < n:
            raise ValueError(f"{key} must be >= {n}")

    return check


def maximum(n: float) -> Middleware:
    def check(key, value, ctx):
        if value > n:
            raise ValueError(f"{key} must be <= {n}")

    return check


def between(low: float, high: float) -> Middleware:
    def check(key, value, ctx):
        if not low <= value <= high:
            raise ValueError(f"{key} must be between {low}-{high}")

    return check


def integer() -> Middleware:
    """Fail unless the value is an int or an integral float (bools rejected)."""

    def check(key, value, ctx):
        if isinstance(value, bool) or not (
            isinstance(value, int) or (isinstance(value, float) and value.is_integer())
        ):
            raise ValueError(f"{key} must be an integer")

    return check


def positive() -> Middleware:
    def check(key, value, ctx):
        if value <= 0:
            raise ValueError(f"{key} must be positive")

    return check


# Choices


def one_of(choices: Collection[Any]) -> Middleware:
    def check(key, value, ctx):
        if value not in choices:
            raise ValueError(f"{key} must be one of: {', '.join(map(str, choices))}")

    return check


def not_one_of(choices: Collection[Any]) -> Middleware:
    def check(key, value, ctx):
        if value in choices:
            raise ValueError(f"{key} contains forbidden value")

    return check


# Types


def conforms(type_: Any, *, strict: bool | None = None) -> Middleware:
    """Validate and coerce the value with a pydantic TypeAdapter.

    Args:
        type_: Any type pydantic understands (int, list[str], a BaseModel, ...)
        strict: Disable pydantic's lax coercion

    Returns:
        Middleware returning the validated value

    Raises:
        pydantic.ValidationError: From the middleware, if the value does not conform

    Example:
        >>> chainit({}, props={"age": [conforms(int)]}).set("age", "42").value()
        {'age': 42}
    """
    adapter = TypeAdapter(type_)

    def validate(key, value, ctx):
        return adapter.validate_python(value, strict=strict)

    return validate


# Defaults


def default_value(default: Any) -> Middleware:
    """Replace None with ``default``."""

    def fill(key, value, ctx):
        return default if value is None else UNCHANGED

    return fill


def default_factory(factory: Callable[[Hashable, WriteContext], Any]) -> Middleware:
    """Replace None with ``factory(key, ctx)``."""

    def fill(key, value, ctx):
        return factory(key, ctx) if value is None else UNCHANGED

    return fill


# Transforms


def normalize_email() -> Middleware:
    def normalize(key, value, ctx):
        return value.strip().lower() if isinstance(value, str) else value

    return normalize


def capitalize() -> Middleware:
    """Upper-case the first character, leave the rest untouched."""

    def transform(key, value, ctx):
        return value[:1].upper() + value[1:] if isinstance(value, str) else value

    return transform


def clamp(low: float, high: float) -> Middleware:
    def transform(key, value, ctx):
        return min(max(value, low), high)

    return transform


# Security


def omit() -> Middleware:
    """Cancel every write to the field."""

    def cancel(key, value, ctx):
        return SKIP

    return cancel


def hash_value() -> Middleware:
    """Base64-encode the value. Obfuscation for demos, not a real hash."""

    def encode(key, value, ctx):
        return base64.b64encode(str(value).encode()).decode("ascii")

    return encode


# Lists


def min_items(n: int) -> Middleware:
    def check(key, value, ctx):
        if not isinstance(value, list) or len(value) < n:
            raise ValueError(f"{key} requires at least {n} items")

    return check


def max_items(n: int) -> Middleware:
    def check(key, value, ctx):
        if not isinstance(value, list) or len(value) > n:
            raise ValueError(f"{key} max {n} items allowed")

    return check


def unique_items() -> Middleware:
    def dedupe(key, value, ctx):
        return unique(value) if isinstance(value, list) else value

    return dedupe


# Conditional


def when(predicate: Callable[[Any, WriteContext], Any], middleware: Middleware) -> Middleware:
    """Run ``middleware`` only when ``predicate(value, ctx)`` is truthy.

    Example:
        >>> props={"nickname": [when(lambda v, ctx: v is not None, min_length(3))]}
    """

    def conditional(key, value, ctx):
        def decide(ok: Any) -> Any:
            if not ok:
                return UNCHANGED
            return middleware(key, value, ctx)

        decision = predicate(value, ctx)
        if not inspect.isawaitable(decision):
            return decide(decision)

        async def resolve():
            result = decide(await decision)
            if inspect.isawaitable(result):
                return await result
            return result

        return resolve()

    return conditional


# Async helpers


def async_validate(
    check: Callable[[Any, WriteContext], Any],
    message: str | None = None,
) -> Middleware:
    """Fail when ``check(value, ctx)`` (sync or async) is falsy.

    Typical use is a remote lookup: ``async_validate(is_username_free)``.
    """

    def validate(key, value, ctx):
        def verdict(ok: Any) -> None:
            if not ok:
                raise ValueError(message or f"{key} invalid")

        return _then(check(value, ctx), verdict)

    return validate


def async_transform(transform: Callable[[Any, WriteContext], Any]) -> Middleware:
    """Replace the value with ``transform(value, ctx)`` (sync or async)."""

    def apply(key, value, ctx):
        return transform(value, ctx)

    return apply
