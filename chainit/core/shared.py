"""Shared helpers for both chain engines.

Sentinels, field-scoped plugin entries, the middleware filter and the
nested-builder variant live here so that the sync and queued engines agree on
them.
"""

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Any


class _Sentinel:
    """Named singleton marker."""

    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return f"chainit.{self._name}"

    def __reduce__(self):
        return self._name


SKIP = _Sentinel("SKIP")
"""Returned by middleware to cancel the current field write."""

UNCHANGED = _Sentinel("UNCHANGED")
"""Returned by middleware to keep the incoming value (same as returning None)."""


@dataclass(frozen=True)
class Plugin:
    """Middleware entry restricted to a subset of fields.

    Attributes:
        fn: Middleware callable ``(field, value, ctx) -> outcome``
        only: Fields the entry applies to exclusively (None = all fields)
        except_: Fields the entry never applies to (wins over ``only``)
    """

    fn: Callable[..., Any]
    only: frozenset[Hashable] | None = None
    except_: frozenset[Hashable] | None = None

    def __call__(self, key: Hashable, value: Any, ctx: Any) -> Any:
        return self.fn(key, value, ctx)


def _as_keys(keys: Hashable | Iterable[Hashable] | None) -> frozenset[Hashable] | None:
    if keys is None:
        return None
    if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
        return frozenset([keys])
    return frozenset(keys)


def plugin(
    fn: Callable[..., Any],
    *,
    only: Hashable | Iterable[Hashable] | None = None,
    except_: Hashable | Iterable[Hashable] | None = None,
) -> Plugin:
    """Wrap middleware with field filters.

    Args:
        fn: Middleware callable
        only: Field or fields the middleware is restricted to
        except_: Field or fields the middleware is suppressed for

    Returns:
        Plugin entry usable in ``use`` or ``props``

    Example:
        >>> chain = chainit({}, use=[plugin(to_number(), only=["age"])])
    """
    return Plugin(fn=fn, only=_as_keys(only), except_=_as_keys(except_))


def should_run(entry: Any, key: Hashable) -> bool:
    """Decide whether a middleware entry applies to ``key``.

    Plain callables always apply. Exclusion wins when a field appears in both
    ``only`` and ``except_``.
    """
    only = getattr(entry, "only", None)
    if only is not None and key not in only:
        return False
    except_ = getattr(entry, "except_", None)
    if except_ is not None and key in except_:
        return False
    return True


@dataclass(frozen=True)
class Nested:
    """Field value built by running ``build(child, parent)`` on a child builder."""

    build: Callable[[Any, Any], Any]


def nested(build: Callable[[Any, Any], Any]) -> Nested:
    """Mark a callback as a nested-builder procedure.

    Example:
        >>> chain.set("address", nested(lambda c, _: c.set("street", "Main St")))
    """
    return Nested(build)
