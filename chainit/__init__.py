"""Fluent state builders with middleware

This package provides chainable builders over a record: every field write runs
through a configurable middleware pipeline, either immediately (``chainit``) or
through an ordered asyncio queue (``chainit_async``).
"""

__version__ = "0.1.0"

from .config import DEFAULT_CONFIG, ChainConfig
from .core import (
    SKIP,
    UNCHANGED,
    AsyncChain,
    Chain,
    ChainHandle,
    Middleware,
    Nested,
    Plugin,
    chainit,
    chainit_async,
    clone,
    nested,
    plugin,
    should_run,
)
from .models import WriteContext

__all__ = [
    # Version info
    "__version__",
    # Main entry points
    "chainit",
    "chainit_async",
    "Chain",
    "AsyncChain",
    # Middleware helpers
    "SKIP",
    "UNCHANGED",
    "plugin",
    "Plugin",
    "should_run",
    "nested",
    "Nested",
    "clone",
    # Types
    "ChainConfig",
    "DEFAULT_CONFIG",
    "ChainHandle",
    "Middleware",
    "WriteContext",
]
