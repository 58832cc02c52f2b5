"""Core module: middleware pipeline and the two chain engines."""

from .pipeline import arun_list, arun_middleware, run_list, run_middleware
from .protocols import ChainHandle, Middleware
from .queued import AsyncChain, chainit_async
from .shared import SKIP, UNCHANGED, Nested, Plugin, nested, plugin, should_run
from .state import clone
from .sync import Chain, chainit

__all__ = [
    # Protocols
    "ChainHandle",
    "Middleware",
    # Sentinels and entries
    "SKIP",
    "UNCHANGED",
    "Plugin",
    "plugin",
    "should_run",
    "Nested",
    "nested",
    "clone",
    # Pipeline
    "run_list",
    "run_middleware",
    "arun_list",
    "arun_middleware",
    # Engines (main entry points)
    "Chain",
    "chainit",
    "AsyncChain",
    "chainit_async",
]
