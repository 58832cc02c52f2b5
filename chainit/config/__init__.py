"""Configuration for chain builders."""

from .defaults import DEFAULT_CONFIG, ChainConfig

__all__ = [
    "ChainConfig",
    "DEFAULT_CONFIG",
]
