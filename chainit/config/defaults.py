"""Default configuration for chain builders.

This module provides immutable configuration objects with sensible defaults.
Most users only pass ``use`` and ``props``.
"""

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def _freeze_entries(name: str, entries: Iterable[Any] | None) -> tuple[Any, ...]:
    """Normalize a middleware list to a tuple and check every entry is callable."""
    if entries is None:
        return ()
    frozen = tuple(entries)
    for entry in frozen:
        if not callable(entry):
            raise TypeError(f"{name} entries must be callable, got {type(entry).__name__}")
    return frozen


@dataclass(frozen=True)
class ChainConfig:
    """Configuration shared by a builder and its nested children (immutable).

    Attributes:
        immutable: Copy the record on every write instead of mutating it in place
        use: Global middleware, run for every field in registration order
        props: Field-scoped middleware, run after the global pass
        fail_fast: Queued builders only: discard tasks queued after a failure
    """

    immutable: bool = False
    use: tuple[Any, ...] = ()
    props: Mapping[Hashable, tuple[Any, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    fail_fast: bool = False

    def __post_init__(self):
        """Normalize and validate configuration."""
        object.__setattr__(self, "use", _freeze_entries("use", self.use))
        object.__setattr__(
            self,
            "props",
            MappingProxyType(
                {key: _freeze_entries(f"props[{key!r}]", entries) for key, entries in self.props.items()}
            ),
        )

    def middleware_for(self, key: Hashable) -> tuple[Any, ...]:
        """Return the field-scoped middleware registered for ``key``."""
        return self.props.get(key, ())

    @staticmethod
    def create(
        *,
        immutable: bool = False,
        use: Iterable[Any] | None = None,
        props: Mapping[Hashable, Iterable[Any]] | None = None,
        fail_fast: bool = False,
    ) -> "ChainConfig":
        """Create configuration with overrides.

        Args:
            immutable: Copy-on-write instead of in-place mutation
            use: Global middleware list
            props: Mapping from field to its middleware list
            fail_fast: Stop a queued chain at its first failure

        Returns:
            Configured ChainConfig instance

        Example:
            >>> config = ChainConfig.create(
            ...     use=[trim_strings()],
            ...     props={"age": [to_number(), minimum(18)]},
            ... )
        """
        return ChainConfig(
            immutable=immutable,
            use=tuple(use or ()),
            props=dict(props or {}),
            fail_fast=fail_fast,
        )

    @staticmethod
    def from_options(
        config: "ChainConfig | Mapping[str, Any] | None" = None,
        **overrides: Any,
    ) -> "ChainConfig":
        """Build a config from an existing config, a plain mapping, or nothing.

        Keyword overrides win over values found in ``config``.
        """
        if config is None and not overrides:
            return DEFAULT_CONFIG

        if isinstance(config, ChainConfig):
            options: dict[str, Any] = {
                "immutable": config.immutable,
                "use": config.use,
                "props": config.props,
                "fail_fast": config.fail_fast,
            }
        else:
            options = dict(config or {})

        options.update(overrides)
        unknown = set(options) - {"immutable", "use", "props", "fail_fast"}
        if unknown:
            raise TypeError(f"Unknown config option(s): {', '.join(sorted(unknown))}")

        return ChainConfig.create(**options)


# Singleton default config
DEFAULT_CONFIG = ChainConfig()
