"""Optional middleware library.

``global_plugins`` holds transforms meant for ``use``; ``prop_plugins`` holds
validators and transforms meant for ``props``.
"""

from . import global_plugins, prop_plugins
from .global_plugins import (
    debug_logger,
    deep_freeze,
    default_if_empty,
    delay,
    ensure_list,
    freeze_values,
    log_writes,
    mask,
    measure_time,
    normalize_spaces,
    omit_empty_strings,
    omit_none,
    parse_json,
    timestamp,
    to_boolean,
    to_lower,
    to_number,
    to_upper,
    trim_strings,
    unique_list,
    uuid,
)
from .prop_plugins import (
    async_transform,
    async_validate,
    between,
    capitalize,
    clamp,
    conforms,
    default_factory,
    default_value,
    defined,
    hash_value,
    integer,
    length_between,
    match,
    max_items,
    max_length,
    maximum,
    min_items,
    min_length,
    minimum,
    normalize_email,
    not_one_of,
    omit,
    one_of,
    positive,
    required,
    unique_items,
    when,
)

__all__ = [
    "global_plugins",
    "prop_plugins",
    # Global
    "log_writes",
    "debug_logger",
    "freeze_values",
    "deep_freeze",
    "trim_strings",
    "normalize_spaces",
    "to_lower",
    "to_upper",
    "to_number",
    "to_boolean",
    "parse_json",
    "default_if_empty",
    "timestamp",
    "uuid",
    "ensure_list",
    "unique_list",
    "omit_empty_strings",
    "omit_none",
    "mask",
    "measure_time",
    "delay",
    # Field-scoped
    "required",
    "defined",
    "min_length",
    "max_length",
    "length_between",
    "match",
    "minimum",
    "maximum",
    "between",
    "integer",
    "positive",
    "one_of",
    "not_one_of",
    "conforms",
    "default_value",
    "default_factory",
    "normalize_email",
    "capitalize",
    "clamp",
    "omit",
    "hash_value",
    "min_items",
    "max_items",
    "unique_items",
    "when",
    "async_validate",
    "async_transform",
]
