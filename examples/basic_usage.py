"""Basic usage of the synchronous chain builder.

Covers getters and setters, a cancelling middleware, nested builders and
immutable mode.
"""

import logging

from chainit import SKIP, chainit, nested, plugin

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Cancel invalid ages instead of raising
def validate_age(key, value, ctx):
    if not isinstance(value, int) or value < 0:
        logger.warning(f"Invalid age, skipping update: {value!r}")
        return SKIP


def main():
    user = chainit({"name": "Alice"}, use=[plugin(validate_age, only="age")])

    print("name:", user.get("name"))
    user.set("age", 30).set("city", "Berlin")

    # Build the address field with a child chain
    user.set("address", nested(lambda c, parent: c.set("street", "Main St").set("zip", 12345)))

    # Immutable mode leaves the original record untouched
    original = {"name": "A"}
    immutable_user = chainit(original, immutable=True).set("name", "B")

    print("user:", user.value())
    print("immutable user:", immutable_user.value(), "original:", original)

    user.set("age", -5)
    print("final user:", user.value())


if __name__ == "__main__":
    main()
