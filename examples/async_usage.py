"""Async usage of the queued chain builder.

Chaining returns immediately; writes are queued and applied in order, even
when middleware awaits.
"""

import asyncio

from chainit import chainit_async


async def async_trim(key, value, ctx):
    if key == "name":
        # Simulate a remote check
        await asyncio.sleep(0.05)
        return str(value).strip()
    return value


async def main():
    chain = chainit_async({}, use=[async_trim])

    chain.set("name", "  Bob  ").set("age", 28)
    print("before drain:", chain.target, f"({chain.pending} pending)")

    result = await chain.value()
    print("async result:", result)


if __name__ == "__main__":
    asyncio.run(main())
