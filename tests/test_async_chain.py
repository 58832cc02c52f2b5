"""Tests for the queued (asyncio) chain builder."""

import asyncio
import random

import pytest

from chainit import SKIP, AsyncChain, chainit_async, nested
from chainit.plugins import delay, trim_strings


@pytest.mark.asyncio
async def test_reserved_username_scenario():
    """Async middleware cancels reserved names; later writes still apply."""
    reserved = {"alice"}

    async def username_check(key, value, ctx):
        if key == "username":
            await asyncio.sleep(0.01)
            if value in reserved:
                return SKIP
        return value

    chain = chainit_async({}, use=[username_check])
    chain.set("username", "alice")
    chain.set("username", "bob")

    assert await chain.value() == {"username": "bob"}


@pytest.mark.asyncio
async def test_writes_apply_in_append_order_despite_random_delays():
    log = []

    async def jitter(key, value, ctx):
        log.append(("start", value))
        await asyncio.sleep(random.uniform(0, 0.01))
        log.append(("end", value))
        return value

    chain = chainit_async({}, use=[jitter])
    for i in range(10):
        chain.set(f"f{i}", i).set("last", i)

    result = await chain.value()

    assert result["last"] == 9
    assert [k for k in result if k.startswith("f")] == [f"f{i}" for i in range(10)]

    # No two tasks interleave: every start is immediately followed by its end
    for start, end in zip(log[::2], log[1::2]):
        assert start[0] == "start" and end[0] == "end"
        assert start[1] == end[1]


@pytest.mark.asyncio
async def test_each_task_sees_record_current_at_its_turn():
    async def append(key, value, ctx):
        await asyncio.sleep(random.uniform(0, 0.005))
        return [*ctx.record.get("items", []), value]

    chain = chainit_async({}, props={"items": [append]})
    for i in range(5):
        chain.set("items", i)

    assert await chain.value() == {"items": [0, 1, 2, 3, 4]}


def test_set_outside_event_loop_is_deferred():
    """Without a running loop, tasks wait for value() to start the worker."""
    chain = chainit_async({}, use=[trim_strings()])

    chain.set("name", "  Bob  ").set("age", 28)

    assert chain.pending == 2
    assert chain.get("name", None) is None
    assert asyncio.run(chain.value()) == {"name": "Bob", "age": 28}
    assert chain.pending == 0


@pytest.mark.asyncio
async def test_set_returns_handle_immediately():
    chain = chainit_async({}, use=[delay(0.01)])

    handle = chain.set("name", "Bob")

    assert handle is chain
    assert chain.get("name", None) is None
    assert await chain.value() == {"name": "Bob"}
    assert chain.get("name") == "Bob"


@pytest.mark.asyncio
async def test_sync_middleware_also_supported():
    chain = chainit_async({}, use=[trim_strings()])

    chain.set("name", "  Bob  ")

    assert await chain.value() == {"name": "Bob"}


@pytest.mark.asyncio
async def test_global_skip_blocks_field_middleware():
    seen = []

    async def cancel(key, value, ctx):
        return SKIP

    chain = chainit_async({"name": "A"}, use=[cancel], props={"name": [lambda k, v, c: seen.append(v)]})
    chain.set("name", "B")

    assert await chain.value() == {"name": "A"}
    assert seen == []


@pytest.mark.asyncio
async def test_failure_surfaces_from_value_and_later_tasks_still_run():
    async def validate(key, value, ctx):
        if value < 0:
            raise ValueError(f"{key} must be positive")

    chain = chainit_async({}, props={"age": [validate]})
    chain.set("age", -1).set("name", "Bob").set("age", 30)

    with pytest.raises(ValueError, match="age must be positive"):
        await chain.value()

    # Failures are reported once; the chain kept going from the last good record
    assert await chain.value() == {"name": "Bob", "age": 30}


@pytest.mark.asyncio
async def test_multiple_failures_raise_first_with_note():
    def boom(key, value, ctx):
        raise ValueError(f"bad {key}")

    chain = chainit_async({}, use=[boom])
    chain.set("a", 1).set("b", 2)

    with pytest.raises(ValueError, match="bad a") as excinfo:
        await chain.value()

    assert any("1 later task failure" in note for note in excinfo.value.__notes__)


@pytest.mark.asyncio
async def test_fail_fast_discards_later_tasks():
    def boom(key, value, ctx):
        if key == "bad":
            raise RuntimeError("stop")

    chain = chainit_async({}, use=[boom], fail_fast=True)
    chain.set("ok", 1).set("bad", 2).set("later", 3)

    with pytest.raises(RuntimeError, match="stop"):
        await chain.value()

    assert chain.target == {"ok": 1}

    chain.set("more", 4)
    with pytest.raises(RuntimeError, match="stop"):
        await chain.value()
    assert chain.target == {"ok": 1}


@pytest.mark.asyncio
async def test_concurrent_value_calls_all_see_failure():
    def boom(key, value, ctx):
        raise ValueError(f"bad {key}")

    chain = chainit_async({}, use=[delay(0.01), boom])
    chain.set("a", 1)

    results = await asyncio.gather(chain.value(), chain.value(), return_exceptions=True)

    assert all(isinstance(r, ValueError) for r in results), f"Expected two failures, got {results}"
    # Reported now; a fresh awaiter gets the record
    assert await chain.value() == {}


@pytest.mark.asyncio
async def test_repeated_reports_do_not_grow_the_failure():
    def boom(key, value, ctx):
        raise ValueError(f"bad {key}")

    chain = chainit_async({}, use=[boom], fail_fast=True)
    chain.set("a", 1)

    depths = []
    for _ in range(3):
        with pytest.raises(ValueError, match="bad a") as excinfo:
            await chain.value()
        depths.append(len(excinfo.traceback))

    assert len(set(depths)) == 1, f"Traceback grew across reports: {depths}"
    assert not getattr(excinfo.value, "__notes__", [])


@pytest.mark.asyncio
async def test_failure_note_added_once_for_concurrent_awaiters():
    def boom(key, value, ctx):
        raise ValueError(f"bad {key}")

    chain = chainit_async({}, use=[delay(0.01), boom])
    chain.set("a", 1).set("b", 2)

    first, second = await asyncio.gather(chain.value(), chain.value(), return_exceptions=True)

    assert first is second
    assert first.__notes__ == ["1 later task failure(s) were logged"]


@pytest.mark.asyncio
async def test_get_with_wrong_key_type_returns_default():
    chain = chainit_async(["a"])

    assert chain.get("x", None) is None
    assert chain.get(5, "none") == "none"
    with pytest.raises(TypeError):
        chain.get("x")


@pytest.mark.asyncio
async def test_immutable_mode_keeps_old_snapshots():
    original = {"n": 0}
    chain = chainit_async(original, immutable=True, use=[delay(0)])

    chain.set("n", 1)
    first = await chain.value()
    chain.set("n", 2)
    second = await chain.value()

    assert original == {"n": 0}
    assert first == {"n": 1}
    assert second == {"n": 2}
    assert first is not second


@pytest.mark.asyncio
async def test_tap_and_pipe_are_queued_in_order():
    seen = []

    async def snapshot(record):
        await asyncio.sleep(0)
        seen.append(dict(record))

    chain = chainit_async({}, use=[delay(0.005)])
    chain.set("first", "John").tap(snapshot).set("last", "Doe")
    chain.pipe(lambda o: {**o, "full": f"{o['first']} {o['last']}"})

    result = await chain.value()

    assert seen == [{"first": "John"}]
    assert result == {"first": "John", "last": "Doe", "full": "John Doe"}


@pytest.mark.asyncio
async def test_async_pipe():
    async def add_total(record):
        await asyncio.sleep(0)
        return {**record, "total": record["a"] + record["b"]}

    chain = chainit_async({})
    chain.update(a=1, b=2).pipe(add_total)

    assert await chain.value() == {"a": 1, "b": 2, "total": 3}


@pytest.mark.asyncio
async def test_field_reads_best_effort_and_writes():
    chain = chainit_async({"name": "Alice"}, use=[delay(0.01)])

    chain.field("name", "Bob")

    assert chain.field("name") == "Alice"
    await chain.value()
    assert chain.field("name") == "Bob"


@pytest.mark.asyncio
async def test_nested_waits_for_child_drain():
    async def build(child, parent):
        await asyncio.sleep(0)
        child.set("street", "  Main St  ").set("zip", 12345)

    chain = chainit_async({"name": "Alice"}, use=[delay(0.005), trim_strings()])
    chain.set("address", nested(build)).set("done", True)

    result = await chain.value()

    assert result == {
        "name": "Alice",
        "address": {"street": "Main St", "zip": 12345},
        "done": True,
    }
    assert list(result) == ["name", "address", "done"]


@pytest.mark.asyncio
async def test_nested_child_is_same_kind_with_shared_root():
    record = {}
    kinds = []
    roots = []

    def capture(key, value, ctx):
        roots.append(ctx.root)

    def build(child, parent):
        kinds.append((type(child), parent))
        child.set("x", 1)

    chain = chainit_async(record, use=[capture])
    chain.set("inner", nested(build))
    await chain.value()

    assert kinds == [(AsyncChain, chain)]
    assert all(root is record for root in roots)
    assert record == {"inner": {"x": 1}}


@pytest.mark.asyncio
async def test_nested_child_failure_fails_parent_write():
    def reject(key, value, ctx):
        if key == "zip":
            raise ValueError("bad zip")

    chain = chainit_async({}, use=[reject])
    chain.set("address", nested(lambda c, _: c.set("zip", "x"))).set("name", "Bob")

    with pytest.raises(ValueError, match="bad zip"):
        await chain.value()

    assert chain.target == {"name": "Bob"}


@pytest.mark.asyncio
async def test_tasks_appended_while_draining_are_awaited():
    chain = chainit_async({})

    def follow_up(record):
        chain.set("second", 2)

    chain.set("first", 1).tap(follow_up)

    assert await chain.value() == {"first": 1, "second": 2}
