"""Tests for in-place and copy-on-write record storage."""

from chainit.core import state


def test_mutable_write_returns_same_record():
    record = {"a": 1}

    result = state.write(record, "b", 2, immutable=False)

    assert result is record
    assert record == {"a": 1, "b": 2}


def test_immutable_write_copies_and_leaves_original():
    record = {"a": 1}

    result = state.write(record, "b", 2, immutable=True)

    assert result is not record
    assert result == {"a": 1, "b": 2}
    assert record == {"a": 1}


def test_immutable_write_is_shallow():
    """Top-level pairs are copied, nested values are shared."""
    inner = {"x": 1}
    record = {"inner": inner}

    result = state.write(record, "b", 2, immutable=True)

    assert result["inner"] is inner


def test_list_records_stay_lists():
    record = ["a", "b"]

    result = state.write(record, 1, "z", immutable=True)

    assert isinstance(result, list)
    assert result == ["a", "z"]
    assert record == ["a", "b"]


def test_clone_of_mapping_is_a_dict():
    from types import MappingProxyType

    proxy = MappingProxyType({"a": 1})

    assert state.clone(proxy) == {"a": 1}
    assert isinstance(state.clone(proxy), dict)


def test_replace_applies_copy_policy():
    record = {"a": 1}

    assert state.replace(record, immutable=False) is record
    copied = state.replace(record, immutable=True)
    assert copied == record and copied is not record


def test_unique_keeps_first_occurrences():
    assert state.unique([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert state.unique([{"a": 1}, {"a": 1}, [1], [1]]) == [{"a": 1}, [1]]
