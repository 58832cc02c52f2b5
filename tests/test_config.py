"""Tests for ChainConfig creation and validation."""

import pytest

from chainit import DEFAULT_CONFIG, ChainConfig


def identity(key, value, ctx):
    return value


def test_defaults():
    config = ChainConfig()

    assert config.immutable is False
    assert config.use == ()
    assert dict(config.props) == {}
    assert config.fail_fast is False


def test_create_normalizes_lists_to_tuples():
    config = ChainConfig.create(use=[identity], props={"name": [identity]})

    assert config.use == (identity,)
    assert config.props["name"] == (identity,)
    assert config.middleware_for("missing") == ()


def test_props_are_read_only():
    config = ChainConfig.create(props={"name": [identity]})

    with pytest.raises(TypeError):
        config.props["other"] = ()


def test_config_is_frozen():
    from dataclasses import FrozenInstanceError

    with pytest.raises(FrozenInstanceError):
        DEFAULT_CONFIG.immutable = True


def test_non_callable_entries_rejected():
    with pytest.raises(TypeError, match="use entries must be callable"):
        ChainConfig.create(use=["not a function"])

    with pytest.raises(TypeError, match="props\\['age'\\]"):
        ChainConfig.create(props={"age": [42]})


def test_from_options_accepts_mapping_and_overrides():
    config = ChainConfig.from_options({"immutable": True, "use": [identity]}, fail_fast=True)

    assert config.immutable is True
    assert config.use == (identity,)
    assert config.fail_fast is True


def test_from_options_copies_existing_config():
    base = ChainConfig.create(use=[identity])

    config = ChainConfig.from_options(base, immutable=True)

    assert config.use == (identity,)
    assert config.immutable is True
    assert base.immutable is False


def test_from_options_without_arguments_is_default():
    assert ChainConfig.from_options() is DEFAULT_CONFIG


def test_from_options_rejects_unknown_keys():
    with pytest.raises(TypeError, match="Unknown config option"):
        ChainConfig.from_options({"mutable": True})
