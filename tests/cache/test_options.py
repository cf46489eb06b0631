"""
Tests for option objects, default snapshot and merging.
"""

import pytest

from layercache.errors import CacheConfigurationError
from layercache.options import (
    DEFAULT_OPTIONS,
    LayerType,
    ManagerOptions,
    MemoryLayerOptions,
    RedisLayerOptions,
    get_default_options,
    merge_options,
    resolve_options,
    use_as_default,
)


def test_default_options_are_memory_only_15s():
    options = get_default_options()

    assert options is DEFAULT_OPTIONS
    assert options.layer_order == (LayerType.MEMORY,)
    assert options.layer_configs[LayerType.MEMORY].ttl == 15000


def test_options_are_immutable():
    with pytest.raises(Exception):
        DEFAULT_OPTIONS.layer_order = ()
    with pytest.raises(TypeError):
        DEFAULT_OPTIONS.layer_configs[LayerType.REDIS] = None


def test_use_as_default_replaces_snapshot():
    custom = ManagerOptions(
        layer_configs={LayerType.MEMORY: MemoryLayerOptions(ttl=10000)},
        layer_order=[LayerType.MEMORY, LayerType.MEMORY],
    )

    previous = use_as_default(custom)

    assert previous is DEFAULT_OPTIONS
    assert get_default_options() is custom
    assert DEFAULT_OPTIONS.layer_order == (LayerType.MEMORY,)


def test_use_as_default_rejects_other_types():
    with pytest.raises(CacheConfigurationError):
        use_as_default({"layer_order": []})


def test_merge_without_partial_returns_base():
    assert merge_options(DEFAULT_OPTIONS, None) is DEFAULT_OPTIONS


def test_merge_replaces_layer_order():
    base = ManagerOptions(
        layer_configs={LayerType.MEMORY: MemoryLayerOptions(ttl=1000)},
        layer_order=[LayerType.MEMORY, LayerType.MEMORY],
    )

    merged = merge_options(base, {"layer_order": [LayerType.MEMORY]})

    assert merged.layer_order == (LayerType.MEMORY,)


def test_merge_overrides_single_fields():
    merged = merge_options(
        DEFAULT_OPTIONS, {"layer_configs": {LayerType.MEMORY: {"max_entries": 10}}}
    )

    memory = merged.layer_configs[LayerType.MEMORY]
    assert memory.max_entries == 10
    assert memory.ttl == 15000


def test_merge_adds_new_layer_from_dict():
    client = object()

    merged = merge_options(DEFAULT_OPTIONS, {
        "layer_configs": {"redis": {"ttl": 5000, "shallow_errors": True, "client": client}},
        "layer_order": ["memory", "redis"],
    })

    assert merged.layer_order == (LayerType.MEMORY, LayerType.REDIS)
    assert merged.layer_configs[LayerType.REDIS].client is client


def test_merge_incomplete_new_layer_fails():
    with pytest.raises(CacheConfigurationError, match="Incomplete"):
        merge_options(DEFAULT_OPTIONS, {"layer_configs": {LayerType.REDIS: {"ttl": 5000}}})


def test_merge_unknown_field_fails():
    with pytest.raises(CacheConfigurationError, match="Unknown option"):
        merge_options(DEFAULT_OPTIONS, {"layer_configs": {LayerType.MEMORY: {"size": 1}}})
    with pytest.raises(CacheConfigurationError, match="Unknown manager option"):
        merge_options(DEFAULT_OPTIONS, {"layers": []})


def test_merge_keeps_base_client_reference():
    client = object()
    base = ManagerOptions(
        layer_configs={LayerType.REDIS: RedisLayerOptions(ttl=1000, shallow_errors=True, client=client)},
        layer_order=[LayerType.REDIS],
    )

    merged = merge_options(base, ManagerOptions(
        layer_configs={LayerType.REDIS: RedisLayerOptions(ttl=2000, shallow_errors=False)},
        layer_order=[LayerType.REDIS],
    ))

    redis = merged.layer_configs[LayerType.REDIS]
    assert redis.client is client
    assert redis.ttl == 2000
    assert redis.shallow_errors is False


def test_merge_prefers_override_client_reference():
    base_client, override_client = object(), object()
    base = ManagerOptions(
        layer_configs={LayerType.REDIS: RedisLayerOptions(ttl=1000, shallow_errors=True, client=base_client)},
        layer_order=[LayerType.REDIS],
    )

    merged = merge_options(base, {"layer_configs": {LayerType.REDIS: {"client": override_client}}})

    assert merged.layer_configs[LayerType.REDIS].client is override_client


def test_merge_hash_fn_precedence():
    def base_hash(args, kwargs):
        return "base"

    def override_hash(args, kwargs):
        return "override"

    base = merge_options(DEFAULT_OPTIONS, {"hash_fn": base_hash})

    assert merge_options(base, {"layer_order": [LayerType.MEMORY]}).hash_fn is base_hash
    assert merge_options(base, {"hash_fn": override_hash}).hash_fn is override_hash


def test_resolve_options_uses_current_default():
    custom = ManagerOptions(
        layer_configs={LayerType.MEMORY: MemoryLayerOptions(ttl=10000)},
        layer_order=[LayerType.MEMORY],
    )
    use_as_default(custom)

    assert resolve_options() is custom
    assert resolve_options({"layer_order": [LayerType.MEMORY] * 2}).layer_order == (
        LayerType.MEMORY, LayerType.MEMORY
    )
