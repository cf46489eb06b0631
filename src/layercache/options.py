"""
Cache Options

Immutable option objects for layers and managers, the process-wide
default snapshot, and the structured merge used for call-site overrides.

Merge rules (``merge_options``):
    - ``layer_order`` in the override replaces the base order (no append)
    - ``layer_configs`` are merged per layer type, field by field; a field
      is overridden when the override sets it (dict key present, or a
      non-None attribute on an options object)
    - ``client`` and ``hash_fn`` are references and are never copied; the
      most specific source that provides one wins
"""

import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from layercache.errors import CacheConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100000
DEFAULT_TTL_MS = 15 * 1000


class LayerType(Enum):
    """Available cache layer backends."""
    MEMORY = "memory"
    REDIS = "redis"


@dataclass(frozen=True)
class MemoryLayerOptions:
    """Settings for an in-process LRU layer.

    Attributes:
        ttl: Default entry lifetime in milliseconds
        max_entries: Maximum number of entries before LRU eviction
        ttl_multiplier: Scale applied to a per-call TTL override
    """
    ttl: int
    max_entries: int = DEFAULT_MAX_ENTRIES
    ttl_multiplier: float = 1


@dataclass(frozen=True)
class RedisLayerOptions:
    """Settings for a Redis-backed layer.

    Attributes:
        ttl: Default entry lifetime in milliseconds
        shallow_errors: Log and swallow backend errors instead of raising
        client: Shared ``redis.asyncio.Redis`` (or compatible) client
        ttl_multiplier: Scale applied to a per-call TTL override
        timeout: Read timeout in milliseconds (None = wait forever)
        prefix: Key segment appended after the namespace
        namespace: Leading key segment
        hashmap: Store keys as fields of one hash per namespace+prefix
    """
    ttl: int
    shallow_errors: bool
    client: Any = field(default=None, compare=False, repr=False)
    ttl_multiplier: float = 1
    timeout: Optional[int] = None
    prefix: Optional[str] = None
    namespace: Optional[str] = None
    hashmap: bool = False


LayerOptions = Union[MemoryLayerOptions, RedisLayerOptions]

LAYER_OPTIONS_TYPES: Dict[LayerType, type] = {
    LayerType.MEMORY: MemoryLayerOptions,
    LayerType.REDIS: RedisLayerOptions,
}

HashFunction = Callable[[tuple, dict], str]


def _coerce_layer_type(tag: Any) -> Any:
    """Turn ``"redis"`` into ``LayerType.REDIS``; leave unknown tags alone."""
    if isinstance(tag, LayerType):
        return tag
    try:
        return LayerType(tag)
    except ValueError:
        return tag


@dataclass(frozen=True)
class ManagerOptions:
    """Layer composition for a CacheLayerManager.

    Attributes:
        layer_configs: Options per layer type; positions of the same type
            in ``layer_order`` share one entry
        layer_order: Layer types in read order
        hash_fn: Optional key function used by memoization
    """
    layer_configs: Mapping[Any, LayerOptions]
    layer_order: Sequence[Any]
    hash_fn: Optional[HashFunction] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        configs = {
            _coerce_layer_type(tag): options
            for tag, options in dict(self.layer_configs).items()
        }
        object.__setattr__(self, "layer_configs", MappingProxyType(configs))
        object.__setattr__(
            self, "layer_order", tuple(_coerce_layer_type(tag) for tag in self.layer_order)
        )

    def layer_options(self, layer_type: LayerType) -> Optional[LayerOptions]:
        """Get the options slot for a layer type, if configured."""
        return self.layer_configs.get(layer_type)


DEFAULT_OPTIONS = ManagerOptions(
    layer_configs={LayerType.MEMORY: MemoryLayerOptions(ttl=DEFAULT_TTL_MS)},
    layer_order=(LayerType.MEMORY,),
)

# Current default snapshot; replaced, never mutated
_current_options: ManagerOptions = DEFAULT_OPTIONS


def get_default_options() -> ManagerOptions:
    """Get the current default options snapshot."""
    return _current_options


def use_as_default(options: ManagerOptions) -> ManagerOptions:
    """Make ``options`` the default for stores and memoized functions
    created from now on.

    Managers that already exist keep the options they were built with.

    Args:
        options: New default snapshot

    Returns:
        The previous default snapshot
    """
    global _current_options

    if not isinstance(options, ManagerOptions):
        raise CacheConfigurationError(
            f"Default options must be ManagerOptions, got {type(options).__name__}",
            component="options",
        )
    previous = _current_options
    _current_options = options
    logger.debug(f"Default cache options replaced: order={list(options.layer_order)}")
    return previous


def reset_default_options() -> None:
    """Restore the process-start default (memory only, 15s TTL)."""
    global _current_options
    _current_options = DEFAULT_OPTIONS


# -----------------------------------------------------------------------------
# Merging
# -----------------------------------------------------------------------------

_MANAGER_FIELDS = ("layer_configs", "layer_order", "hash_fn")


def _layer_overrides(layer_options: Any) -> Dict[str, Any]:
    """Fields explicitly set by an override."""
    if isinstance(layer_options, Mapping):
        return dict(layer_options)
    return {
        f.name: getattr(layer_options, f.name)
        for f in fields(layer_options)
        if getattr(layer_options, f.name) is not None
    }


def _merge_layer(layer_type: Any, base_layer: Optional[LayerOptions], override: Any) -> Any:
    options_cls = LAYER_OPTIONS_TYPES.get(layer_type)
    if options_cls is None:
        if isinstance(override, Mapping):
            raise CacheConfigurationError(
                f"Cannot build options for unknown layer {layer_type!r}",
                component="options",
            )
        # Unknown tag with a prebuilt object; the manager rejects it later
        return override

    overrides = _layer_overrides(override)
    known = {f.name for f in fields(options_cls)}
    unknown = set(overrides) - known
    if unknown:
        raise CacheConfigurationError(
            f"Unknown option(s) for layer {layer_type.value}: {sorted(unknown)}",
            component="options",
            context={"layer": layer_type.value},
        )

    if base_layer is None:
        try:
            return options_cls(**overrides)
        except TypeError as e:
            raise CacheConfigurationError(
                f"Incomplete options for layer {layer_type.value}: {e}",
                component="options",
            ) from e
    return replace(base_layer, **overrides)


def merge_options(
    base: ManagerOptions,
    partial: Optional[Union[ManagerOptions, Mapping[str, Any]]] = None,
) -> ManagerOptions:
    """Merge a call-site override onto base options.

    Args:
        base: Options to start from (usually the default snapshot)
        partial: ManagerOptions, or a dict with any of ``layer_configs``,
            ``layer_order``, ``hash_fn``

    Returns:
        New ManagerOptions; ``base`` is returned as-is when partial is None
    """
    if partial is None:
        return base

    if isinstance(partial, ManagerOptions):
        overrides = {name: getattr(partial, name) for name in _MANAGER_FIELDS}
    else:
        overrides = dict(partial)
        unknown = set(overrides) - set(_MANAGER_FIELDS)
        if unknown:
            raise CacheConfigurationError(
                f"Unknown manager option(s): {sorted(unknown)}",
                component="options",
            )

    layer_configs = dict(base.layer_configs)
    for tag, layer_override in dict(overrides.get("layer_configs") or {}).items():
        layer_type = _coerce_layer_type(tag)
        layer_configs[layer_type] = _merge_layer(
            layer_type, layer_configs.get(layer_type), layer_override
        )

    layer_order = overrides.get("layer_order")
    if layer_order is None:
        layer_order = base.layer_order

    hash_fn = overrides.get("hash_fn")
    if hash_fn is None:
        hash_fn = base.hash_fn

    return ManagerOptions(
        layer_configs=layer_configs,
        layer_order=tuple(layer_order),
        hash_fn=hash_fn,
    )


def resolve_options(
    options: Optional[Union[ManagerOptions, Mapping[str, Any]]] = None
) -> ManagerOptions:
    """Options for a new store or memoized function: the current default,
    with ``options`` merged on top when given."""
    return merge_options(get_default_options(), options)
