"""
layercache: multi-layer read-through cache

Stacks an in-process LRU and Redis behind one get/set/clear API, and
memoizes async functions on top of it.

Example usage:
    from layercache import LayerType, RedisLayerOptions, get_store, memoized

    cache = get_store()
    await cache.set("key", {"data": 1})
    await cache.get("key")

    @memoized({
        "layer_configs": {
            LayerType.REDIS: RedisLayerOptions(ttl=60000, shallow_errors=True, client=client),
        },
        "layer_order": [LayerType.MEMORY, LayerType.REDIS],
    })
    async def get_user(user_id: str) -> dict:
        ...
"""

from layercache.errors import (
    CacheConfigurationError,
    CacheTimeoutError,
    LayerCacheError,
)
from layercache.options import (
    DEFAULT_OPTIONS,
    LayerType,
    ManagerOptions,
    MemoryLayerOptions,
    RedisLayerOptions,
    get_default_options,
    merge_options,
    reset_default_options,
    use_as_default,
)
from layercache.layers import CacheLayer, CacheStats, MemoryCacheLayer, RedisCacheLayer
from layercache.manager import CacheLayerManager
from layercache.store import Cache, get_store
from layercache.memoize import (
    MemoizedFunction,
    get_memoize,
    memoize_function,
    memoized,
)
from layercache.env_config import get_cache_config, options_from_env

__version__ = "1.0.0"

__all__ = [
    # Errors
    "LayerCacheError",
    "CacheConfigurationError",
    "CacheTimeoutError",
    # Options
    "LayerType",
    "ManagerOptions",
    "MemoryLayerOptions",
    "RedisLayerOptions",
    "DEFAULT_OPTIONS",
    "get_default_options",
    "use_as_default",
    "reset_default_options",
    "merge_options",
    # Layers
    "CacheLayer",
    "CacheStats",
    "MemoryCacheLayer",
    "RedisCacheLayer",
    "CacheLayerManager",
    # Strategies
    "Cache",
    "get_store",
    "MemoizedFunction",
    "get_memoize",
    "memoize_function",
    "memoized",
    # Configuration
    "get_cache_config",
    "options_from_env",
]
