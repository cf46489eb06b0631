"""
Cache layer backends.

LAYER_FACTORIES maps each LayerType to the callable that builds a layer
from its options. A new backend is one LayerType member, one options
class and one entry here.
"""

from typing import Callable, Dict

from layercache.layers.interface import CacheLayer, CacheStats
from layercache.layers.memory import MemoryCacheLayer
from layercache.layers.redis_layer import RedisCacheLayer
from layercache.options import LayerType

LAYER_FACTORIES: Dict[LayerType, Callable[..., CacheLayer]] = {
    LayerType.MEMORY: MemoryCacheLayer,
    LayerType.REDIS: RedisCacheLayer,
}

__all__ = [
    "CacheLayer",
    "CacheStats",
    "MemoryCacheLayer",
    "RedisCacheLayer",
    "LAYER_FACTORIES",
]
