"""
Cache Layer Interface

Defines the abstract CacheLayer contract shared by every backend a
CacheLayerManager can stack, plus per-layer statistics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from layercache.options import LayerType


@dataclass
class CacheStats:
    """Statistics for a single cache layer.

    Attributes:
        layer: Layer type name
        hits: Number of reads that found a value
        misses: Number of reads that found nothing (or expired)
        errors: Number of backend errors swallowed by shallow_errors
    """
    layer: str
    hits: int = 0
    misses: int = 0
    errors: int = 0

    def hit_rate(self) -> float:
        """Calculate hit rate as a float between 0.0 and 1.0."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "layer": self.layer,
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "hit_rate": self.hit_rate(),
        }


class CacheLayer(ABC):
    """Abstract cache layer.

    All operations are coroutines, including those of layers that never
    suspend, so the manager can treat every layer alike. A read that finds
    nothing returns None.

    Implementations:
    - MemoryCacheLayer: bounded in-process LRU with per-entry TTL
    - RedisCacheLayer: Redis-backed, with timeout and error shallowing
    """

    type: LayerType

    def __init__(self):
        self._stats = CacheStats(layer=self.type.value)

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Retrieve value by key.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Lifetime override in milliseconds, scaled by the layer's
                ttl_multiplier (None uses the layer default)
        """
        ...

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Remove a single entry; no error if it is absent."""
        ...

    @abstractmethod
    async def get_with_namespace(self, namespace: str, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    async def set_with_namespace(
        self, namespace: str, key: str, value: Any, ttl: Optional[float] = None
    ) -> None:
        ...

    @abstractmethod
    async def clear_with_namespace(self, namespace: str, key: str) -> None:
        ...

    def stats(self) -> CacheStats:
        """Get a snapshot of this layer's statistics."""
        return CacheStats(
            layer=self._stats.layer,
            hits=self._stats.hits,
            misses=self._stats.misses,
            errors=self._stats.errors,
        )

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._stats = CacheStats(layer=self.type.value)

    def _record_read(self, value: Any) -> Any:
        if value is None:
            self._stats.misses += 1
        else:
            self._stats.hits += 1
        return value


def effective_ttl(default_ttl: float, multiplier: float, override: Optional[float]) -> int:
    """Lifetime in whole milliseconds: ``override * multiplier`` when an
    override is given, else the layer default."""
    if override is not None:
        return int(round(override * multiplier))
    return int(round(default_ttl))
