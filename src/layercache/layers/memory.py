"""
In-Memory Cache Layer

Bounded in-process layer built on cachetools.TLRUCache: least recently
used entries are evicted past ``max_entries`` and every entry carries its
own expiry so per-call TTL overrides are honoured.
"""

import logging
import time
from typing import Any, Callable, NamedTuple, Optional

from cachetools import TLRUCache

from layercache.layers.interface import CacheLayer, effective_ttl
from layercache.options import LayerType, MemoryLayerOptions

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    ttl_ms: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_ms / 1000.0


class MemoryCacheLayer(CacheLayer):
    """In-memory LRU layer with per-entry TTL.

    Example:
        layer = MemoryCacheLayer(MemoryLayerOptions(ttl=5000, max_entries=1000))
        await layer.set("key", {"data": 1})
        await layer.get("key")
    """

    type = LayerType.MEMORY

    def __init__(
        self,
        options: MemoryLayerOptions,
        timer: Callable[[], float] = time.monotonic,
    ):
        """Initialize the layer.

        Args:
            options: Layer settings (TTL in milliseconds)
            timer: Clock in seconds used for expiry
        """
        super().__init__()
        self.options = options
        self.lru: TLRUCache = TLRUCache(
            maxsize=options.max_entries,
            ttu=_time_to_use,
            timer=timer,
        )

        logger.debug(
            f"MemoryCacheLayer initialized: max_entries={options.max_entries}, "
            f"ttl={options.ttl}ms"
        )

    async def get(self, key: str) -> Optional[Any]:
        entry = self.lru.get(key)
        return self._record_read(entry.value if entry is not None else None)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl_ms = effective_ttl(self.options.ttl, self.options.ttl_multiplier, ttl)
        if ttl_ms <= 0:
            # Already expired; TLRUCache would silently keep the old entry
            self.lru.pop(key, None)
            return
        self.lru[key] = _Entry(value, ttl_ms)

    async def clear(self, key: str) -> None:
        self.lru.pop(key, None)

    async def get_with_namespace(self, namespace: str, key: str) -> Optional[Any]:
        return await self.get(self._namespaced(namespace, key))

    async def set_with_namespace(
        self, namespace: str, key: str, value: Any, ttl: Optional[float] = None
    ) -> None:
        await self.set(self._namespaced(namespace, key), value, ttl)

    async def clear_with_namespace(self, namespace: str, key: str) -> None:
        await self.clear(self._namespaced(namespace, key))

    @staticmethod
    def _namespaced(namespace: str, key: str) -> str:
        return f"{namespace}-{key}"

    def keys(self) -> list:
        """Keys of entries that have not expired."""
        self.lru.expire()
        return list(self.lru)

    def values(self) -> list:
        values = []
        for key in self.keys():
            entry = self.lru.get(key)
            if entry is not None:
                values.append(entry.value)
        return values

    def __len__(self) -> int:
        self.lru.expire()
        return len(self.lru)
