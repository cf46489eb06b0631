"""
Cache Layer Manager

Stacks cache layers in a fixed order:
- reads go through the layers in order and stop at the first hit
  (earlier layers are not back-filled)
- writes and deletes go to every layer, one after the other
- layer errors are not caught here; an error from one layer stops the
  remaining layers for that call
"""

import logging
from typing import Any, List, Optional, Tuple

from layercache.errors import CacheConfigurationError
from layercache.layers import LAYER_FACTORIES, CacheLayer, CacheStats
from layercache.options import ManagerOptions

logger = logging.getLogger(__name__)


class CacheLayerManager:
    """Ordered stack of cache layers behind a single get/set/clear API.

    The layer stack is built once from the options and never changes.

    Example:
        manager = CacheLayerManager(ManagerOptions(
            layer_configs={
                LayerType.MEMORY: MemoryLayerOptions(ttl=5000),
                LayerType.REDIS: RedisLayerOptions(
                    ttl=60000, shallow_errors=True, client=client
                ),
            },
            layer_order=[LayerType.MEMORY, LayerType.REDIS],
        ))
        await manager.set("key", "value")
        await manager.get("key")
    """

    def __init__(self, options: ManagerOptions):
        """Build every layer named in ``options.layer_order``.

        Args:
            options: Layer composition

        Raises:
            CacheConfigurationError: If the order is empty, a layer has no
                options, or a layer type is unknown
        """
        self.options = options
        self._layers: Tuple[CacheLayer, ...] = tuple(
            self._build_layer(tag) for tag in options.layer_order
        )
        if not self._layers:
            raise CacheConfigurationError(
                "No layer has been defined", component="manager"
            )

        logger.debug(
            f"CacheLayerManager initialized: "
            f"layers={[layer.type.value for layer in self._layers]}"
        )

    def _build_layer(self, tag: Any) -> CacheLayer:
        layer_options = self.options.layer_options(tag)
        if layer_options is None:
            raise CacheConfigurationError(
                f"Layer {_tag_name(tag)} provided in order doesn't have associated config",
                component="manager",
                context={"layer": _tag_name(tag)},
            )
        factory = LAYER_FACTORIES.get(tag)
        if factory is None:
            raise CacheConfigurationError(
                f"Invalid layer ({_tag_name(tag)}) provided",
                component="manager",
                context={"layer": _tag_name(tag)},
            )
        return factory(layer_options)

    @property
    def layers(self) -> Tuple[CacheLayer, ...]:
        """Layers in read order."""
        return self._layers

    async def get(self, key: str) -> Optional[Any]:
        """Get from the first layer holding ``key``.

        Returns:
            The value, or None when no layer has it
        """
        for layer in self._layers:
            result = await layer.get(key)
            if result is not None:
                return result
        return None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` in every layer.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Lifetime override in milliseconds; each layer scales it
                by its own ttl_multiplier
        """
        for layer in self._layers:
            await layer.set(key, value, ttl)

    async def clear(self, key: str) -> None:
        """Delete ``key`` from every layer."""
        for layer in self._layers:
            await layer.clear(key)

    async def get_with_namespace(self, namespace: str, key: str) -> Optional[Any]:
        for layer in self._layers:
            result = await layer.get_with_namespace(namespace, key)
            if result is not None:
                return result
        return None

    async def set_with_namespace(
        self, namespace: str, key: str, value: Any, ttl: Optional[float] = None
    ) -> None:
        for layer in self._layers:
            await layer.set_with_namespace(namespace, key, value, ttl)

    async def clear_with_namespace(self, namespace: str, key: str) -> None:
        for layer in self._layers:
            await layer.clear_with_namespace(namespace, key)

    def stats(self) -> List[CacheStats]:
        """Per-layer statistics, in layer order."""
        return [layer.stats() for layer in self._layers]


def _tag_name(tag: Any) -> str:
    return getattr(tag, "value", repr(tag))
