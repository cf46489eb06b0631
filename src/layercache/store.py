"""
Key/value store facade over a CacheLayerManager.
"""

from typing import Any, Mapping, Optional, Union

from layercache.manager import CacheLayerManager
from layercache.options import ManagerOptions, resolve_options


class Cache(CacheLayerManager):
    """Key/value cache backed by the configured layers.

    Behaves exactly like CacheLayerManager; kept as its own type so the
    store API can grow without touching the manager.
    """
    pass


def get_store(
    options: Optional[Union[ManagerOptions, Mapping[str, Any]]] = None
) -> Cache:
    """Get a key/value cache.

    Args:
        options: Override merged onto the current default options
            (memory only with a 15s TTL unless use_as_default was called)

    Returns:
        New Cache instance
    """
    return Cache(resolve_options(options))
