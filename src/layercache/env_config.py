"""
Cache Configuration from Environment

Builds ManagerOptions from CACHE_* environment variables, so services
can pick their layer stack without code changes.
"""

import logging
import os
from typing import Optional

from layercache.errors import CacheConfigurationError
from layercache.options import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_MS,
    LayerType,
    ManagerOptions,
    MemoryLayerOptions,
    RedisLayerOptions,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUE_VALUES


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return int(raw)


class CacheEnvConfig:
    """Cache configuration from environment variables.

    Environment Variables:
        CACHE_LAYERS: Comma separated layer order (default: memory)
        CACHE_TTL_MS: Default TTL in milliseconds (default: 15000)
        CACHE_TTL_MULTIPLIER: Scale for per-call TTL overrides (default: 1)
        CACHE_MAX_ENTRIES: Max entries for the memory layer (default: 100000)
        CACHE_REDIS_URL: Redis URL (default: redis://localhost:6379)
        CACHE_REDIS_PREFIX: Key prefix for the redis layer
        CACHE_REDIS_NAMESPACE: Key namespace for the redis layer
        CACHE_REDIS_TIMEOUT_MS: Read timeout for the redis layer
        CACHE_REDIS_HASHMAP: Use hash-map packing (default: false)
        CACHE_SHALLOW_ERRORS: Swallow redis errors (default: true)
    """

    def __init__(self):
        self.layers = [
            name.strip().lower()
            for name in os.getenv("CACHE_LAYERS", "memory").split(",")
            if name.strip()
        ]
        self.ttl_ms = int(os.getenv("CACHE_TTL_MS", str(DEFAULT_TTL_MS)))
        self.ttl_multiplier = float(os.getenv("CACHE_TTL_MULTIPLIER", "1"))
        self.max_entries = int(os.getenv("CACHE_MAX_ENTRIES", str(DEFAULT_MAX_ENTRIES)))
        self.redis_url = os.getenv("CACHE_REDIS_URL", "redis://localhost:6379")
        self.redis_prefix = os.getenv("CACHE_REDIS_PREFIX") or None
        self.redis_namespace = os.getenv("CACHE_REDIS_NAMESPACE") or None
        self.redis_timeout_ms = _env_int("CACHE_REDIS_TIMEOUT_MS")
        self.redis_hashmap = _env_bool("CACHE_REDIS_HASHMAP", "false")
        self.shallow_errors = _env_bool("CACHE_SHALLOW_ERRORS", "true")

    def __repr__(self) -> str:
        return (
            f"CacheEnvConfig(layers={self.layers}, ttl_ms={self.ttl_ms}, "
            f"max_entries={self.max_entries}, redis_url={self.redis_url})"
        )


def get_cache_config() -> CacheEnvConfig:
    """Get cache configuration from environment."""
    return CacheEnvConfig()


def create_redis_client(redis_url: str):
    """Create a redis.asyncio client; the connection opens lazily."""
    import redis.asyncio as aioredis

    return aioredis.from_url(redis_url)


def options_from_env(
    config: Optional[CacheEnvConfig] = None,
    client=None,
) -> ManagerOptions:
    """Build ManagerOptions from environment configuration.

    Args:
        config: Optional CacheEnvConfig. Uses get_cache_config() if None.
        client: Redis client for the redis layer; created from
            CACHE_REDIS_URL when needed and not given

    Raises:
        CacheConfigurationError: On an unknown layer name or empty order
    """
    if config is None:
        config = get_cache_config()

    try:
        layer_order = [LayerType(name) for name in config.layers]
    except ValueError as e:
        raise CacheConfigurationError(
            f"Unknown layer in CACHE_LAYERS: {config.layers}",
            component="env_config",
        ) from e
    if not layer_order:
        raise CacheConfigurationError(
            "CACHE_LAYERS must name at least one layer", component="env_config"
        )

    layer_configs = {}
    if LayerType.MEMORY in layer_order:
        layer_configs[LayerType.MEMORY] = MemoryLayerOptions(
            ttl=config.ttl_ms,
            max_entries=config.max_entries,
            ttl_multiplier=config.ttl_multiplier,
        )
    if LayerType.REDIS in layer_order:
        if client is None:
            client = create_redis_client(config.redis_url)
            logger.info(f"Created Redis client for cache: {config.redis_url}")
        layer_configs[LayerType.REDIS] = RedisLayerOptions(
            ttl=config.ttl_ms,
            shallow_errors=config.shallow_errors,
            client=client,
            ttl_multiplier=config.ttl_multiplier,
            timeout=config.redis_timeout_ms,
            prefix=config.redis_prefix,
            namespace=config.redis_namespace,
            hashmap=config.redis_hashmap,
        )

    options = ManagerOptions(layer_configs=layer_configs, layer_order=layer_order)
    logger.info(f"Cache options from environment: {config!r}")
    return options
