"""
Redis Cache Layer

Redis-backed layer for values shared between processes. Handles:
- key derivation from namespace and prefix
- tagged JSON serialization (see layercache.serialization)
- millisecond TTLs via SET PX / PEXPIRE
- optional read timeout
- optional hash-map packing (one Redis hash per namespace+prefix)
- optional error shallowing (log and carry on instead of raising)
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Optional, NamedTuple

from layercache.errors import CacheConfigurationError, CacheTimeoutError
from layercache.layers.interface import CacheLayer, effective_ttl
from layercache.options import LayerType, RedisLayerOptions
from layercache.serialization import decode_value, encode_value

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"


class RedisLocation(NamedTuple):
    """Where a logical key lives in Redis.

    ``field`` is None for a plain key, or the hash field in hashmap mode.
    """
    key: str
    field: Optional[str] = None

    def __str__(self) -> str:
        if self.field is None:
            return self.key
        return f"{self.key}[{self.field}]"


def _discard_result(task: "asyncio.Future") -> None:
    """Retrieve the outcome of a read that lost its timeout race."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Late Redis read failed after timeout: {task.exception()}")


class RedisCacheLayer(CacheLayer):
    """Redis-backed cache layer.

    The client is shared by reference and never closed by the layer.

    Example:
        import redis.asyncio as aioredis

        client = aioredis.from_url("redis://localhost:6379")
        layer = RedisCacheLayer(RedisLayerOptions(
            ttl=5000, shallow_errors=True, client=client, prefix="users",
        ))
        await layer.set("42", {"name": "Ada"})
    """

    type = LayerType.REDIS

    def __init__(self, options: RedisLayerOptions):
        """Initialize the layer.

        Args:
            options: Layer settings (TTL and timeout in milliseconds)
        """
        super().__init__()
        self.options = options
        self._client = options.client

        logger.debug(
            f"RedisCacheLayer initialized: ttl={options.ttl}ms, "
            f"namespace={options.namespace}, prefix={options.prefix}, "
            f"hashmap={options.hashmap}, timeout={options.timeout}"
        )

    @property
    def client(self):
        """The Redis client.

        Raises:
            CacheConfigurationError: If the layer was built without a client
        """
        if self._client is None:
            raise CacheConfigurationError(
                "Redis layer cannot be instantiated without a client",
                component="redis",
            )
        return self._client

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Optional[Any]:
        return await self._get(self.options.namespace, key)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        await self._set(self.options.namespace, key, value, ttl)

    async def clear(self, key: str) -> None:
        await self._clear(self.options.namespace, key)

    async def get_with_namespace(self, namespace: str, key: str) -> Optional[Any]:
        return await self._get(namespace, key)

    async def set_with_namespace(
        self, namespace: str, key: str, value: Any, ttl: Optional[float] = None
    ) -> None:
        await self._set(namespace, key, value, ttl)

    async def clear_with_namespace(self, namespace: str, key: str) -> None:
        await self._clear(namespace, key)

    # -------------------------------------------------------------------------
    # Key derivation
    # -------------------------------------------------------------------------

    def key_base(self, namespace: Optional[str] = None) -> str:
        """Namespace and prefix segments, each followed by the separator."""
        base = ""
        if namespace:
            base += f"{namespace}{KEY_SEPARATOR}"
        if self.options.prefix:
            base += f"{self.options.prefix}{KEY_SEPARATOR}"
        return base

    def locate(self, key: str, namespace: Optional[str] = None) -> RedisLocation:
        """Resolve a logical key to its Redis key (and hash field).

        Raises:
            CacheConfigurationError: In hashmap mode with neither namespace
                nor prefix
        """
        base = self.key_base(namespace)
        if not self.options.hashmap:
            return RedisLocation(f"{base}{key}")
        if not base:
            raise CacheConfigurationError(
                "You need to configure prefix or namespace to use hashmap mode",
                component="redis",
            )
        return RedisLocation(base[:-len(KEY_SEPARATOR)], key)

    # -------------------------------------------------------------------------
    # Backend calls
    # -------------------------------------------------------------------------

    async def _get(self, namespace: Optional[str], key: str) -> Optional[Any]:
        client = self.client
        location = self.locate(key, namespace)

        value = None
        with self._error_policy("get", location):
            value = decode_value(await self._read(client, location))
        return self._record_read(value)

    async def _set(
        self, namespace: Optional[str], key: str, value: Any, ttl: Optional[float]
    ) -> None:
        client = self.client
        location = self.locate(key, namespace)
        ttl_ms = self._ttl_ms(ttl)

        with self._error_policy("set", location):
            payload = encode_value(value)
            if location.field is None:
                await client.set(location.key, payload, px=ttl_ms)
            else:
                await client.hset(location.key, location.field, payload)
                await client.pexpire(location.key, ttl_ms)
            logger.debug(f"RedisCacheLayer set: {location} (ttl={ttl_ms}ms)")

    async def _clear(self, namespace: Optional[str], key: str) -> None:
        client = self.client
        location = self.locate(key, namespace)

        with self._error_policy("clear", location):
            if location.field is None:
                await client.delete(location.key)
            else:
                await client.hdel(location.key, location.field)

    async def _read(self, client, location: RedisLocation):
        if location.field is None:
            call = client.get(location.key)
        else:
            call = client.hget(location.key, location.field)

        timeout = self.options.timeout
        if timeout is None:
            return await call

        task = asyncio.ensure_future(call)
        done, _ = await asyncio.wait({task}, timeout=timeout / 1000.0)
        if task in done:
            return task.result()

        # The read is left running; its result is dropped
        task.add_done_callback(_discard_result)
        logger.debug(f"RedisCacheLayer get timed out after {timeout}ms: {location}")
        raise CacheTimeoutError("get", timeout)

    def _ttl_ms(self, override: Optional[float]) -> int:
        ttl = effective_ttl(self.options.ttl, self.options.ttl_multiplier, override)
        # PX only accepts positive integers
        return max(ttl, 1)

    @contextmanager
    def _error_policy(self, operation: str, location: RedisLocation):
        """Raise backend errors, or log and swallow them when shallow_errors
        is set."""
        try:
            yield
        except Exception as e:
            if not self.options.shallow_errors:
                raise
            self._stats.errors += 1
            logger.warning(
                f"RedisCacheLayer {operation} error for {location} (shallowed): "
                f"{type(e).__name__}: {e}"
            )
