"""
Memoization of async functions

A memoized function looks up the hash of its arguments in a
CacheLayerManager before running, and stores its result on a miss.
"""

import base64
import functools
import hashlib
import inspect
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from layercache.errors import CacheConfigurationError
from layercache.manager import CacheLayerManager
from layercache.options import (
    LayerType,
    ManagerOptions,
    merge_options,
    resolve_options,
)

logger = logging.getLogger(__name__)

AsyncFunction = Callable[..., Awaitable[Any]]


def default_hash(args: tuple, kwargs: dict) -> str:
    """Base64 SHA-1 of the canonical JSON of the call arguments.

    Values JSON cannot encode are represented by their repr.
    """
    payload = json.dumps(
        [list(args), kwargs],
        sort_keys=True,
        default=repr,
        separators=(",", ":"),
    )
    digest = hashlib.sha1(payload.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def _random_prefix() -> str:
    return uuid.uuid4().hex[:13]


def _with_function_prefix(fn: Callable, options: ManagerOptions) -> ManagerOptions:
    """Name the Redis prefix after the function when none is configured,
    so its keys are easy to find."""
    redis_options = options.layer_options(LayerType.REDIS)
    if redis_options is None or redis_options.prefix is not None:
        return options

    name = getattr(fn, "__name__", "")
    if not name or name == "<lambda>":
        name = _random_prefix()
    return merge_options(
        options, {"layer_configs": {LayerType.REDIS: {"prefix": name}}}
    )


class MemoizedFunction:
    """An async function paired with the cache that memoizes it.

    Attributes:
        manager: The CacheLayerManager holding results
        options: Options the manager was built from
    """

    def __init__(self, fn: AsyncFunction, options: ManagerOptions):
        if not inspect.iscoroutinefunction(fn):
            raise CacheConfigurationError(
                "Memoize decorator only available for async function.",
                component="memoize",
                context={"function": getattr(fn, "__name__", repr(fn))},
            )
        functools.update_wrapper(self, fn)
        self.options = _with_function_prefix(fn, options)
        self.manager = CacheLayerManager(self.options)
        self._hash_fn = self.options.hash_fn or default_hash

    def cache_key(self, *args, **kwargs) -> str:
        """Key under which a call with these arguments is cached."""
        return self._hash_fn(args, kwargs)

    async def __call__(self, *args, **kwargs) -> Any:
        return await self._invoke((), args, kwargs)

    async def _invoke(self, bound: tuple, args: tuple, kwargs: dict) -> Any:
        key = self.cache_key(*args, **kwargs)
        value = await self.manager.get(key)
        if value is not None:
            return value

        result = await self.__wrapped__(*bound, *args, **kwargs)
        await self.manager.set(key, result)
        return result

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return BoundMemoizedFunction(self, instance)

    def __repr__(self) -> str:
        return f"<MemoizedFunction {self.__wrapped__.__qualname__}>"


class BoundMemoizedFunction:
    """A memoized method bound to an instance.

    The instance is passed to the method but is not part of the cache key,
    so every instance shares one cache.
    """

    def __init__(self, memoized: MemoizedFunction, instance: Any):
        self.memoized = memoized
        self.instance = instance

    @property
    def manager(self) -> CacheLayerManager:
        return self.memoized.manager

    async def __call__(self, *args, **kwargs) -> Any:
        return await self.memoized._invoke((self.instance,), args, kwargs)


def memoize_function(fn: AsyncFunction, options: ManagerOptions) -> MemoizedFunction:
    """Memoize ``fn`` with exactly the given options."""
    return MemoizedFunction(fn, options)


def get_memoize(
    fn: AsyncFunction,
    options: Optional[Union[ManagerOptions, Mapping[str, Any]]] = None,
) -> MemoizedFunction:
    """Return a memoized version of an async function.

    Args:
        fn: Coroutine function to memoize
        options: Override merged onto the current default options

    Example:
        async def fetch_user(user_id: str) -> dict:
            ...

        fetch_user = get_memoize(fetch_user)
    """
    return memoize_function(fn, resolve_options(options))


def memoized(options: Optional[Union[ManagerOptions, Mapping[str, Any]]] = None):
    """Decorator memoizing an async function or method.

    Args:
        options: Override merged onto the current default options

    Example:
        class Users:
            @memoized({"layer_configs": {LayerType.MEMORY: {"ttl": 60000}}})
            async def fetch(self, user_id: str) -> dict:
                ...
    """
    def decorator(fn: AsyncFunction) -> MemoizedFunction:
        return memoize_function(fn, resolve_options(options))

    return decorator
