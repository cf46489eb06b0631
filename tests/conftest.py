"""Pytest configuration and fixtures for the layercache test suite."""
import asyncio
import fnmatch
import sys
from pathlib import Path

import pytest
from redis.exceptions import ResponseError


# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layercache.options import reset_default_options  # noqa: E402


# ============================================================================
# TEST DOUBLES
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock; counts whole milliseconds and
    reads in seconds."""

    def __init__(self):
        self.ms = 0

    def __call__(self) -> float:
        return self.ms / 1000.0

    def advance(self, ms: int) -> None:
        self.ms += ms


class FakeRedis:
    """In-memory stand-in for a redis.asyncio client.

    Supports the commands the Redis layer issues, expiry driven by a
    FakeClock, and ``pause`` to delay every command like CLIENT PAUSE.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data = {}
        self.expiry = {}
        self.latency = 0.0

    def pause(self, seconds: float) -> None:
        self.latency = seconds

    async def _wait(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    def _alive(self, name: str) -> bool:
        expires = self.expiry.get(name)
        if expires is not None and self.clock() >= expires:
            self.data.pop(name, None)
            self.expiry.pop(name, None)
        return name in self.data

    def _hash(self, name: str, create: bool = False) -> dict:
        if not self._alive(name):
            if not create:
                return {}
            self.data[name] = {}
        value = self.data[name]
        if not isinstance(value, dict):
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        return value

    async def get(self, name):
        await self._wait()
        if not self._alive(name):
            return None
        value = self.data[name]
        if isinstance(value, dict):
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        return value

    async def set(self, name, value, px=None):
        await self._wait()
        self.data[name] = value
        if px is not None:
            self.expiry[name] = self.clock() + px / 1000.0
        else:
            self.expiry.pop(name, None)
        return True

    async def delete(self, *names):
        await self._wait()
        removed = 0
        for name in names:
            if self._alive(name):
                del self.data[name]
                self.expiry.pop(name, None)
                removed += 1
        return removed

    async def hget(self, name, key):
        await self._wait()
        return self._hash(name).get(key)

    async def hset(self, name, key, value):
        await self._wait()
        fields = self._hash(name, create=True)
        added = 0 if key in fields else 1
        fields[key] = value
        return added

    async def hdel(self, name, *keys):
        await self._wait()
        fields = self._hash(name)
        removed = 0
        for key in keys:
            if fields.pop(key, None) is not None:
                removed += 1
        return removed

    async def pexpire(self, name, ms):
        await self._wait()
        if not self._alive(name):
            return False
        self.expiry[name] = self.clock() + ms / 1000.0
        return True

    async def keys(self, pattern="*"):
        return [name for name in list(self.data) if self._alive(name) and fnmatch.fnmatch(name, pattern)]


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def clock():
    """Manually advanced clock shared by layers and fake backends."""
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    """In-memory Redis client driven by the test clock."""
    return FakeRedis(clock)


@pytest.fixture(autouse=True)
def default_options():
    """Isolate tests from use_as_default calls made by other tests."""
    reset_default_options()
    yield
    reset_default_options()
