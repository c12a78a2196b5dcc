"""
Failure handling helpers: circuit breaker and TTL cache.
"""

import pytest

from tripsync.client.services.cache import CacheService
from tripsync.client.services.reliability import CircuitBreaker, CircuitOpenError


@pytest.mark.asyncio
async def test_circuit_breaker_activates():
    """Test that circuit breaker opens after threshold failures."""
    cb = CircuitBreaker(failure_threshold=2, reset_timeout=60)

    async def failing_func():
        raise ValueError("Boom")

    for _ in range(2):
        with pytest.raises(ValueError):
            await cb.call(failing_func)

    with pytest.raises(CircuitOpenError):
        await cb.call(failing_func)
    assert cb.state == "OPEN"


@pytest.mark.asyncio
async def test_circuit_breaker_half_open_recovers(mocker):
    cb = CircuitBreaker(failure_threshold=1, reset_timeout=10)
    clock = mocker.patch("tripsync.client.services.reliability.time.time", return_value=1000.0)

    async def failing_func():
        raise ValueError("Boom")

    async def ok_func():
        return "ok"

    with pytest.raises(ValueError):
        await cb.call(failing_func)
    with pytest.raises(CircuitOpenError):
        await cb.call(ok_func)

    clock.return_value = 1011.0
    assert await cb.call(ok_func) == "ok"
    assert cb.state == "CLOSED"
    assert cb.failures == 0


@pytest.mark.asyncio
async def test_half_open_failure_reopens(mocker):
    cb = CircuitBreaker(failure_threshold=3, reset_timeout=10)
    clock = mocker.patch("tripsync.client.services.reliability.time.time", return_value=0.0)

    async def failing_func():
        raise ValueError("Boom")

    for _ in range(3):
        with pytest.raises(ValueError):
            await cb.call(failing_func)

    clock.return_value = 11.0
    with pytest.raises(ValueError):
        await cb.call(failing_func)
    assert cb.state == "OPEN"


@pytest.mark.asyncio
async def test_cache_expiry():
    cache = CacheService(ttl_seconds=60)
    await cache.set("k", {"v": 1})
    assert await cache.get("k") == {"v": 1}

    await cache.set("short", "x", ttl_seconds=-1)
    assert await cache.get("short") is None

    await cache.clear()
    assert await cache.get("k") is None
