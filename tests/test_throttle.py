"""
Tests for the Redis fixed-window request throttle.
"""

import pytest

from marketing_api.services.throttle_service import RequestThrottle


def make_throttle(server, limit=2, now=1000.0):
    async def factory():
        return server

    return RequestThrottle("signup", limit, 900, factory, clock=lambda: now)


@pytest.mark.asyncio
async def test_allows_up_to_limit_then_rejects(fake_redis):
    server = fake_redis()
    throttle = make_throttle(server)

    assert (await throttle.hit("1.2.3.4")).allowed
    assert (await throttle.hit("1.2.3.4")).allowed
    decision = await throttle.hit("1.2.3.4")

    assert not decision.allowed
    assert decision.count == 3
    # window [900, 1800): 800 seconds left at t=1000
    assert decision.retry_after == 800
    assert server.ttls["throttle:signup:1.2.3.4:1"] == 900


@pytest.mark.asyncio
async def test_counts_are_per_ip(fake_redis):
    throttle = make_throttle(fake_redis(), limit=1)

    assert (await throttle.hit("1.2.3.4")).allowed
    assert (await throttle.hit("5.6.7.8")).allowed
    assert not (await throttle.hit("1.2.3.4")).allowed


@pytest.mark.asyncio
async def test_new_window_resets_count(fake_redis):
    server = fake_redis()
    assert (await make_throttle(server, limit=1, now=1000.0).hit("1.2.3.4")).allowed
    assert not (await make_throttle(server, limit=1, now=1001.0).hit("1.2.3.4")).allowed
    assert (await make_throttle(server, limit=1, now=1800.0).hit("1.2.3.4")).allowed


@pytest.mark.asyncio
async def test_fails_open_when_redis_errors(fake_redis):
    decision = await make_throttle(fake_redis(broken=True), limit=1).hit("1.2.3.4")
    assert decision.allowed


@pytest.mark.asyncio
async def test_disabled_when_no_client():
    async def no_client():
        return None

    throttle = RequestThrottle("general", 1, 900, no_client)
    for _ in range(3):
        assert (await throttle.hit("1.2.3.4")).allowed
