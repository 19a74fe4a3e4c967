"""Unit tests for timeouts, bounded retry and keyed locks."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import Conflict, StoreUnavailable, Timeout
from app.core.resilience import KeyedLock, retry, store_errors, with_timeout


@pytest.mark.asyncio
async def test_with_timeout_raises_typed_error():
    with pytest.raises(Timeout):
        await with_timeout(asyncio.sleep(1), 0.01, "slow query")


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failures():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StoreUnavailable("db down")
        return "ok"

    assert await retry(flaky, attempts=3, delay=0, what="flaky") == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_gives_up_after_bounded_attempts():
    calls = []

    async def down():
        calls.append(1)
        raise StoreUnavailable("db down")

    with pytest.raises(StoreUnavailable):
        await retry(down, attempts=2, delay=0, what="down")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_retry_does_not_retry_business_errors():
    calls = []

    async def conflict():
        calls.append(1)
        raise Conflict("duplicate")

    with pytest.raises(Conflict):
        await retry(conflict, attempts=5, delay=0, what="conflict")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_store_errors_maps_operational_error():
    with pytest.raises(StoreUnavailable):
        async with store_errors("load"):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    order = []

    async def worker(name):
        async with locks.hold("payment-1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_lock_allows_different_keys():
    locks = KeyedLock()
    entered = asyncio.Event()

    async def first():
        async with locks.hold("a"):
            await asyncio.wait_for(entered.wait(), 1)

    async def second():
        async with locks.hold("b"):
            entered.set()

    await asyncio.gather(first(), second())
