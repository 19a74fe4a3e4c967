"""Timeouts, bounded retries and keyed serialization for store and blob calls."""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple, Type

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from app.core.errors import StoreUnavailable, Timeout
from app.core.logging import get_logger

logger = get_logger(__name__)


async def with_timeout(awaitable: Awaitable[Any], timeout: Optional[float], what: str) -> Any:
    """Await ``awaitable``, raising ``Timeout`` instead of hanging past ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise Timeout(f"{what} timed out after {timeout}s") from None


async def retry(
    operation: Callable[[], Awaitable[Any]],
    *,
    attempts: int,
    delay: float,
    what: str,
    retry_on: Tuple[Type[BaseException], ...] = (StoreUnavailable, Timeout),
) -> Any:
    """
    Run ``operation`` up to ``attempts`` times, sleeping ``delay`` between tries.

    Only errors listed in ``retry_on`` are retried; the last one is re-raised.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                logger.warning(
                    f"{what} failed after {attempts} attempts: {e}",
                    extra={"operation": what, "attempts": attempts},
                )
                raise
            logger.info(
                f"{what} attempt {attempt} failed, retrying: {e}",
                extra={"operation": what, "attempt": attempt},
            )
            await asyncio.sleep(delay)


@asynccontextmanager
async def store_errors(what: str):
    """Translate driver-level connectivity failures into ``StoreUnavailable``."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        raise StoreUnavailable(f"{what}: data store unavailable") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise StoreUnavailable(f"{what}: connection lost") from e
        raise
    except (ConnectionError, OSError) as e:
        raise StoreUnavailable(f"{what}: {e}") from e


class KeyedLock:
    """
    One ``asyncio.Lock`` per key, created on demand and dropped when idle.

    Serializes in-process writers that touch the same payment or the same
    (stay, billing period) pair. Cross-process races are still caught by
    database constraints and the payment version column.
    """

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._holders: Dict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
