"""Session helpers shared by the ledger services.

Reads get a timeout and a bounded retry on transient failures. Writes get a
timeout and a single attempt: any failure rolls the whole unit of work back
so a command either fully applies or leaves nothing behind.
"""

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.core.errors import Conflict, EngineError, StoreUnavailable
from app.core.logging import get_logger
from app.core.resilience import retry, store_errors, with_timeout

logger = get_logger(__name__)


async def fetch(
    db: AsyncSession,
    stmt: Any,
    what: str,
    timeout: Optional[float] = None,
    in_transaction: bool = False,
):
    """
    Execute a read statement with timeout and bounded retry; returns the Result.

    Reads issued in the middle of a write (``in_transaction=True``) get a
    single attempt: rolling back to retry would discard the caller's pending
    changes.
    """

    async def attempt():
        try:
            async with store_errors(what):
                return await with_timeout(
                    db.execute(stmt),
                    timeout or settings.STORE_TIMEOUT_SECONDS,
                    what,
                )
        except StoreUnavailable:
            if not in_transaction:
                # Connection may be unusable; roll back before the next attempt
                await db.rollback()
            raise

    return await retry(
        attempt,
        attempts=1 if in_transaction else settings.STORE_RETRY_ATTEMPTS,
        delay=settings.STORE_RETRY_DELAY_SECONDS,
        what=what,
    )


async def _write(db: AsyncSession, operation, what: str, conflict_message: str) -> None:
    try:
        async with store_errors(what):
            await with_timeout(operation(), settings.STORE_TIMEOUT_SECONDS, what)
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"{what} rejected by constraint", extra={"operation": what})
        raise Conflict(conflict_message) from e
    except StaleDataError as e:
        await db.rollback()
        raise Conflict("Record was changed by another request; reload and retry") from e
    except EngineError:
        await db.rollback()
        raise


async def commit(db: AsyncSession, what: str, conflict_message: str) -> None:
    """
    Commit the pending unit of work.

    Raises:
        Conflict: a unique constraint or the optimistic version check rejected the write
        StoreUnavailable / Timeout: the store failed; nothing was applied
    """
    await _write(db, db.commit, what, conflict_message)


async def flush(db: AsyncSession, what: str, conflict_message: str) -> None:
    """Flush pending changes inside the current transaction, mapping errors like ``commit``."""
    await _write(db, db.flush, what, conflict_message)
