"""Slip Registry - proof-of-payment references and live-artifact filtering"""

import asyncio
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import ArtifactUnavailable, EngineError, SlipNotFound, Timeout
from app.core.logging import get_logger
from app.core.resilience import retry, with_timeout
from app.models.payment import PaymentSlip
from app.services.payment_service import PaymentService
from app.services.storage_service import BlobStore
from app.services.store import commit, fetch

logger = get_logger(__name__)


async def probe(store: BlobStore, ref: str) -> bool:
    """
    Ask ``store`` whether ``ref`` still exists.

    Unknown answers (store errors, timeouts) are retried a few times and then
    count as absent. Never raises for store failures.
    """

    async def attempt() -> bool:
        return await with_timeout(
            store.exists(ref), settings.SLIP_PROBE_TIMEOUT_SECONDS, f"probe {ref}"
        )

    try:
        return await retry(
            attempt,
            attempts=settings.SLIP_PROBE_RETRY_ATTEMPTS,
            delay=settings.STORE_RETRY_DELAY_SECONDS,
            what=f"probe {ref}",
            retry_on=(ArtifactUnavailable, Timeout),
        )
    except (ArtifactUnavailable, Timeout) as e:
        logger.warning(
            "Slip artifact unavailable, treating as absent",
            extra={"slip_url": ref, "reason": str(e)},
        )
        return False
    except Exception as e:
        # Any other store failure also counts as absent
        logger.error(
            f"Slip probe failed unexpectedly: {e}",
            extra={"slip_url": ref},
            exc_info=True,
        )
        return False


async def filter_live(
    slips: List[PaymentSlip],
    store: BlobStore,
    concurrency: Optional[int] = None,
) -> List[PaymentSlip]:
    """Keep slips whose artifact exists, probing at most ``concurrency`` at a time."""
    if not slips:
        return []
    semaphore = asyncio.Semaphore(max(1, concurrency or settings.SLIP_PROBE_CONCURRENCY))

    async def bounded(slip: PaymentSlip) -> bool:
        async with semaphore:
            return await probe(store, slip.slip_url)

    alive = await asyncio.gather(*(bounded(slip) for slip in slips))
    live = [slip for slip, ok in zip(slips, alive) if ok]
    if len(live) < len(slips):
        logger.info(
            "Excluded stale slips",
            extra={
                "payment_id": str(slips[0].payment_id),
                "stale": len(slips) - len(live),
            },
        )
    return live


class SlipService:
    @staticmethod
    async def attach_slip(
        db: AsyncSession,
        payment_id: UUID,
        uploader_id: UUID,
        artifact_ref: str,
    ) -> PaymentSlip:
        """
        Record a slip for a payment. The artifact is not checked here; uploads
        may still be in flight.

        Raises:
            PaymentNotFound: unknown payment
        """
        payment = await PaymentService.get_payment(db, payment_id)
        slip = PaymentSlip(
            payment_id=payment.id,
            stay_id=payment.stay_id,
            user_id=uploader_id,
            slip_url=artifact_ref.strip(),
        )
        db.add(slip)
        try:
            await commit(db, "attach slip", "Slip could not be recorded")
        except EngineError:
            logger.warning("Failed to attach slip", extra={"payment_id": str(payment_id)})
            raise
        logger.info(
            "Slip attached",
            extra={"payment_id": str(payment_id), "slip_id": str(slip.id)},
        )
        return slip

    @staticmethod
    async def list_slips(db: AsyncSession, payment_id: UUID) -> List[PaymentSlip]:
        """Every recorded slip for a payment, newest first, without probing."""
        await PaymentService.get_payment(db, payment_id)
        result = await fetch(
            db,
            select(PaymentSlip)
            .where(PaymentSlip.payment_id == payment_id)
            .order_by(PaymentSlip.uploaded_at.desc()),
            "list slips",
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_live_slips(
        db: AsyncSession,
        payment_id: UUID,
        store: BlobStore,
    ) -> List[PaymentSlip]:
        """Slips whose artifact is still present. Stale slips are skipped, not deleted."""
        slips = await SlipService.list_slips(db, payment_id)
        return await filter_live(slips, store)

    @staticmethod
    async def detach_slip(db: AsyncSession, slip_id: UUID, actor_id: UUID) -> None:
        result = await fetch(db, select(PaymentSlip).where(PaymentSlip.id == slip_id), "load slip")
        slip = result.scalar_one_or_none()
        if slip is None:
            raise SlipNotFound(slip_id)
        await db.delete(slip)
        await commit(db, "detach slip", "Slip could not be removed")
        logger.info(
            "Slip detached",
            extra={"slip_id": str(slip_id), "admin_id": str(actor_id)},
        )
