"""API Dependencies"""

from typing import AsyncGenerator, Optional
from fastapi import Header, HTTPException, Request, status
from uuid import UUID

from app.database import get_db
from app.services.storage_service import BlobStore, get_blob_store as build_blob_store

__all__ = ["get_db", "get_current_actor", "get_blob_store"]


async def get_current_actor(
    x_actor_id: Optional[str] = Header(None, alias="X-Actor-ID"),
) -> UUID:
    """
    Identify the admin performing a command.

    Authentication happens upstream; the gateway forwards the admin's id in
    the ``X-Actor-ID`` header and every command records it.

    Raises:
        HTTPException: If the header is missing or not a UUID
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-ID header is required",
        )
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-ID must be a UUID",
        )


async def get_blob_store(request: Request) -> AsyncGenerator[BlobStore, None]:
    """
    Slip artifact store shared by the application.

    Falls back to a per-request store (closed afterwards) when the app was
    started without one, e.g. outside the lifespan.
    """
    store = getattr(request.app.state, "blob_store", None)
    if store is not None:
        yield store
        return
    store = build_blob_store()
    try:
        yield store
    finally:
        await store.aclose()
