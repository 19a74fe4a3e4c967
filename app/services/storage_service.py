"""
Slip artifact stores. A store only answers "does this artifact still exist?".

Two backends share the ``BlobStore`` protocol:
- ``HttpBlobStore`` sends a HEAD request to the artifact's public URL.
- ``R2BlobStore`` asks the Cloudflare R2 (S3-compatible) bucket directly.
Both use global config; no per-call reconfiguration.
"""
import asyncio
from typing import Optional, Protocol
from urllib.parse import urljoin, urlparse

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.core.errors import ArtifactUnavailable
from app.core.logging import get_logger

logger = get_logger(__name__)

MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class BlobStore(Protocol):
    async def exists(self, ref: str) -> bool:
        """True if present, False if definitely gone; ArtifactUnavailable if unknown."""
        ...

    async def aclose(self) -> None:
        ...


def object_key(ref: str) -> str:
    """Object key for a slip reference, whether stored as a full URL or a key."""
    parsed = urlparse(ref)
    if not parsed.scheme:
        return ref.lstrip("/")
    base_path = urlparse(settings.STORAGE_PUBLIC_BASE_URL).path.rstrip("/")
    path = parsed.path
    if base_path and path.startswith(base_path):
        path = path[len(base_path):]
    return path.lstrip("/")


class HttpBlobStore:
    """Probe slip artifacts over HTTP with HEAD requests."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, base_url: Optional[str] = None):
        self._client = client or httpx.AsyncClient(
            timeout=settings.SLIP_PROBE_TIMEOUT_SECONDS,
            follow_redirects=True,
        )
        self._base_url = (base_url or settings.STORAGE_PUBLIC_BASE_URL).rstrip("/") + "/"

    def resolve(self, ref: str) -> str:
        if urlparse(ref).scheme:
            return ref
        return urljoin(self._base_url, ref.lstrip("/"))

    async def exists(self, ref: str) -> bool:
        url = self.resolve(ref)
        try:
            response = await self._client.head(url)
        except httpx.HTTPError as e:
            raise ArtifactUnavailable(f"Could not reach {url}: {e}") from e

        if response.is_success:
            return True
        if response.status_code >= 500:
            raise ArtifactUnavailable(f"{url} answered {response.status_code}")
        # 404, 410 and any other client error: the artifact is not retrievable
        return False

    async def aclose(self) -> None:
        await self._client.aclose()


def _r2_client():
    if not settings.R2_ACCOUNT_ID or not settings.R2_ACCESS_KEY_ID or not settings.R2_SECRET_ACCESS_KEY:
        raise RuntimeError(
            "R2 storage not configured: set R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY"
        )
    return boto3.client(
        service_name="s3",
        endpoint_url=f"https://{settings.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        region_name="auto",
        config=boto3.session.Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            connect_timeout=settings.SLIP_PROBE_TIMEOUT_SECONDS,
            read_timeout=settings.SLIP_PROBE_TIMEOUT_SECONDS,
        ),
    )


class R2BlobStore:
    """Check slip artifacts with HEAD Object against the R2 bucket."""

    def __init__(self, client=None, bucket: Optional[str] = None):
        self._client = client or _r2_client()
        self._bucket = bucket or settings.R2_BUCKET_NAME

    async def exists(self, ref: str) -> bool:
        key = object_key(ref)

        def _head() -> bool:
            try:
                self._client.head_object(Bucket=self._bucket, Key=key)
                return True
            except ClientError as e:
                code = str(e.response.get("Error", {}).get("Code", ""))
                if code in MISSING_CODES:
                    return False
                raise ArtifactUnavailable(f"Storage lookup for {key} failed: {code or e}") from e
            except BotoCoreError as e:
                raise ArtifactUnavailable(f"Storage lookup for {key} failed: {e}") from e

        return await asyncio.to_thread(_head)

    async def aclose(self) -> None:
        return None


def get_blob_store() -> BlobStore:
    """Build the store selected by STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "r2":
        return R2BlobStore()
    if backend == "http":
        return HttpBlobStore()
    raise RuntimeError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}' (expected 'http' or 'r2')")
