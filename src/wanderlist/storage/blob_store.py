"""
Blob store with provider abstraction.

Supports Supabase Storage (default) and a local filesystem store.
Provider is selected via configuration.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote, urlencode

import httpx
import structlog

from wanderlist.config import get_settings
from wanderlist.errors import StoreUnavailable

logger = structlog.get_logger()


class BaseBlobStore(ABC):
    """Abstract base class for blob storage providers."""

    @abstractmethod
    async def put_object(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store bytes at bucket/path. Returns the stored path."""
        ...

    @abstractmethod
    async def get_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        """Return a time-limited URL for reading bucket/path."""
        ...


class SupabaseBlobStore(BaseBlobStore):
    """Blob storage via the Supabase Storage REST API."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/storage/v1",
            headers={
                "Authorization": f"Bearer {self.service_key}",
                "apikey": self.service_key,
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    async def put_object(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload (upsert) an object."""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/object/{bucket}/{quote(path)}",
                    content=data,
                    headers={"Content-Type": content_type, "x-upsert": "true"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("blob_put_failed", bucket=bucket, path=path, provider="supabase", error=str(e))
            msg = "Could not upload file"
            raise StoreUnavailable(msg) from e
        logger.info("blob_stored", bucket=bucket, path=path, provider="supabase", size=len(data))
        return path

    async def get_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        """Create a signed download URL."""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/object/sign/{bucket}/{quote(path)}",
                    json={"expiresIn": ttl_seconds},
                )
                response.raise_for_status()
                signed = response.json()["signedURL"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("blob_sign_failed", bucket=bucket, path=path, provider="supabase", error=str(e))
            msg = "Could not sign file URL"
            raise StoreUnavailable(msg) from e
        return f"{self.base_url}/storage/v1{signed}"


class LocalBlobStore(BaseBlobStore):
    """Filesystem blob storage with HMAC-signed URLs (development)."""

    def __init__(self, root: str | Path, base_url: str, signing_key: str) -> None:
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self._key = signing_key.encode()

    def _resolve(self, bucket: str, path: str) -> Path:
        target = (self.root / bucket / path).resolve()
        if not target.is_relative_to(self.root / bucket):
            msg = f"Path escapes bucket: {path}"
            raise ValueError(msg)
        return target

    def _signature(self, bucket: str, path: str, expires: int) -> str:
        message = f"{bucket}/{path}:{expires}".encode()
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    async def put_object(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        target = self._resolve(bucket, path)
        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, data)
        except OSError as e:
            logger.error("blob_put_failed", bucket=bucket, path=path, provider="local", error=str(e))
            msg = "Could not store file"
            raise StoreUnavailable(msg) from e
        logger.info("blob_stored", bucket=bucket, path=path, provider="local", size=len(data))
        return path

    async def get_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        self._resolve(bucket, path)
        expires = int(time.time()) + ttl_seconds
        query = urlencode({"expires": expires, "signature": self._signature(bucket, path, expires)})
        return f"{self.base_url}/{bucket}/{quote(path)}?{query}"

    def verify_signed_url(
        self,
        bucket: str,
        path: str,
        expires: int,
        signature: str,
        now: float | None = None,
    ) -> bool:
        """Check a signature produced by get_signed_url and that it has not expired."""
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(self._signature(bucket, path, expires), signature)


def _create_provider() -> BaseBlobStore:
    """Create blob store based on configuration."""
    settings = get_settings()
    provider_name = settings.blob_provider.lower()

    if provider_name == "supabase":
        return SupabaseBlobStore(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_key,
        )
    if provider_name == "local":
        return LocalBlobStore(
            root=settings.local_blob_root,
            base_url=settings.local_blob_base_url,
            signing_key=settings.blob_signing_key,
        )
    msg = f"Unsupported blob provider: {provider_name}"
    raise ValueError(msg)


_blob_store: BaseBlobStore | None = None


def get_blob_store() -> BaseBlobStore:
    """Get the configured blob store (created on first use)."""
    global _blob_store  # noqa: PLW0603
    if _blob_store is None:
        _blob_store = _create_provider()
    return _blob_store


def reset_blob_store() -> None:
    """Drop the cached provider (useful for testing)."""
    global _blob_store  # noqa: PLW0603
    _blob_store = None
