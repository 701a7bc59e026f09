"""Blob storage for uploaded source files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import httpx

from sourcebook.config import settings
from sourcebook.errors import DocumentUnavailableError

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    async def download(self, path: str) -> bytes: ...

    async def remove(self, path: str) -> None: ...

    def public_url(self, path: str) -> str: ...


class LocalBlobStorage:
    """Files kept under a directory on local disk."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or settings.storage_root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise DocumentUnavailableError(f"Storage path escapes the storage root: {path}")
        return target

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise DocumentUnavailableError(
                "Could not download file from storage", details=str(exc)
            ) from exc

    async def remove(self, path: str) -> None:
        await asyncio.to_thread(self._resolve(path).unlink, True)

    def public_url(self, path: str) -> str:
        return self._resolve(path).as_uri()


class SupabaseBlobStorage:
    """Supabase Storage REST API, one bucket."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        bucket: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.storage_url).rstrip("/")
        self.api_key = api_key or settings.storage_key
        self.bucket = bucket or settings.storage_bucket
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "apikey": self.api_key}

    async def download(self, path: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(self._object_url(path), headers=self._headers())
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Storage download failed for %s: %s", path, exc)
            raise DocumentUnavailableError(
                "Could not download file from storage", details=str(exc)
            ) from exc
        return response.content

    async def remove(self, path: str) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.request(
                "DELETE",
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                headers=self._headers(),
                json={"prefixes": [path]},
            )
            response.raise_for_status()

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"


def build_storage() -> BlobStorage:
    """Pick the storage backend named in settings."""
    if settings.storage_backend == "supabase":
        return SupabaseBlobStorage()
    return LocalBlobStorage()
