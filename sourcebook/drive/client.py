"""Google Drive export adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from sourcebook.config import settings
from sourcebook.drive.tokens import DriveTokenManager
from sourcebook.errors import (
    DocumentUnavailableError,
    InvalidRequestError,
    ReconnectRequiredError,
)
from sourcebook.models.source import GOOGLE_DOC, GOOGLE_SHEET, GOOGLE_SLIDES

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    GOOGLE_DOC: "text/plain",
    GOOGLE_SHEET: "text/csv",
    GOOGLE_SLIDES: "text/plain",
}

LIST_FIELDS = "files(id,name,mimeType,size,modifiedTime,webViewLink,iconLink)"


@dataclass(frozen=True)
class DriveExport:
    content: bytes
    mime_type: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class DriveClient:
    """Reads files from one user's Google Drive."""

    def __init__(
        self,
        tokens: DriveTokenManager,
        user_id: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.tokens = tokens
        self.user_id = user_id or settings.workspace_user
        self.api_url = (api_url or settings.drive_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    async def export(self, file_id: str, mime_type: str) -> DriveExport:
        """Export a native Google file as text/CSV, or download anything else as-is."""
        if not file_id:
            raise InvalidRequestError("File ID is required")

        export_mime = EXPORT_FORMATS.get(mime_type)
        if export_mime:
            url = f"{self.api_url}/files/{file_id}/export"
            params = {"mimeType": export_mime}
        else:
            url = f"{self.api_url}/files/{file_id}"
            params = {"alt": "media"}

        response = await self._get(url, params, failure="Failed to fetch file content")
        logger.info("Fetched Drive file %s (%d bytes)", file_id, len(response.content))
        return DriveExport(content=response.content, mime_type=export_mime or mime_type)

    async def list_files(self, page_size: int = 100) -> list[dict]:
        response = await self._get(
            f"{self.api_url}/files",
            {"pageSize": str(page_size), "fields": LIST_FIELDS},
            failure="Failed to fetch Drive files",
        )
        return response.json().get("files", [])

    async def _get(self, url: str, params: dict[str, str], failure: str) -> httpx.Response:
        access_token = await self.tokens.access_token(self.user_id)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    url,
                    params=params,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            logger.error("Drive API request failed: %s", exc)
            raise DocumentUnavailableError(failure, details=str(exc)) from exc

        if response.status_code == 401:
            raise ReconnectRequiredError("Google Drive rejected the stored credentials")
        if response.is_error:
            logger.error("Drive API error: %s %s", response.status_code, response.text[:300])
            raise DocumentUnavailableError(failure, details=f"HTTP {response.status_code}")
        return response
