"""Google OAuth token lifecycle for Drive access.

Tokens are stored per user. Checking expiry, refreshing and persisting the
new token happen under one lock per user, so overlapping requests refresh
at most once.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Protocol
from urllib.parse import urlencode

import httpx

from sourcebook.config import settings
from sourcebook.errors import InvalidRequestError, ReconnectRequiredError
from sourcebook.models.drive_token import DriveToken

logger = logging.getLogger(__name__)

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive.readonly"
DEFAULT_EXPIRES_IN = 3600


class TokenStore(Protocol):
    async def get_drive_token(self, user_id: str) -> DriveToken | None: ...

    async def save_drive_token(self, token: DriveToken) -> None: ...


class DriveTokenManager:
    """Hands out valid Drive access tokens, refreshing them when expired."""

    def __init__(
        self,
        store: TokenStore,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_url: str | None = None,
        redirect_uri: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.token_url = token_url or settings.google_token_url
        self.redirect_uri = redirect_uri or settings.google_redirect_uri
        self.timeout = timeout or settings.http_timeout
        self._transport = transport
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def access_token(self, user_id: str) -> str:
        """Return a usable access token for ``user_id``."""
        async with self._locks[user_id]:
            token = await self.store.get_drive_token(user_id)
            if token is None:
                raise ReconnectRequiredError("No Google Drive connection found")
            if not token.is_expired():
                return token.access_token

            logger.info("Refreshing Drive access token for %s", user_id)
            refreshed = await self._refresh(token)
            await self.store.save_drive_token(refreshed)
            return refreshed.access_token

    async def _refresh(self, token: DriveToken) -> DriveToken:
        if not token.refresh_token:
            raise ReconnectRequiredError("Google Drive connection expired, please reconnect")

        payload = await self._token_request(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": token.refresh_token,
                "grant_type": "refresh_token",
            },
            failure="Failed to refresh token",
        )
        now = datetime.now(timezone.utc)
        return DriveToken(
            user_id=token.user_id,
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or token.refresh_token,
            expires_at=now + timedelta(seconds=payload.get("expires_in", DEFAULT_EXPIRES_IN)),
            created_at=token.created_at,
            updated_at=now,
        )

    async def _token_request(self, form: dict[str, str], failure: str) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=form)
        except httpx.HTTPError as exc:
            logger.error("%s: %s", failure, exc)
            raise ReconnectRequiredError(failure, details=str(exc)) from exc

        if response.is_error:
            logger.error("%s: %s %s", failure, response.status_code, response.text[:300])
            raise ReconnectRequiredError(failure)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ReconnectRequiredError(failure, details="malformed token response") from exc
        if not isinstance(payload, dict) or "access_token" not in payload:
            raise ReconnectRequiredError(failure, details="malformed token response")
        return payload

    # -- Connecting an account --

    def authorization_url(self, state: str | None = None) -> str:
        """Consent-screen URL that starts the authorization-code flow."""
        if not self.client_id or not self.client_secret:
            raise InvalidRequestError("Google OAuth credentials not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": DRIVE_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{settings.google_auth_url}?{urlencode(params)}"

    async def exchange_code(self, user_id: str, code: str) -> DriveToken:
        """Trade an authorization code for tokens and store them."""
        if not code:
            raise InvalidRequestError("Authorization code is required")
        payload = await self._token_request(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            failure="Failed to exchange authorization code",
        )
        now = datetime.now(timezone.utc)
        token = DriveToken(
            user_id=user_id,
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=now + timedelta(seconds=payload.get("expires_in", DEFAULT_EXPIRES_IN)),
            created_at=now,
            updated_at=now,
        )
        async with self._locks[user_id]:
            await self.store.save_drive_token(token)
        logger.info("Stored Drive connection for %s", user_id)
        return token
