"""Stored Google Drive OAuth credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

# Tokens this close to expiry are treated as expired.
EXPIRY_SKEW = timedelta(seconds=30)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DriveToken:
    """One user's Drive credentials."""

    user_id: str
    access_token: str
    expires_at: datetime
    refresh_token: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at - EXPIRY_SKEW <= (now or _now())
