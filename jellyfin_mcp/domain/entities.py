from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


SESSION_MAX_AGE = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ServerInfo:
    """Descriptive metadata of the media server."""

    name: str = "Jellyfin"
    version: str = "Unknown"


@dataclass(frozen=True)
class Session:
    """An authenticated identity on the media server.

    The access token is an opaque bearer credential. It is excluded from
    ``repr`` so that a session never leaks its token into logs.
    """

    access_token: str = field(repr=False)
    user_id: str
    user_name: Optional[str] = None
    server_info: Optional[ServerInfo] = None
    authenticated_at: datetime = field(default_factory=utcnow)

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or utcnow()) - self.authenticated_at

    def is_expired(self, now: Optional[datetime] = None,
                   max_age: timedelta = SESSION_MAX_AGE) -> bool:
        return self.age(now) >= max_age

    def describe(self) -> Dict[str, Any]:
        """Public description of the session (never includes the token)."""
        info: Dict[str, Any] = {
            'authenticated': True,
            'user_id': self.user_id,
        }
        if self.user_name:
            info['user_name'] = self.user_name
        if self.server_info:
            info['server'] = {
                'name': self.server_info.name,
                'version': self.server_info.version,
            }
        return info


@dataclass(frozen=True)
class Credentials:
    """Credential strings supplied out-of-band (environment, .env file)."""

    access_token: Optional[str] = field(default=None, repr=False)
    user_id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @property
    def has_token(self) -> bool:
        return bool(self.access_token and self.user_id)

    @property
    def has_password(self) -> bool:
        return bool(self.username and self.password)


@dataclass(frozen=True)
class PendingRequest:
    """An operation deferred because no session was available."""

    tool_name: str
    arguments: Dict[str, Any]
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Recommendation:
    """Similarity scorer output for one candidate item."""

    item_id: str
    score: int
    why: List[str] = field(default_factory=list)
