from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class MediaLibrary(Protocol):
    """Port defining the user-scoped read contract of the media server.

    Implementations return the server's JSON payloads unchanged; shaping them
    into operation results is the application layer's job.
    """

    def list_items(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Return a page of library items matching the query parameters."""

    def search_hints(self, query: str, limit: int = 10, start_index: Optional[int] = None) -> Dict[str, Any]:
        """Return free-text search hints."""

    def next_up(self, series_id: Optional[str] = None, limit: int = 10) -> Dict[str, Any]:
        """Return the next unwatched episodes."""

    def item(self, item_id: str) -> Dict[str, Any]:
        """Return a single item with full metadata."""

    def stream_info(self, item_id: str) -> Dict[str, Any]:
        """Return playback information for an item."""


class AuthAPI(Protocol):
    """Port for the unauthenticated/credential endpoints of the media server."""

    base_url: str

    def authenticate_by_name(self, username: str, password: str) -> Dict[str, Any]:
        """Exchange a username and password for an access token and user."""

    def current_user(self, token: str) -> Dict[str, Any]:
        """Return the user owning the token."""

    def public_system_info(self) -> Dict[str, Any]:
        """Return public server metadata."""

    def probe_items(self, token: str, user_id: str) -> Any:
        """Fetch a single-item page scoped to the user."""

    def list_users(self, token: str) -> List[Dict[str, Any]]:
        """Return all server users (requires an administrator token)."""
