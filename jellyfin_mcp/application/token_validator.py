import logging

from jellyfin_mcp.domain.ports import AuthAPI

logger = logging.getLogger(__name__)


class TokenValidator:
    """Predicate telling whether the media server currently accepts a token."""

    def __init__(self, auth_api: AuthAPI):
        self._auth_api = auth_api

    def validate(self, token: str, user_id: str) -> bool:
        """Probe a single-item page for the user; any failure means rejected."""
        if not token or not user_id:
            return False
        try:
            self._auth_api.probe_items(token, user_id)
        except Exception as e:
            logger.debug(f"Token probe for user {user_id} failed: {type(e).__name__}: {e}")
            return False
        return True
