import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from jellyfin_mcp.crosscutting.config import DEFAULT_TIMEOUT, VERSION
from jellyfin_mcp.domain.errors import ConnectivityFailure, NotFound, UpstreamError

logger = logging.getLogger(__name__)

CLIENT_AUTHORIZATION = (
    'MediaBrowser Client="Jellyfin MCP", Device="MCP Server", '
    f'DeviceId="jellyfin-mcp-001", Version="{VERSION}"'
)
TOKEN_HEADER = 'X-MediaBrowser-Token'


def encode_params(params: Optional[Dict[str, Any]]) -> List[Tuple[str, str]]:
    """Encode query parameters the way the media server expects them.

    ``None`` values are dropped, booleans are lowercase and lists become
    repeated keys.
    """
    encoded: List[Tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            if isinstance(item, bool):
                item = 'true' if item else 'false'
            encoded.append((key, str(item)))
    return encoded


class JellyfinHTTP:
    """Thin wrapper around ``requests`` for media server calls.

    Every call is bounded by ``timeout``; timeouts are reported exactly like
    refused connections.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'X-Emby-Authorization': CLIENT_AUTHORIZATION,
            'Accept': 'application/json',
        })

    def get(self, path: str, token: Optional[str] = None,
            params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request('GET', path, token=token, params=params)

    def post(self, path: str, token: Optional[str] = None,
             json: Optional[Dict[str, Any]] = None,
             params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request('POST', path, token=token, params=params, json=json)

    def request(self, method: str, path: str, token: Optional[str] = None,
                params: Optional[Dict[str, Any]] = None,
                json: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a request and return the parsed JSON body.

        Raises:
            ConnectivityFailure: server unreachable, timed out or transfer broken
            UpstreamError: non-success HTTP status (``NotFound`` for 404)
        """
        url = f"{self.base_url}{path}"
        headers = {TOKEN_HEADER: token} if token else {}

        try:
            response = self._session.request(
                method,
                url,
                params=encode_params(params),
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise ConnectivityFailure(
                f"Timed out connecting to Jellyfin server at {self.base_url}",
                endpoint=self.base_url) from e
        except requests.ConnectionError as e:
            logger.warning(f"{method} {path} failed: cannot reach {self.base_url}")
            raise ConnectivityFailure(
                f"Cannot connect to Jellyfin server at {self.base_url}",
                endpoint=self.base_url) from e
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}")
            raise ConnectivityFailure(
                f"Request to Jellyfin server at {self.base_url} failed: {type(e).__name__}",
                endpoint=self.base_url) from e

        if response.status_code == 404:
            raise NotFound(404, path)
        if not 200 <= response.status_code < 300:
            logger.debug(f"{method} {path} returned HTTP {response.status_code}")
            raise UpstreamError(response.status_code, path)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(response.status_code, path,
                                f"Jellyfin returned a non-JSON body for {path}") from e
