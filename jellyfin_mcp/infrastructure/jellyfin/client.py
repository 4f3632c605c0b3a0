from typing import Any, Dict, List, Optional
from urllib.parse import quote

from jellyfin_mcp.domain.ports import AuthAPI, MediaLibrary
from jellyfin_mcp.infrastructure.jellyfin.http import JellyfinHTTP


def _segment(value: str) -> str:
    return quote(str(value), safe='')


class JellyfinClient(MediaLibrary):
    """User-scoped read client for the media library."""

    def __init__(self, http: JellyfinHTTP, user_id: str, token: str):
        self._http = http
        self.user_id = user_id
        self._token = token

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._http.get(path, token=self._token, params=params)

    def list_items(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._get(f"/Users/{_segment(self.user_id)}/Items", params) or {}

    def search_hints(self, query: str, limit: int = 10,
                     start_index: Optional[int] = None) -> Dict[str, Any]:
        params = {'SearchTerm': query, 'Limit': limit, 'UserId': self.user_id,
                  'StartIndex': start_index}
        return self._get('/Search/Hints', params) or {}

    def next_up(self, series_id: Optional[str] = None, limit: int = 10) -> Dict[str, Any]:
        params: Dict[str, Any] = {'UserId': self.user_id, 'Limit': limit}
        if series_id:
            params['SeriesId'] = series_id
        return self._get('/Shows/NextUp', params) or {}

    def sessions(self) -> List[Dict[str, Any]]:
        return self._get('/Sessions') or []

    def item(self, item_id: str) -> Dict[str, Any]:
        return self._get(f"/Users/{_segment(self.user_id)}/Items/{_segment(item_id)}") or {}

    def stream_info(self, item_id: str) -> Dict[str, Any]:
        return self._get(f"/Items/{_segment(item_id)}/PlaybackInfo",
                         {'UserId': self.user_id}) or {}


class JellyfinAuthAPI(AuthAPI):
    """Credential endpoints of the media server."""

    def __init__(self, http: JellyfinHTTP):
        self._http = http

    @property
    def base_url(self) -> str:
        return self._http.base_url

    def authenticate_by_name(self, username: str, password: str) -> Dict[str, Any]:
        return self._http.post('/Users/AuthenticateByName',
                               json={'Username': username, 'Pw': password}) or {}

    def current_user(self, token: str) -> Dict[str, Any]:
        return self._http.get('/Users/Me', token=token) or {}

    def public_system_info(self) -> Dict[str, Any]:
        return self._http.get('/System/Info/Public') or {}

    def probe_items(self, token: str, user_id: str) -> Any:
        return self._http.get(f"/Users/{_segment(user_id)}/Items", token=token,
                              params={'Limit': 1})

    def list_users(self, token: str) -> List[Dict[str, Any]]:
        return self._http.get('/Users', token=token) or []
