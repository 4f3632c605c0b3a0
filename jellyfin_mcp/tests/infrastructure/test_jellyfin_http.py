from unittest.mock import Mock

import pytest
import requests

from jellyfin_mcp.domain.errors import ConnectivityFailure, NotFound, UpstreamError
from jellyfin_mcp.infrastructure.jellyfin.http import (
    CLIENT_AUTHORIZATION, TOKEN_HEADER, JellyfinHTTP, encode_params,
)


def _response(status_code=200, body=None, content=b'{}'):
    response = Mock()
    response.status_code = status_code
    response.content = content
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


class TestEncodeParams:

    def test_drops_none_and_lowercases_booleans(self):
        encoded = encode_params({'Recursive': True, 'IsPlayed': False, 'ParentId': None, 'Limit': 5})
        assert encoded == [('Recursive', 'true'), ('IsPlayed', 'false'), ('Limit', '5')]

    def test_lists_become_repeated_keys(self):
        encoded = encode_params({'Genres': ['Drama', 'Comedy']})
        assert encoded == [('Genres', 'Drama'), ('Genres', 'Comedy')]

    def test_empty(self):
        assert encode_params(None) == []


class TestJellyfinHTTP:
    """Tests for the requests wrapper."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.http = JellyfinHTTP('http://media.local:8096/', timeout=3.0, session=self.session)

    def test_client_headers_installed(self):
        assert self.http.base_url == 'http://media.local:8096'
        assert self.session.headers['X-Emby-Authorization'] == CLIENT_AUTHORIZATION
        assert 'Client="Jellyfin MCP"' in CLIENT_AUTHORIZATION

    def test_get_sends_token_header_and_timeout(self):
        self.session.request.return_value = _response(body={'Items': []})

        result = self.http.get('/Users/u1/Items', token='tok', params={'Limit': 1})

        assert result == {'Items': []}
        args, kwargs = self.session.request.call_args
        assert args == ('GET', 'http://media.local:8096/Users/u1/Items')
        assert kwargs['headers'] == {TOKEN_HEADER: 'tok'}
        assert kwargs['params'] == [('Limit', '1')]
        assert kwargs['timeout'] == 3.0

    def test_post_without_token_sends_no_token_header(self):
        self.session.request.return_value = _response(body={'AccessToken': 't'})

        self.http.post('/Users/AuthenticateByName', json={'Username': 'alice', 'Pw': 'pw'})

        args, kwargs = self.session.request.call_args
        assert args[0] == 'POST'
        assert kwargs['headers'] == {}
        assert kwargs['json'] == {'Username': 'alice', 'Pw': 'pw'}

    def test_connection_error_becomes_connectivity_failure(self):
        self.session.request.side_effect = requests.ConnectionError('refused')

        with pytest.raises(ConnectivityFailure) as exc_info:
            self.http.get('/System/Info/Public')

        assert str(exc_info.value) == 'Cannot connect to Jellyfin server at http://media.local:8096'
        assert exc_info.value.endpoint == 'http://media.local:8096'

    def test_timeout_becomes_connectivity_failure(self):
        self.session.request.side_effect = requests.Timeout('slow')

        with pytest.raises(ConnectivityFailure, match='Timed out'):
            self.http.get('/System/Info/Public')

    @pytest.mark.parametrize('error', [
        requests.TooManyRedirects('loop'),
        requests.exceptions.ChunkedEncodingError('broken'),
        requests.exceptions.ContentDecodingError('gzip'),
        requests.exceptions.InvalidURL('bad url'),
    ])
    def test_other_transport_errors_become_connectivity_failure(self, error):
        self.session.request.side_effect = error

        with pytest.raises(ConnectivityFailure) as exc_info:
            self.http.get('/Users/u1/Items', token='tok')

        assert exc_info.value.endpoint == 'http://media.local:8096'
        assert type(error).__name__ in str(exc_info.value)

    def test_404_becomes_not_found(self):
        self.session.request.return_value = _response(status_code=404)

        with pytest.raises(NotFound) as exc_info:
            self.http.get('/Items/x/PlaybackInfo')

        assert exc_info.value.status_code == 404
        assert exc_info.value.path == '/Items/x/PlaybackInfo'

    def test_401_becomes_upstream_error(self):
        self.session.request.return_value = _response(status_code=401)

        with pytest.raises(UpstreamError) as exc_info:
            self.http.get('/Users/Me', token='bad')

        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, NotFound)

    def test_empty_body_returns_none(self):
        self.session.request.return_value = _response(status_code=204, content=b'')
        assert self.http.post('/Sessions/Logout', token='tok') is None

    def test_non_json_body_raises(self):
        self.session.request.return_value = _response(body=ValueError('bad json'), content=b'<html>')

        with pytest.raises(UpstreamError, match='non-JSON'):
            self.http.get('/System/Info/Public')
