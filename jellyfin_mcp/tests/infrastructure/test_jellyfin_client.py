from unittest.mock import Mock

from jellyfin_mcp.infrastructure.jellyfin.client import JellyfinAuthAPI, JellyfinClient


class TestJellyfinClient:
    """Request shapes of the user-scoped library client."""

    def setup_method(self):
        self.http = Mock()
        self.http.get.return_value = {'Items': []}
        self.client = JellyfinClient(self.http, user_id='u1', token='tok')

    def test_list_items(self):
        self.client.list_items({'Limit': 10})
        self.http.get.assert_called_once_with('/Users/u1/Items', token='tok', params={'Limit': 10})

    def test_search_hints(self):
        self.client.search_hints('matrix', limit=5, start_index=10)
        self.http.get.assert_called_once_with('/Search/Hints', token='tok', params={
            'SearchTerm': 'matrix', 'Limit': 5, 'UserId': 'u1', 'StartIndex': 10})

    def test_next_up_with_series(self):
        self.client.next_up(series_id='s1', limit=3)
        self.http.get.assert_called_once_with('/Shows/NextUp', token='tok', params={
            'UserId': 'u1', 'Limit': 3, 'SeriesId': 's1'})

    def test_next_up_without_series(self):
        self.client.next_up()
        _, kwargs = self.http.get.call_args
        assert 'SeriesId' not in kwargs['params']

    def test_item_escapes_path_segments(self):
        self.client.item('a/b')
        self.http.get.assert_called_once_with('/Users/u1/Items/a%2Fb', token='tok', params=None)

    def test_stream_info(self):
        self.client.stream_info('i1')
        self.http.get.assert_called_once_with('/Items/i1/PlaybackInfo', token='tok',
                                              params={'UserId': 'u1'})

    def test_sessions(self):
        self.http.get.return_value = [{'Id': 's1'}]

        assert self.client.sessions() == [{'Id': 's1'}]
        self.http.get.assert_called_once_with('/Sessions', token='tok', params=None)

    def test_empty_body_becomes_empty_dict(self):
        self.http.get.return_value = None
        assert self.client.list_items({}) == {}


class TestJellyfinAuthAPI:

    def setup_method(self):
        self.http = Mock()
        self.http.base_url = 'http://media.local:8096'
        self.api = JellyfinAuthAPI(self.http)

    def test_base_url(self):
        assert self.api.base_url == 'http://media.local:8096'

    def test_authenticate_by_name_body(self):
        self.http.post.return_value = {'AccessToken': 't', 'User': {'Id': 'u1'}}

        result = self.api.authenticate_by_name('alice', 'pw')

        assert result['AccessToken'] == 't'
        self.http.post.assert_called_once_with('/Users/AuthenticateByName',
                                               json={'Username': 'alice', 'Pw': 'pw'})

    def test_current_user(self):
        self.http.get.return_value = {'Id': 'u1'}
        assert self.api.current_user('tok') == {'Id': 'u1'}
        self.http.get.assert_called_once_with('/Users/Me', token='tok')

    def test_probe_items_requests_single_item(self):
        self.api.probe_items('tok', 'u1')
        self.http.get.assert_called_once_with('/Users/u1/Items', token='tok', params={'Limit': 1})

    def test_public_system_info_is_unauthenticated(self):
        self.http.get.return_value = None
        assert self.api.public_system_info() == {}
        self.http.get.assert_called_once_with('/System/Info/Public')
