from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from jellyfin_mcp.application.authenticator import Authenticator
from jellyfin_mcp.domain.entities import ServerInfo
from jellyfin_mcp.domain.errors import (
    AccountDisabled, AuthenticationFailed, ConnectivityFailure,
    InvalidCredentials, UpstreamError, UserIdUnavailable,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
AUTH_PATH = '/Users/AuthenticateByName'


class TestAuthenticateByName:
    """Username/password exchange and its error mapping."""

    def setup_method(self):
        self.auth_api = Mock()
        self.auth_api.base_url = 'http://media.local:8096'
        self.auth_api.public_system_info.return_value = {'ServerName': 'Home', 'Version': '10.9.0'}
        self.authenticator = Authenticator(self.auth_api, clock=lambda: NOW)

    def test_success(self):
        self.auth_api.authenticate_by_name.return_value = {
            'AccessToken': 'tok', 'User': {'Id': 'u1', 'Name': 'alice'}}

        session = self.authenticator.authenticate_by_name('alice', 'secret')

        assert session.access_token == 'tok'
        assert session.user_id == 'u1'
        assert session.user_name == 'alice'
        assert session.server_info == ServerInfo('Home', '10.9.0')
        assert session.authenticated_at == NOW
        self.auth_api.authenticate_by_name.assert_called_once_with('alice', 'secret')

    def test_server_info_is_optional(self):
        self.auth_api.authenticate_by_name.return_value = {
            'AccessToken': 'tok', 'User': {'Id': 'u1'}}
        self.auth_api.public_system_info.side_effect = UpstreamError(500, '/System/Info/Public')

        session = self.authenticator.authenticate_by_name('alice', 'secret')

        assert session.server_info is None
        assert session.user_name is None

    def test_server_info_defaults(self):
        self.auth_api.authenticate_by_name.return_value = {
            'AccessToken': 'tok', 'User': {'Id': 'u1'}}
        self.auth_api.public_system_info.return_value = {}

        session = self.authenticator.authenticate_by_name('alice', 'secret')

        assert session.server_info == ServerInfo('Jellyfin', 'Unknown')

    @pytest.mark.parametrize('status,error,message', [
        (401, InvalidCredentials, 'Invalid username or password'),
        (403, AccountDisabled, 'User account is disabled or not allowed to sign in'),
    ])
    def test_rejections(self, status, error, message):
        self.auth_api.authenticate_by_name.side_effect = UpstreamError(status, AUTH_PATH)

        with pytest.raises(error) as exc_info:
            self.authenticator.authenticate_by_name('alice', 'wrong')

        assert str(exc_info.value) == message

    def test_other_status(self):
        self.auth_api.authenticate_by_name.side_effect = UpstreamError(500, AUTH_PATH)

        with pytest.raises(AuthenticationFailed, match='^Authentication failed: '):
            self.authenticator.authenticate_by_name('alice', 'secret')

    def test_unreachable_server(self):
        self.auth_api.authenticate_by_name.side_effect = ConnectivityFailure('Timed out')

        with pytest.raises(ConnectivityFailure) as exc_info:
            self.authenticator.authenticate_by_name('alice', 'secret')

        assert str(exc_info.value) == 'Cannot connect to Jellyfin server at http://media.local:8096'

    @pytest.mark.parametrize('payload', [
        {}, {'AccessToken': 'tok'}, {'User': {'Id': 'u1'}}, None,
    ])
    def test_malformed_answer(self, payload):
        self.auth_api.authenticate_by_name.return_value = payload

        with pytest.raises(AuthenticationFailed, match='Invalid response from Jellyfin server'):
            self.authenticator.authenticate_by_name('alice', 'secret')


class TestSessionFromToken:

    def setup_method(self):
        self.auth_api = Mock()
        self.validator = Mock()
        self.validator.validate.return_value = True
        self.authenticator = Authenticator(self.auth_api, validator=self.validator, clock=lambda: NOW)

    def test_with_user_id(self):
        session = self.authenticator.session_from_token('tok', 'u1')

        assert session.user_id == 'u1'
        assert session.authenticated_at == NOW
        self.validator.validate.assert_called_once_with('tok', 'u1')
        self.auth_api.current_user.assert_not_called()

    def test_user_id_looked_up(self):
        self.auth_api.current_user.return_value = {'Id': 'u9', 'Name': 'bob'}

        session = self.authenticator.session_from_token('tok')

        assert session.user_id == 'u9'
        assert session.user_name == 'bob'
        self.validator.validate.assert_called_once_with('tok', 'u9')

    def test_rejected_token(self):
        self.validator.validate.return_value = False

        with pytest.raises(InvalidCredentials, match='Invalid or expired token'):
            self.authenticator.session_from_token('tok', 'u1')

    def test_lookup_rejected(self):
        self.auth_api.current_user.side_effect = UpstreamError(401, '/Users/Me')

        with pytest.raises(InvalidCredentials, match='Invalid or expired token'):
            self.authenticator.session_from_token('tok')

    def test_lookup_without_id(self):
        self.auth_api.current_user.return_value = {'Name': 'bob'}

        with pytest.raises(UserIdUnavailable, match='Unable to determine user ID'):
            self.authenticator.session_from_token('tok')

        self.validator.validate.assert_not_called()

    def test_lookup_server_error(self):
        self.auth_api.current_user.side_effect = UpstreamError(500, '/Users/Me')

        with pytest.raises(UserIdUnavailable):
            self.authenticator.session_from_token('tok')
