import logging
from typing import Optional

from jellyfin_mcp.application.session_store import Clock
from jellyfin_mcp.application.token_validator import TokenValidator
from jellyfin_mcp.domain.entities import ServerInfo, Session, utcnow
from jellyfin_mcp.domain.errors import (
    AccountDisabled, AuthenticationFailed, ConnectivityFailure,
    InvalidCredentials, UpstreamError, UserIdUnavailable,
)
from jellyfin_mcp.domain.ports import AuthAPI

logger = logging.getLogger(__name__)


class Authenticator:
    """Turns credentials into sessions by talking to the media server.

    Errors are raised with caller-facing messages; nothing here stores a
    session. That is the dispatcher's job.
    """

    def __init__(self, auth_api: AuthAPI, validator: Optional[TokenValidator] = None,
                 clock: Clock = utcnow):
        self._auth_api = auth_api
        self.validator = validator or TokenValidator(auth_api)
        self._clock = clock

    def authenticate_by_name(self, username: str, password: str) -> Session:
        """Exchange a username and password for a session.

        Raises:
            InvalidCredentials: the server answered 401
            AccountDisabled: the server answered 403
            ConnectivityFailure: the server could not be reached
            AuthenticationFailed: any other failure or a malformed answer
        """
        try:
            payload = self._auth_api.authenticate_by_name(username, password)
        except ConnectivityFailure as e:
            raise ConnectivityFailure(
                f"Cannot connect to Jellyfin server at {self._auth_api.base_url}",
                endpoint=self._auth_api.base_url) from e
        except UpstreamError as e:
            if e.status_code == 401:
                raise InvalidCredentials("Invalid username or password") from e
            if e.status_code == 403:
                raise AccountDisabled("User account is disabled or not allowed to sign in") from e
            raise AuthenticationFailed(f"Authentication failed: {e}") from e

        access_token = (payload or {}).get('AccessToken')
        user = (payload or {}).get('User') or {}
        if not access_token or not user.get('Id'):
            raise AuthenticationFailed("Invalid response from Jellyfin server")

        session = Session(
            access_token=access_token,
            user_id=user['Id'],
            user_name=user.get('Name'),
            server_info=self._server_info(),
            authenticated_at=self._clock(),
        )
        logger.info(f"Authenticated user {session.user_name or session.user_id}")
        return session

    def session_from_token(self, access_token: str, user_id: Optional[str] = None) -> Session:
        """Build a session from a pre-issued token.

        Raises:
            InvalidCredentials: the server does not accept the token
            UserIdUnavailable: the owning user could not be determined
            ConnectivityFailure: the server could not be reached
        """
        user_name = None
        if not user_id:
            try:
                me = self._auth_api.current_user(access_token)
            except ConnectivityFailure:
                raise
            except UpstreamError as e:
                if e.status_code in (401, 403):
                    raise InvalidCredentials("Invalid or expired token") from e
                raise UserIdUnavailable("Unable to determine user ID") from e
            user_id = (me or {}).get('Id')
            user_name = (me or {}).get('Name')
            if not user_id:
                raise UserIdUnavailable("Unable to determine user ID")

        if not self.validator.validate(access_token, user_id):
            raise InvalidCredentials("Invalid or expired token")

        return Session(
            access_token=access_token,
            user_id=user_id,
            user_name=user_name,
            authenticated_at=self._clock(),
        )

    def _server_info(self) -> Optional[ServerInfo]:
        # Metadata is optional: its absence never fails a sign-in.
        try:
            info = self._auth_api.public_system_info() or {}
        except (ConnectivityFailure, UpstreamError) as e:
            logger.debug(f"Server info unavailable: {e}")
            return None
        return ServerInfo(
            name=info.get('ServerName') or 'Jellyfin',
            version=info.get('Version') or 'Unknown',
        )
