from typing import Optional

from jellyfin_mcp.application.authenticator import Authenticator
from jellyfin_mcp.application.credentials import CredentialResolver
from jellyfin_mcp.application.dispatcher import Dispatcher
from jellyfin_mcp.application.pending import PendingRequestSlot
from jellyfin_mcp.application.session_store import SessionStore
from jellyfin_mcp.application.token_validator import TokenValidator
from jellyfin_mcp.crosscutting.config import ConfigManager, get_config_manager
from jellyfin_mcp.domain.entities import Session
from jellyfin_mcp.infrastructure.jellyfin.client import JellyfinAuthAPI, JellyfinClient
from jellyfin_mcp.infrastructure.jellyfin.http import JellyfinHTTP


def create_dispatcher(config: Optional[ConfigManager] = None,
                      http: Optional[JellyfinHTTP] = None) -> Dispatcher:
    """Wire a dispatcher with fresh session state for one server process."""
    config = config or get_config_manager()
    if http is None:
        server = config.get_server_config()
        http = JellyfinHTTP(server.base_url, timeout=server.timeout)

    auth_api = JellyfinAuthAPI(http)
    authenticator = Authenticator(auth_api, TokenValidator(auth_api))

    def client_factory(session: Session) -> JellyfinClient:
        return JellyfinClient(http, user_id=session.user_id, token=session.access_token)

    return Dispatcher(
        store=SessionStore(),
        slot=PendingRequestSlot(),
        resolver=CredentialResolver.default(config.get_credentials(), authenticator),
        authenticator=authenticator,
        client_factory=client_factory,
    )
