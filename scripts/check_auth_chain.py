#!/usr/bin/env python3
"""
Check each configured credential source against a live server.

Runs the resolver with every source on its own, then with all of them, and
reports which source produced the session.
Usage:
  python3 scripts/check_auth_chain.py [--env-file .env]
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from jellyfin_mcp.application.authenticator import Authenticator  # noqa: E402
from jellyfin_mcp.application.credentials import (  # noqa: E402
    Authenticated, CredentialResolver, PasswordStrategy, PreIssuedTokenStrategy,
)
from jellyfin_mcp.crosscutting.config import ConfigError, setup_config  # noqa: E402
from jellyfin_mcp.domain.entities import Credentials  # noqa: E402
from jellyfin_mcp.infrastructure.jellyfin.client import JellyfinAuthAPI  # noqa: E402
from jellyfin_mcp.infrastructure.jellyfin.http import JellyfinHTTP  # noqa: E402


def describe(label: str, resolver: CredentialResolver) -> bool:
    resolution = resolver.resolve()
    if isinstance(resolution, Authenticated):
        session = resolution.session
        print(f"✅ {label}: user {session.user_name or session.user_id} via {resolution.source}")
        return True
    reasons = '; '.join(resolution.failures) or 'no credentials configured'
    print(f"⚠️  {label}: not authenticated ({reasons})")
    return False


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--env-file', default=None)
    args = parser.parse_args()

    config = setup_config(args.env_file)
    try:
        server = config.get_server_config()
    except ConfigError as e:
        print(f"❌ {e}")
        return 1

    print(f"📡 Server URL: {server.base_url}")
    credentials = config.get_credentials()
    authenticator = Authenticator(JellyfinAuthAPI(JellyfinHTTP(server.base_url, timeout=server.timeout)))

    token_only = Credentials(access_token=credentials.access_token, user_id=credentials.user_id)
    password_only = Credentials(username=credentials.username, password=credentials.password)

    results = [
        describe("Token", CredentialResolver([PreIssuedTokenStrategy(token_only, authenticator)])),
        describe("Username/password", CredentialResolver([PasswordStrategy(password_only, authenticator)])),
        describe("Full chain", CredentialResolver.default(credentials, authenticator)),
    ]
    return 0 if results[-1] else 1


if __name__ == "__main__":
    sys.exit(main())
