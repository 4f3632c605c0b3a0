import argparse
import json
import signal
import sys
import time
from typing import Optional

from jellyfin_mcp.application.snapshot import get_library_snapshot
from jellyfin_mcp.crosscutting.config import ConfigError, ConfigManager, setup_config
from jellyfin_mcp.crosscutting.logging import get_logger, setup_logging
from jellyfin_mcp.domain.errors import (
    AuthenticationRequired, ConnectivityFailure, UpstreamError,
)
from jellyfin_mcp.infrastructure.jellyfin.client import JellyfinAuthAPI
from jellyfin_mcp.infrastructure.jellyfin.http import JellyfinHTTP
from jellyfin_mcp.interfaces.factory import create_dispatcher

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


class CLI:
    """Command Line Interface for the Jellyfin MCP server."""

    def __init__(self, argv: Optional[list] = None):
        """Initialize CLI."""
        self.argv = argv
        self.parser = self._create_parser()
        self._start_time = None
        self.config: Optional[ConfigManager] = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='jellyfin-mcp',
            description='Expose a Jellyfin media library to LLM clients'
        )
        parser.add_argument(
            '--env-file',
            default=None,
            help='Path to a .env file (default: ./.env)'
        )
        parser.add_argument(
            '--log-level',
            choices=LOG_LEVELS,
            default=None,
            help='Set logging level (default from JELLYFIN_LOG_LEVEL or INFO)'
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        subparsers.add_parser('serve', help='Run the MCP server over stdio (default)')

        http_parser = subparsers.add_parser('http', help='Run the HTTP interface')
        http_parser.add_argument('--host', default='localhost', help='Bind address')
        http_parser.add_argument('--port', type=int, default=3000, help='Bind port (default: 3000)')
        http_parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')

        subparsers.add_parser('check', help='Check connectivity, credentials and library access')

        users_parser = subparsers.add_parser('users', help='List server users and their ids')
        users_parser.add_argument(
            '--token',
            default=None,
            help='Administrator token (default: JELLYFIN_TOKEN)'
        )

        subparsers.add_parser('config', help='Show configuration summary (no secrets)')

        return parser

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            logger = get_logger(__name__)
            logger.warning(f"Received signal {signum}, shutting down...")
            self._cleanup_resources()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _cleanup_resources(self) -> None:
        """Log run duration on exit."""
        logger = get_logger(__name__)
        if self._start_time:
            duration = time.time() - self._start_time
            logger.debug(f"CLI execution time: {duration:.2f}s")

    def _serve(self, args: argparse.Namespace) -> None:
        """Run the stdio MCP server."""
        from jellyfin_mcp.interfaces.mcp_server import run_stdio

        dispatcher = create_dispatcher(self.config)
        run_stdio(dispatcher, self.config.get_spec_path())

    def _serve_http(self, args: argparse.Namespace) -> None:
        """Run the HTTP interface."""
        from jellyfin_mcp.interfaces.http import HTTPServer

        dispatcher = create_dispatcher(self.config)
        HTTPServer(dispatcher, host=args.host, port=args.port, debug=args.debug).run()

    def _check(self, args: argparse.Namespace) -> int:
        """Resolve credentials, then exercise the library endpoints."""
        server = self.config.get_server_config()
        print(f"Connecting to: {server.base_url}")

        dispatcher = create_dispatcher(self.config)
        try:
            session = dispatcher.require_session()
        except AuthenticationRequired:
            print("No usable credentials: set JELLYFIN_TOKEN and JELLYFIN_USER_ID, "
                  "or JELLYFIN_USERNAME and JELLYFIN_PASSWORD")
            return 1
        print(f"Authenticated as user {session.user_name or session.user_id}")

        library = dispatcher.library()
        try:
            total = library.list_items({'Limit': 1, 'Recursive': True}).get('TotalRecordCount') or 0
            print(f"Library reachable: {total} total items")
            try:
                print(f"Active sessions: {len(library.sessions())}")
            except UpstreamError as e:
                # Session listing needs an administrator account
                print(f"Active sessions: unavailable (HTTP {e.status_code})")

            snapshot = get_library_snapshot(library)
            print(snapshot['summary'])
            print(f"Content breakdown: {json.dumps(snapshot['counts'])}")
            top = ', '.join(f"{genre} ({n})" for genre, n in snapshot['top_genres'][:3])
            print(f"Top genres: {top or 'none'}")

            for tool in ('search_items', 'next_up'):
                arguments = {'query': 'test', 'limit': 5} if tool == 'search_items' else {'limit': 3}
                result = dispatcher.call(tool, arguments)
                status = 'ok' if result.ok else f"failed ({result.error})"
                print(f"{tool}: {status}")
        except (ConnectivityFailure, UpstreamError) as e:
            print(f"Connection check failed: {e}")
            return 1

        print("All connection checks passed")
        return 0

    def _list_users(self, args: argparse.Namespace) -> int:
        """Print all users with their ids (requires an administrator token)."""
        server = self.config.get_server_config()
        token = args.token or self.config.get_credentials().access_token
        if not token:
            print("An administrator token is required: pass --token or set JELLYFIN_TOKEN")
            return 1

        auth_api = JellyfinAuthAPI(JellyfinHTTP(server.base_url, timeout=server.timeout))
        try:
            users = auth_api.list_users(token)
        except UpstreamError as e:
            if e.status_code == 401:
                print("Authentication failed: check the token")
            elif e.status_code == 403:
                print("Access denied: the token may not have administrator privileges")
            else:
                print(f"Failed to fetch users: {e}")
            return 1
        except ConnectivityFailure as e:
            print(str(e))
            return 1

        if not users:
            print("No users found")
            return 0

        print(f"Found {len(users)} user(s):")
        print("-" * 50)
        for user in users:
            policy = user.get('Policy') or {}
            flags = []
            if policy.get('IsAdministrator'):
                flags.append('admin')
            if policy.get('IsDisabled'):
                flags.append('disabled')
            suffix = f" [{', '.join(flags)}]" if flags else ''
            print(f"{user.get('Id')}: {user.get('Name')}{suffix}")
        return 0

    def _show_config(self, args: argparse.Namespace) -> int:
        print(json.dumps(self.config.get_config_summary(), indent=2))
        return 0

    def run(self) -> int:
        """Run the CLI."""
        self._start_time = time.time()
        args = self.parser.parse_args(self.argv)
        command = args.command or 'serve'

        self.config = setup_config(args.env_file)

        try:
            setup_logging(args.log_level or self.config.get_log_level(), self.config.get_log_file())
            if command in ('serve', 'http'):
                self._setup_signal_handlers()

            if command == 'serve':
                self._serve(args)
            elif command == 'http':
                self._serve_http(args)
            elif command == 'check':
                return self._check(args)
            elif command == 'users':
                return self._list_users(args)
            elif command == 'config':
                return self._show_config(args)
            return 0

        except ConfigError as e:
            get_logger(__name__).error(f"Configuration error: {e}")
            return 2
        except KeyboardInterrupt:
            get_logger(__name__).warning("Operation cancelled by user")
            return 130
        finally:
            self._cleanup_resources()


def main():
    """Main entry point."""
    sys.exit(CLI().run())


if __name__ == '__main__':
    main()
