#!/usr/bin/env python3
"""
Jellyfin MCP HTTP Server Runner
"""

from jellyfin_mcp.crosscutting.config import get_config_manager
from jellyfin_mcp.crosscutting.logging import setup_logging
from jellyfin_mcp.interfaces.factory import create_dispatcher
from jellyfin_mcp.interfaces.http import HTTPServer


def main():
    """Run the HTTP server."""
    config = get_config_manager()
    setup_logging(config.get_log_level(), config.get_log_file())
    server = HTTPServer(
        create_dispatcher(config),
        host='localhost',
        port=3000,
        debug=True
    )
    server.run()


if __name__ == '__main__':
    main()
