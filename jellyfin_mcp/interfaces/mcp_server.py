"""Model Context Protocol server over stdio.

Tools are thin wrappers: they collect the arguments the caller actually
supplied and hand them to the dispatcher, so a parked invocation can be
replayed verbatim.
"""
import json
import logging
import os
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ResourceError, ToolError

from jellyfin_mcp.application import prompts
from jellyfin_mcp.application.dispatcher import Dispatcher, Status, ToolResult
from jellyfin_mcp.application.snapshot import get_library_snapshot
from jellyfin_mcp.domain.errors import (
    AUTHENTICATION_INSTRUCTION, AuthenticationRequired, ConnectivityFailure, UpstreamError,
)
from jellyfin_mcp.infrastructure.spec_loader import get_spec_section, load_spec, spec_top_level_index

logger = logging.getLogger(__name__)

SERVER_NAME = 'jellyfin-mcp'


def compact(**arguments: Any) -> Dict[str, Any]:
    """Drop arguments the caller left unset."""
    return {k: v for k, v in arguments.items() if v is not None}


def render(result: ToolResult) -> Dict[str, Any]:
    """Turn a dispatch outcome into a tool response or a tool error."""
    if result.status is Status.COMPLETED:
        return result.payload or {}
    if result.status is Status.AWAITING_AUTH:
        raise ToolError(result.error or AUTHENTICATION_INSTRUCTION)
    if result.payload is not None:
        # Sign-in actions report their own failures as structured results.
        return result.payload
    raise ToolError(f"Tool {result.tool} failed: {result.error}")


def build_server(dispatcher: Dispatcher, spec_path: Optional[str] = None) -> FastMCP:
    server = FastMCP(SERVER_NAME)

    @server.tool(description="Filtered listing from the user's library")
    def list_items(limit: int, view: str = "All", filters: Optional[Dict[str, Any]] = None,
                   sort: str = "DateCreated", cursor: Optional[str] = None) -> Dict[str, Any]:
        return render(dispatcher.call('list_items', compact(
            limit=limit, view=view, filters=filters, sort=sort, cursor=cursor)))

    @server.tool(description="Search by text and/or structured filters")
    def search_items(query: Optional[str] = None, filters: Optional[Dict[str, Any]] = None,
                     limit: Optional[int] = None, cursor: Optional[str] = None) -> Dict[str, Any]:
        return render(dispatcher.call('search_items', compact(
            query=query, filters=filters, limit=limit, cursor=cursor)))

    @server.tool(description="Personalized continuation for TV")
    def next_up(series_id: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        return render(dispatcher.call('next_up', compact(series_id=series_id, limit=limit)))

    @server.tool(description="Similar items with rationale strings")
    def recommend_similar(seed_item_id: Optional[str] = None, mood: Optional[str] = None,
                          limit: Optional[int] = None) -> Dict[str, Any]:
        return render(dispatcher.call('recommend_similar', compact(
            seed_item_id=seed_item_id, mood=mood, limit=limit)))

    @server.tool(description="Playback capability data")
    def get_stream_info(item_id: str) -> Dict[str, Any]:
        return render(dispatcher.call('get_stream_info', compact(item_id=item_id)))

    @server.tool(description="Exchange username/password for a user-scoped access token "
                             "and set it for this session.")
    def authenticate_user(username: str, password: str) -> Dict[str, Any]:
        return render(dispatcher.call('authenticate_user', {'username': username, 'password': password}))

    @server.tool(description="Set the active Jellyfin access token (and optional userId) "
                             "for this MCP session.")
    def set_token(access_token: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        return render(dispatcher.call('set_token', compact(access_token=access_token, user_id=user_id)))

    @server.tool(description="Forget the current session and any request waiting for sign-in.")
    def clear_session() -> Dict[str, Any]:
        return render(dispatcher.call('clear_session'))

    @server.tool(description="Describe the current session without revealing its token.")
    def session_status() -> Dict[str, Any]:
        return render(dispatcher.call('session_status'))

    @server.resource("jellyfin://snapshot", name="Library snapshot",
                     description="Small, fast overview for conversational cold starts",
                     mime_type="application/json")
    def library_snapshot() -> str:
        try:
            return json.dumps(get_library_snapshot(dispatcher.library()), indent=2)
        except (AuthenticationRequired, ConnectivityFailure, UpstreamError) as e:
            raise ResourceError(f"Failed to get library snapshot: {e}") from e

    if spec_path and os.path.exists(spec_path):
        @server.resource("jellyfin://spec", name="Tool specification index",
                         mime_type="application/json")
        def spec_index() -> str:
            return json.dumps(spec_top_level_index(load_spec(spec_path)))

        @server.resource("jellyfin://spec/{section}", name="Tool specification section",
                         mime_type="application/json")
        def spec_section(section: str) -> str:
            return json.dumps(get_spec_section(section, load_spec(spec_path)), default=str)

    @server.prompt(description="Convert a casual request into library filters")
    def extract_filters(request: str, library_genres: str = '') -> str:
        return prompts.extract_filters(request, library_genres)

    @server.prompt(description="Explain a recommendation in one sentence")
    def recommendation_rationale(item_name: str, signals: str) -> str:
        return prompts.recommendation_rationale(item_name, signals)

    return server


def run_stdio(dispatcher: Dispatcher, spec_path: Optional[str] = None) -> None:
    server = build_server(dispatcher, spec_path)
    logger.info("Jellyfin MCP server running on stdio")
    server.run()
