import os
import logging
from datetime import datetime
from typing import Optional

from flask import Flask, request, jsonify

from jellyfin_mcp.application.dispatcher import AUTH_ACTIONS, SESSION_ACTIONS, Dispatcher, Status, ToolResult
from jellyfin_mcp.application.snapshot import get_library_snapshot
from jellyfin_mcp.crosscutting.config import VERSION
from jellyfin_mcp.domain.errors import AuthenticationRequired, ConnectivityFailure, UpstreamError

FAILURE_STATUS = {
    'invalid_arguments': 400,
    'unknown_operation': 404,
    'not_found': 404,
    'invalid_credentials': 401,
    'user_id_unavailable': 401,
    'account_disabled': 403,
    'authentication_failed': 502,
    'upstream_error': 502,
    'connectivity_failure': 502,
}


def status_code_for(result: ToolResult) -> int:
    if result.status is Status.COMPLETED:
        return 200
    if result.status is Status.AWAITING_AUTH:
        return 401
    return FAILURE_STATUS.get(result.error_type, 500)


class HTTPServer:
    """HTTP interface exposing the same operations as the stdio server."""

    def __init__(self, dispatcher: Dispatcher, host: str = 'localhost', port: int = 3000,
                 debug: bool = False):
        """Initialize HTTP server."""
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.debug = debug
        self.app = Flask(__name__)
        self.logger = logging.getLogger(__name__)

        self.version = VERSION
        self.commit = os.getenv('GIT_COMMIT', 'unknown')

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup Flask routes."""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint."""
            return jsonify({
                'status': 'healthy',
                'version': self.version,
                'commit': self.commit,
                'timestamp': datetime.now().isoformat()
            }), 200

        @self.app.route('/tools', methods=['GET'])
        def list_tools():
            """List callable operations."""
            tools = [
                {'name': op.name, 'description': op.description,
                 'input_schema': op.input_model.model_json_schema()}
                for op in self.dispatcher.operations.values()
            ]
            tools.extend({'name': name, 'requires_auth': False} for name in SESSION_ACTIONS)
            return jsonify({'tools': tools}), 200

        @self.app.route('/tools/<name>', methods=['POST'])
        def call_tool(name: str):
            """Dispatch one operation with the JSON body as its arguments."""
            arguments = request.get_json(silent=True)
            if arguments is None:
                arguments = {}
            if not isinstance(arguments, dict):
                return jsonify({'error': 'Request body must be a JSON object'}), 400

            result = self.dispatcher.call(name, arguments)
            if name in AUTH_ACTIONS and result.payload is not None:
                return jsonify(result.payload), status_code_for(result)

            body = result.to_dict()
            if result.status is Status.AWAITING_AUTH:
                body['auth_required'] = True
            return jsonify(body), status_code_for(result)

        @self.app.route('/session', methods=['GET'])
        def session_status():
            """Current session description (never includes the token)."""
            return jsonify(self.dispatcher.session_status()), 200

        @self.app.route('/session', methods=['DELETE'])
        def clear_session():
            return jsonify(self.dispatcher.clear_session()), 200

        @self.app.route('/resources/snapshot', methods=['GET'])
        def snapshot():
            """Library snapshot resource."""
            try:
                return jsonify(get_library_snapshot(self.dispatcher.library())), 200
            except AuthenticationRequired as e:
                return jsonify({'error': str(e), 'auth_required': True}), 401
            except (ConnectivityFailure, UpstreamError) as e:
                self.logger.error(f"Snapshot failed: {e}")
                return jsonify({'error': 'Failed to get library snapshot', 'details': str(e)}), 502

        @self.app.route('/', methods=['GET'])
        def root():
            """Root endpoint with basic info."""
            return jsonify({
                'service': 'Jellyfin MCP HTTP Interface',
                'version': self.version,
                'endpoints': {
                    'health': '/health',
                    'tools': '/tools',
                    'call_tool': '/tools/<name>',
                    'session': '/session',
                    'snapshot': '/resources/snapshot'
                }
            }), 200

    def run(self) -> None:
        """Run the HTTP server.

        Requests are served one at a time: session state has a single writer.
        """
        self.logger.info(f"Starting Jellyfin MCP HTTP server on {self.host}:{self.port}")
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.debug,
            threaded=False
        )


def create_app(dispatcher: Optional[Dispatcher] = None) -> Flask:
    """Create Flask app for testing."""
    if dispatcher is None:
        from jellyfin_mcp.interfaces.factory import create_dispatcher
        dispatcher = create_dispatcher()
    server = HTTPServer(dispatcher)
    return server.app
