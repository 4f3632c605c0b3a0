"""Entry point for every callable operation.

An invocation either completes, fails, or is parked in the pending slot
while the caller signs in. A later successful sign-in drains the slot and
replays the parked invocation with the new session; the replay's outcome is
reported next to the sign-in outcome and never hides it.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from jellyfin_mcp.application.authenticator import Authenticator
from jellyfin_mcp.application.credentials import Authenticated, CredentialResolver, NeedsAuth, Resolution
from jellyfin_mcp.application.operations import OPERATIONS, Operation
from jellyfin_mcp.application.pending import PendingRequestSlot
from jellyfin_mcp.application.schemas import AuthenticateUserInput, SetTokenInput, parse_input
from jellyfin_mcp.application.session_store import SessionStore
from jellyfin_mcp.crosscutting.logging import CorrelationContext, log_error
from jellyfin_mcp.domain.entities import PendingRequest, Session
from jellyfin_mcp.domain.errors import (
    AccountDisabled, AuthenticationFailed, AuthenticationRequired, ConnectivityFailure,
    InvalidArguments, InvalidCredentials, NotFound, RetryFailure, UnknownOperation,
    UpstreamError, UserIdUnavailable,
)
from jellyfin_mcp.domain.ports import MediaLibrary

logger = logging.getLogger(__name__)

AUTHENTICATE_USER = 'authenticate_user'
SET_TOKEN = 'set_token'
CLEAR_SESSION = 'clear_session'
SESSION_STATUS = 'session_status'

AUTH_ACTIONS = (AUTHENTICATE_USER, SET_TOKEN)
SESSION_ACTIONS = AUTH_ACTIONS + (CLEAR_SESSION, SESSION_STATUS)

SIGN_IN_ERRORS = (
    InvalidArguments, InvalidCredentials, AccountDisabled,
    UserIdUnavailable, AuthenticationFailed, ConnectivityFailure,
)

ClientFactory = Callable[[Session], MediaLibrary]


class Status(str, Enum):
    COMPLETED = 'completed'
    AWAITING_AUTH = 'awaiting_auth'
    FAILED = 'failed'


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one dispatched invocation."""

    tool: str
    status: Status
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'tool': self.tool, 'status': self.status.value}
        if self.payload is not None:
            data['result'] = self.payload
        if self.error is not None:
            data['error'] = self.error
            data['error_type'] = self.error_type
        return data


def error_type_of(error: Exception) -> str:
    if isinstance(error, InvalidCredentials):
        return 'invalid_credentials'
    if isinstance(error, AccountDisabled):
        return 'account_disabled'
    if isinstance(error, UserIdUnavailable):
        return 'user_id_unavailable'
    if isinstance(error, AuthenticationFailed):
        return 'authentication_failed'
    if isinstance(error, NotFound):
        return 'not_found'
    if isinstance(error, UpstreamError):
        return 'upstream_error'
    if isinstance(error, ConnectivityFailure):
        return 'connectivity_failure'
    if isinstance(error, InvalidArguments):
        return 'invalid_arguments'
    if isinstance(error, UnknownOperation):
        return 'unknown_operation'
    return 'error'


class Dispatcher:
    """Decides whether to execute, park or resume each invocation.

    The dispatcher is the only reader and writer of the session store and
    the pending slot it is given.
    """

    def __init__(self,
                 store: SessionStore,
                 slot: PendingRequestSlot,
                 resolver: CredentialResolver,
                 authenticator: Authenticator,
                 client_factory: ClientFactory,
                 operations: Optional[Mapping[str, Operation]] = None):
        self.store = store
        self.slot = slot
        self.resolver = resolver
        self.authenticator = authenticator
        self.client_factory = client_factory
        self.operations = dict(OPERATIONS if operations is None else operations)

    def call(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Dispatch one invocation by name."""
        arguments = arguments or {}
        with CorrelationContext(request_id=uuid.uuid4().hex[:12], tool_name=tool_name):
            if tool_name in AUTH_ACTIONS:
                return self._action_result(tool_name, *self._attempt_sign_in(tool_name, arguments))
            if tool_name == CLEAR_SESSION:
                return ToolResult(tool_name, Status.COMPLETED, self.clear_session())
            if tool_name == SESSION_STATUS:
                return ToolResult(tool_name, Status.COMPLETED, self.session_status())
            return self._call_operation(tool_name, arguments)

    def _call_operation(self, tool_name: str, arguments: Dict[str, Any]) -> ToolResult:
        operation = self.operations.get(tool_name)
        if operation is None:
            error = UnknownOperation(f"Unknown tool: {tool_name}")
            return ToolResult(tool_name, Status.FAILED, error=str(error), error_type=error_type_of(error))

        try:
            data = parse_input(operation.input_model, arguments)
        except InvalidArguments as e:
            return ToolResult(tool_name, Status.FAILED, error=str(e), error_type=error_type_of(e))

        resolution = self._resolve()
        if isinstance(resolution, NeedsAuth):
            self.slot.store(tool_name, arguments)
            logger.info(f"{tool_name} is waiting for authentication")
            return ToolResult(
                tool_name,
                Status.AWAITING_AUTH,
                payload={'auth_required': True, 'actions': list(AUTH_ACTIONS)},
                error=resolution.message,
                error_type='authentication_required',
            )

        try:
            payload = self._execute(operation, data, resolution.session)
        except (UpstreamError, ConnectivityFailure) as e:
            log_error(logger, f"{tool_name} failed", e)
            return ToolResult(tool_name, Status.FAILED, error=str(e), error_type=error_type_of(e))
        return ToolResult(tool_name, Status.COMPLETED, payload)

    def _resolve(self) -> Resolution:
        resolution = self.resolver.resolve(current=self.store.get())
        if isinstance(resolution, Authenticated) and resolution.fresh:
            self.store.set(resolution.session)
            logger.info(f"Session established from {resolution.source}")
        return resolution

    def _execute(self, operation: Operation, data: Any, session: Session) -> Dict[str, Any]:
        return operation.handler(self.client_factory(session), data)

    def require_session(self) -> Session:
        """Resolve a session for work that cannot be parked, such as resource reads."""
        resolution = self._resolve()
        if isinstance(resolution, NeedsAuth):
            raise AuthenticationRequired(resolution.message)
        return resolution.session

    def library(self) -> MediaLibrary:
        return self.client_factory(self.require_session())

    def authenticate_user(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Sign in with a username and password, then replay any parked invocation."""
        payload, _ = self._attempt_sign_in(AUTHENTICATE_USER, arguments)
        return payload

    def set_token(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Adopt a pre-issued token, then replay any parked invocation."""
        payload, _ = self._attempt_sign_in(SET_TOKEN, arguments)
        return payload

    def _attempt_sign_in(self, action: str,
                         arguments: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[Exception]]:
        """Run one explicit sign-in; the caught error is returned for classification."""
        try:
            session = self._sign_in(action, arguments)
        except SIGN_IN_ERRORS as e:
            logger.warning(f"{action} failed: {e}")
            return {'ok': False, 'error': str(e)}, e
        return self._complete_sign_in(session), None

    def _sign_in(self, action: str, arguments: Dict[str, Any]) -> Session:
        if action == AUTHENTICATE_USER:
            try:
                data = parse_input(AuthenticateUserInput, arguments)
            except InvalidArguments as e:
                raise InvalidArguments("Username and password are required") from e
            return self.authenticator.authenticate_by_name(data.username, data.password)

        try:
            token = parse_input(SetTokenInput, arguments)
        except InvalidArguments as e:
            raise InvalidArguments("Access token is required") from e
        return self.authenticator.session_from_token(token.access_token, token.user_id or None)

    def _complete_sign_in(self, session: Session) -> Dict[str, Any]:
        self.store.set(session)
        result: Dict[str, Any] = {
            'ok': True,
            'user': {'id': session.user_id, 'name': session.user_name or 'Unknown'},
            'access_token': session.access_token,
        }

        pending = self.slot.take()
        if pending is None:
            return result

        logger.info(f"Retrying original request: {pending.tool_name}")
        try:
            result['retried_request'] = {
                'tool': pending.tool_name,
                'result': self._replay(pending, session),
            }
        except Exception as e:
            failure = RetryFailure(pending.tool_name, e)
            log_error(logger, str(failure), e, tool=pending.tool_name)
            result['retry_error'] = str(e)
        return result

    def _replay(self, pending: PendingRequest, session: Session) -> Dict[str, Any]:
        # Runs with the new session directly, so a replay can never park itself again.
        operation = self.operations.get(pending.tool_name)
        if operation is None:
            raise UnknownOperation(f"Cannot retry unknown tool: {pending.tool_name}")
        data = parse_input(operation.input_model, pending.arguments)
        return self._execute(operation, data, session)

    def clear_session(self) -> Dict[str, Any]:
        self.store.clear()
        self.slot.clear()
        logger.info("Session cleared")
        return {'ok': True}

    def session_status(self) -> Dict[str, Any]:
        status = self.store.status()
        status['pending_request'] = self.slot.occupied
        return status

    @staticmethod
    def _action_result(tool_name: str, payload: Dict[str, Any],
                       error: Optional[Exception]) -> ToolResult:
        if error is None:
            return ToolResult(tool_name, Status.COMPLETED, payload)
        return ToolResult(tool_name, Status.FAILED, payload,
                          error=payload.get('error'), error_type=error_type_of(error))
