from typing import Optional


AUTHENTICATION_INSTRUCTION = (
    "Authentication required. Please use the authenticate_user tool to sign in "
    "(or set_token with an access token), then your request will be automatically retried."
)


class AuthenticationRequired(Exception):
    """No credential source produced a session. Recoverable by an explicit sign-in."""

    def __init__(self, message: str = AUTHENTICATION_INSTRUCTION) -> None:
        super().__init__(message)


class InvalidCredentials(Exception):
    """Upstream rejected a username/password pair or a supplied token."""


class AccountDisabled(Exception):
    """Upstream refused sign-in because of the account state."""


class UserIdUnavailable(Exception):
    """A token was supplied but no user id could be determined for it."""


class AuthenticationFailed(Exception):
    """Credential exchange failed for a reason other than rejected credentials."""


class ConnectivityFailure(Exception):
    """Media server unreachable: refused connection, DNS failure or timeout."""

    def __init__(self, message: str, endpoint: Optional[str] = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class UpstreamError(Exception):
    """Media server answered with a non-success HTTP status."""

    def __init__(self, status_code: int, path: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Jellyfin returned HTTP {status_code} for {path}")
        self.status_code = status_code
        self.path = path


class NotFound(UpstreamError):
    """Requested resource was not found."""


class InvalidArguments(Exception):
    """Operation input failed validation."""


class UnknownOperation(Exception):
    """No operation is registered under the requested name."""


class RetryFailure(Exception):
    """A pending operation failed when replayed after a successful sign-in."""

    def __init__(self, tool_name: str, cause: Exception) -> None:
        super().__init__(f"Retry of {tool_name} failed: {cause}")
        self.tool_name = tool_name
        self.cause = cause
