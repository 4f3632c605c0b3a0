"""Ordered credential resolution.

Each strategy inspects one credential source and reports one of three
outcomes: it produced a session, it does not apply, or it applied and failed.
The resolver walks the strategies in their declared order and stops at the
first session. Failures inside a strategy never escape it.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Union

from jellyfin_mcp.application.authenticator import Authenticator
from jellyfin_mcp.domain.entities import Credentials, Session
from jellyfin_mcp.domain.errors import AUTHENTICATION_INSTRUCTION, AuthenticationRequired

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    session: Session
    source: str


@dataclass(frozen=True)
class NotApplicable:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


StrategyOutcome = Union[Resolved, NotApplicable, Failed]


@dataclass(frozen=True)
class Authenticated:
    """Resolution succeeded; ``fresh`` is False when the live session was reused."""

    session: Session
    source: str
    fresh: bool = True


@dataclass(frozen=True)
class NeedsAuth:
    """No credential source produced a session."""

    message: str = AUTHENTICATION_INSTRUCTION
    failures: Sequence[str] = ()

    def to_exception(self) -> AuthenticationRequired:
        return AuthenticationRequired(self.message)


Resolution = Union[Authenticated, NeedsAuth]


class CredentialStrategy(Protocol):
    name: str

    def try_resolve(self, current: Optional[Session]) -> StrategyOutcome:
        """Attempt to produce a session from this strategy's source."""


class ExistingSessionStrategy:
    """Reuse the live, unexpired session. Never touches the network."""

    name = 'existing_session'

    def try_resolve(self, current: Optional[Session]) -> StrategyOutcome:
        if current is None:
            return NotApplicable()
        return Resolved(current, self.name)


class PreIssuedTokenStrategy:
    """Validate an out-of-band token and user id with a probe request."""

    name = 'pre_issued_token'

    def __init__(self, credentials: Credentials, authenticator: Authenticator):
        self._credentials = credentials
        self._authenticator = authenticator

    def try_resolve(self, current: Optional[Session]) -> StrategyOutcome:
        if not self._credentials.has_token:
            return NotApplicable()
        try:
            session = self._authenticator.session_from_token(
                self._credentials.access_token, self._credentials.user_id)
        except Exception as e:
            logger.warning(f"Configured token rejected: {e}")
            return Failed(str(e))
        return Resolved(session, self.name)


class PasswordStrategy:
    """Exchange an out-of-band username and password for a session."""

    name = 'username_password'

    def __init__(self, credentials: Credentials, authenticator: Authenticator):
        self._credentials = credentials
        self._authenticator = authenticator

    def try_resolve(self, current: Optional[Session]) -> StrategyOutcome:
        if not self._credentials.has_password:
            return NotApplicable()
        try:
            session = self._authenticator.authenticate_by_name(
                self._credentials.username, self._credentials.password)
        except Exception as e:
            logger.warning(f"Configured username/password authentication failed: {e}")
            return Failed(str(e))
        logger.info("Authenticated using configured username/password")
        return Resolved(session, self.name)


class CredentialResolver:
    """Walks credential strategies in a fixed order and returns the first session."""

    def __init__(self, strategies: Sequence[CredentialStrategy]):
        self.strategies = list(strategies)

    @classmethod
    def default(cls, credentials: Credentials, authenticator: Authenticator) -> 'CredentialResolver':
        return cls([
            ExistingSessionStrategy(),
            PreIssuedTokenStrategy(credentials, authenticator),
            PasswordStrategy(credentials, authenticator),
        ])

    def resolve(self, current: Optional[Session] = None) -> Resolution:
        failures = []
        for strategy in self.strategies:
            outcome = strategy.try_resolve(current)
            if isinstance(outcome, Resolved):
                logger.debug(f"Credentials resolved by {strategy.name}")
                return Authenticated(
                    session=outcome.session,
                    source=outcome.source,
                    fresh=outcome.session is not current,
                )
            if isinstance(outcome, Failed):
                failures.append(f"{strategy.name}: {outcome.reason}")
        return NeedsAuth(failures=tuple(failures))
