from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from jellyfin_mcp.domain.entities import SESSION_MAX_AGE, Session, utcnow


Clock = Callable[[], datetime]


class SessionStore:
    """Holds the single live session.

    Expiry is evaluated lazily on ``get``: a stale session reads as absent but
    stays in place until it is replaced or cleared.
    """

    def __init__(self, max_age: timedelta = SESSION_MAX_AGE, clock: Clock = utcnow):
        self.max_age = max_age
        self._clock = clock
        self._session: Optional[Session] = None

    def get(self) -> Optional[Session]:
        session = self._session
        if session is None or session.is_expired(self._clock(), self.max_age):
            return None
        return session

    def set(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    def status(self) -> Dict[str, Any]:
        session = self.get()
        if session is None:
            return {'authenticated': False}
        return session.describe()
