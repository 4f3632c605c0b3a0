import copy
from typing import Any, Dict, Optional

from jellyfin_mcp.application.session_store import Clock
from jellyfin_mcp.domain.entities import PendingRequest, utcnow


class PendingRequestSlot:
    """Single-slot holding area for the last operation blocked on authentication.

    Storing overwrites any previous occupant; ``take`` empties the slot.
    """

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._pending: Optional[PendingRequest] = None

    def store(self, tool_name: str, arguments: Dict[str, Any]) -> PendingRequest:
        self._pending = PendingRequest(
            tool_name=tool_name,
            arguments=copy.deepcopy(arguments),
            timestamp=self._clock(),
        )
        return self._pending

    def take(self) -> Optional[PendingRequest]:
        pending, self._pending = self._pending, None
        return pending

    def clear(self) -> None:
        self._pending = None

    @property
    def occupied(self) -> bool:
        return self._pending is not None
