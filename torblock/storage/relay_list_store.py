"""
In-memory holder for the current RelayList.

There is exactly one writer action, replace(), and it swaps the whole
reference. Readers take `current` once and work on that snapshot, so they
see either the old list or the new one, never a mix of both.

Nothing is persisted: a restart starts with no list at all.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from torblock.models import RelayList

logger = logging.getLogger(__name__)


class RelayListStore:
    def __init__(self) -> None:
        self._current: Optional[RelayList] = None
        self.last_refresh_status: Optional[str] = None
        self.last_error: Optional[str] = None
        self.last_attempt_at: Optional[datetime] = None

    @property
    def current(self) -> Optional[RelayList]:
        """The latest complete list, or None if nothing has loaded yet."""
        return self._current

    @property
    def loaded(self) -> bool:
        return self._current is not None

    def replace(self, relay_list: RelayList) -> None:
        self._current = relay_list
        self.last_refresh_status = "success"
        self.last_error = None
        self.last_attempt_at = datetime.now(timezone.utc)

    def record_failure(self, error: str) -> None:
        """Note a failed cycle. The current list is left exactly as it was."""
        self.last_refresh_status = "failed"
        self.last_error = error
        self.last_attempt_at = datetime.now(timezone.utc)
