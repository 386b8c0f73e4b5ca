"""
Membership check of a caller address against the current relay list.

Matching is a linear, case-insensitive exact comparison with each record's
exit address. No canonicalisation is done, so "FE80::1" matches "fe80::1"
but "fe80:0::1" does not.

Fail-open: if no list is available, every address is allowed through.
"""

import logging
from typing import Awaitable, Callable, Optional

from torblock.models import RelayList, RelayRecord
from torblock.storage.relay_list_store import RelayListStore

logger = logging.getLogger(__name__)


def find_exit_record(relay_list: RelayList, address: str) -> Optional[RelayRecord]:
    """Return the first record whose exit address equals address, ignoring case."""
    needle = address.casefold()
    for record in relay_list.records:
        if record.exit_address.ip_address.casefold() == needle:
            return record
    return None


class MembershipFilter:
    """
    Answers "is this address a Tor exit?" from the store's current snapshot.

    The first lookup on a store that has never been loaded runs `refresh`
    once, inline. `refresh` is expected to be RefreshScheduler.refresh, which
    shares the scheduler's lock: while a fetch is already in flight the call
    is skipped and the request proceeds as "not blocked" instead of waiting.
    """

    def __init__(self, store: RelayListStore, refresh: Callable[[], Awaitable[dict]]):
        self._store = store
        self._refresh = refresh

    async def match(self, address: Optional[str]) -> Optional[RelayRecord]:
        relay_list = self._store.current
        if relay_list is None:
            relay_list = await self._load_once()

        if relay_list is None or not address:
            return None
        return find_exit_record(relay_list, address)

    async def is_blocked(self, address: Optional[str]) -> bool:
        return await self.match(address) is not None

    async def _load_once(self) -> Optional[RelayList]:
        result = await self._refresh()
        if result["status"] == "failed":
            logger.error("Tor node list unavailable, allowing traffic: %s", result["error"])
        elif result["status"] == "skipped":
            logger.debug("Tor node list still loading, allowing traffic")
        return self._store.current
