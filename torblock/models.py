"""
Pydantic models: the data contracts for the middleware.

Every model is frozen: a RelayList is built once by a fetch cycle and then
shared read-only by all concurrent requests until the next cycle replaces it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

# Stand-in for absent or unparsable timestamps in the listing
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


# ── Parsed listing ───────────────────────────────────────────────────────────


class ExitAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    ip_address: str = ""
    observed_at: datetime = ZERO_TIME


class RelayRecord(BaseModel):
    """One ExitNode/Published/LastStatus/ExitAddress block of the listing."""

    model_config = ConfigDict(frozen=True)

    exit_node_id: str = ""
    published_at: datetime = ZERO_TIME
    last_status_at: datetime = ZERO_TIME
    exit_address: ExitAddress = ExitAddress()


class RelayList(BaseModel):
    """A complete snapshot of the listing, as of fetched_at."""

    model_config = ConfigDict(frozen=True)

    records: Tuple[RelayRecord, ...] = ()
    fetched_at: datetime = ZERO_TIME


# ── Status reporting ─────────────────────────────────────────────────────────


class ListStatus(str, Enum):
    ok = "ok"
    degraded = "degraded"
    empty = "empty"


class RelayListStatus(BaseModel):
    status: ListStatus
    record_count: int
    fetched_at: Optional[datetime] = None
    last_refresh_status: Optional[str] = None
    last_error: Optional[str] = None
    update_frequency_seconds: int
    check_url: str


class RefreshResponse(BaseModel):
    status: str
    message: str
