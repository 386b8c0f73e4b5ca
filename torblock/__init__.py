"""Block HTTP requests coming from Tor exit relays."""

from torblock.config import Settings
from torblock.errors import FetchError, FormatError, TorBlockError
from torblock.ingestion.fetcher import fetch_relay_list
from torblock.ingestion.parser import parse_exit_addresses
from torblock.ingestion.scheduler import RefreshScheduler
from torblock.membership import MembershipFilter, find_exit_record
from torblock.middleware import TorBlock, TorBlockMiddleware, default_bad_host_handler
from torblock.models import ExitAddress, RelayList, RelayRecord

__version__ = "0.1.0"

__all__ = [
    "ExitAddress",
    "FetchError",
    "FormatError",
    "MembershipFilter",
    "RefreshScheduler",
    "RelayList",
    "RelayRecord",
    "Settings",
    "TorBlock",
    "TorBlockError",
    "TorBlockMiddleware",
    "default_bad_host_handler",
    "fetch_relay_list",
    "find_exit_record",
    "parse_exit_addresses",
]
