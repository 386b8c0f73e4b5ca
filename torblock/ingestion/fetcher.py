"""
Exit-address listing fetcher.

One plain GET per cycle (redirects followed), no retry. A failed cycle waits
for the next scheduler tick and the caller keeps its old list.

Error mapping:
  - network errors, timeouts and non-2xx responses → FetchError
  - a body that does not parse → FormatError (raised by the parser)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from torblock.errors import FetchError
from torblock.ingestion.parser import parse_exit_addresses
from torblock.models import RelayList

logger = logging.getLogger(__name__)

# Redirect hops followed before the fetch fails
MAX_REDIRECTS = 10


async def fetch_relay_list(
    url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RelayList:
    """
    Download the listing from url and parse it into a new RelayList.

    `transport` is passed straight to httpx, mainly so tests can use
    httpx.MockTransport instead of the network.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise FetchError(url, exc) from exc

    logger.info("Retrieved Tor node list from %s", url)

    records = parse_exit_addresses(response.text)
    logger.info("Parsed %d exit relays from %s", len(records), url)
    return RelayList(records=tuple(records), fetched_at=datetime.now(timezone.utc))
