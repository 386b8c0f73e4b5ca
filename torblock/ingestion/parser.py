"""
Parser for the Tor Project's exit-address listing.

The document is a loose sequence of 4-line blocks:

    ExitNode 0011BD2485AD45D984EC4159C88FC066E5E3300E
    Published 2023-01-01 00:00:00
    LastStatus 2023-01-01 01:00:00
    ExitAddress 162.247.74.201 2023-01-01 02:00:00

Framing is positional (every 4th line starts a new record), not driven by the
ExitNode tag. Bad timestamps are tolerated and zeroed; a tagged line with too
few fields is fatal to the whole document.
"""

import logging
import re
from datetime import datetime, timezone
from typing import List

from torblock.errors import FormatError
from torblock.models import ZERO_TIME, ExitAddress, RelayRecord

logger = logging.getLogger(__name__)

LINES_PER_RECORD = 4
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
# strptime alone would also take single-digit fields like "2023-1-1 1:2:3"
_TIMESTAMP_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")

# Minimum number of space-separated tokens each tag needs, tag included
_MIN_TOKENS = {
    "ExitNode": 2,
    "Published": 3,
    "LastStatus": 3,
    "ExitAddress": 4,
}


def parse_timestamp(date_part: str, time_part: str) -> datetime:
    """Parse 'YYYY-MM-DD' + 'HH:MM:SS' as UTC, or ZERO_TIME if it does not parse."""
    value = f"{date_part} {time_part}"
    if not _TIMESTAMP_SHAPE.fullmatch(value):
        return ZERO_TIME
    try:
        parsed = datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        return ZERO_TIME
    return parsed.replace(tzinfo=timezone.utc)


def _split_lines(text: str) -> List[str]:
    """Split on LF only, dropping one trailing CR per line and the empty tail."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _flush(records: List[RelayRecord], fields: dict, address: dict) -> None:
    if fields.get("exit_node_id"):
        records.append(RelayRecord(exit_address=ExitAddress(**address), **fields))


def parse_exit_addresses(text: str) -> List[RelayRecord]:
    """
    Convert the raw listing into RelayRecords, in document order.

    Raises FormatError if a known tag is followed by fewer fields than it needs.
    Unknown tags and blank lines are skipped.
    """
    records: List[RelayRecord] = []
    fields: dict = {}
    address: dict = {}

    for i, line in enumerate(_split_lines(text)):
        if i % LINES_PER_RECORD == 0:
            _flush(records, fields, address)
            fields, address = {}, {}

        parts = line.split(" ")
        tag = parts[0]
        needed = _MIN_TOKENS.get(tag)
        if needed is None:
            continue
        if len(parts) < needed:
            raise FormatError(
                i + 1, f"{tag} expects {needed - 1} fields, got {len(parts) - 1}"
            )

        if tag == "ExitNode":
            fields["exit_node_id"] = parts[1]
        elif tag == "Published":
            fields["published_at"] = parse_timestamp(parts[1], parts[2])
        elif tag == "LastStatus":
            fields["last_status_at"] = parse_timestamp(parts[1], parts[2])
        elif tag == "ExitAddress":
            address["ip_address"] = parts[1]
            address["observed_at"] = parse_timestamp(parts[2], parts[3])

    # Same identifier check as the periodic boundary, so an empty document
    # (or one ending on a boundary) does not yield a blank record.
    _flush(records, fields, address)

    logger.debug("Parsed %d relay records", len(records))
    return records
