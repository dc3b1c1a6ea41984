"""Identifier and timestamp helpers.

Sequential ids are zero-padded decimal strings derived from the highest
numeric id already in a collection. Time-derived ids combine a prefix with
the current epoch milliseconds.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Iterable

ID_WIDTH = 4

_DECIMAL = re.compile(r"\d+", re.ASCII)


def _max_numeric_id(records: Iterable[dict[str, Any]]) -> int:
    """Highest integer id in the records, ignoring non-numeric ids."""
    highest = 0
    for record in records:
        raw = str(record.get("id", "")).strip()
        if _DECIMAL.fullmatch(raw):
            highest = max(highest, int(raw))
    return highest


def next_ids(records: Iterable[dict[str, Any]], count: int) -> list[str]:
    """Allocate ``count`` sequential ids for a batch of new records.

    Args:
        records: Existing records of the target collection.
        count: Number of ids needed.

    Returns:
        Strictly increasing ids starting at ``max(existing) + 1``, each padded
        to at least four digits.
    """
    start = _max_numeric_id(records) + 1
    return [str(start + offset).zfill(ID_WIDTH) for offset in range(count)]


def next_id(records: Iterable[dict[str, Any]]) -> str:
    """Allocate a single sequential id."""
    return next_ids(records, 1)[0]


def time_id(prefix: str, records: Iterable[dict[str, Any]] = ()) -> str:
    """Build a time-derived id such as ``u_1718000000000``.

    The millisecond component is bumped while the id collides with one of
    ``records``.
    """
    taken = {record.get("id") for record in records}
    stamp = int(time.time() * 1000)
    candidate = f"{prefix}_{stamp}"
    while candidate in taken:
        stamp += 1
        candidate = f"{prefix}_{stamp}"
    return candidate


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and ``Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
