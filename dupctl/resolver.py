"""Point-in-time snapshot selection.

Timestamps are kept as fixed-width "YYYY-MM-DDTHH:MM" strings so that plain
string order is chronological order. Fields must stay zero-padded.
"""

import re
from datetime import datetime

from dupctl.errors import InvalidInput, NoSnapshotAvailable

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M"

# Day is checked against a 31-day month only; 2019-02-31T00:00 passes.
TIMESTAMP_RE = re.compile(
    r"^-?[0-9]{4,}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])T([01][0-9]|2[0-3]):[0-5][0-9]$"
)

# Sort markers: a snapshot taken at exactly the desired time sorts before it.
BEFORE = 0
AT_OR_AFTER = 1


def now():
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def validate_timestamp(value):
    """Return value unchanged if it is a valid minute-resolution timestamp."""
    if not TIMESTAMP_RE.match(value or ""):
        raise InvalidInput(
            f"Invalid time {value!r}: expected YYYY-MM-DDTHH:MM, e.g. 2018-06-01T13:45"
        )
    return value


def resolve(snapshots, desired_time, storage_id="default"):
    """Pick the latest snapshot whose timestamp is <= desired_time.

    snapshots is a sequence of Snapshot in listing order. Among snapshots
    with identical timestamps the later-listed one wins, because the sort is
    stable on (timestamp, marker) only. Whether that tie-break is deliberate or
    an artifact of the engine's listing order is unverified; it is kept as is.

    Raises NoSnapshotAvailable when desired_time predates every snapshot.
    """
    entries = [(s.timestamp, BEFORE, s) for s in snapshots]
    entries.append((desired_time, AT_OR_AFTER, None))
    entries.sort(key=lambda e: (e[0], e[1]))

    position = next(i for i, e in enumerate(entries) if e[2] is None)
    if position == 0:
        raise NoSnapshotAvailable(desired_time, storage_id)
    return entries[position - 1][2]
