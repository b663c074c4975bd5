"""Progress classification from milestone records."""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from ...models.domain import MilestoneRecord, Progress, Scan

ORDERED_MILESTONES: tuple[str, ...] = (
    "inProgress",
    "received",
    "reachedGps",
    "reachedAndReceived",
    "validated",
)
PROGRESS_LABELS: tuple[str, ...] = ("noScans", *ORDERED_MILESTONES)

_SCAN_FLAGS = {"at_destination", "marked_received"}


class InvalidTimestampError(ValueError):
    """Raised when a cutoff or timestamp cannot be interpreted as epoch milliseconds."""


def now_millis() -> int:
    return int(time.time() * 1000)


def to_millis(value: Any) -> int | float:
    """Normalise an epoch-milliseconds number or a datetime to epoch milliseconds."""

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTimestampError(f"Expected epoch milliseconds or datetime, got {value!r}")
    if math.isnan(value):
        raise InvalidTimestampError("Timestamp must not be NaN")
    return value


def classify(record: Optional[MilestoneRecord], cutoff: Any = None) -> Progress:
    """Return the highest-ranked milestone reached at or before ``cutoff``.

    Rank comes from the fixed milestone order, not from the timestamps: the
    indexer only sets a higher milestone once its prerequisites hold.
    """

    limit = now_millis() if cutoff is None else to_millis(cutoff)
    if record is None:
        return "noScans"

    progress: Progress = "noScans"
    for milestone in ORDERED_MILESTONES:
        change = record.get(milestone)
        if change is not None and change.time <= limit:
            progress = milestone  # type: ignore[assignment]
    return progress


def last_scan_with_conditions(
    scans: Optional[Iterable[Scan]],
    conditions: Sequence[str] = (),
) -> Optional[Scan]:
    """Latest scan whose flags named in ``conditions`` are all set."""

    unknown = set(conditions) - _SCAN_FLAGS
    if unknown:
        raise ValueError(f"Unknown scan conditions: {', '.join(sorted(unknown))}")

    last: Optional[Scan] = None
    for scan in scans or ():
        if not all(getattr(scan, condition) for condition in conditions):
            continue
        if last is None or scan.time > last.time:
            last = scan
    return last
