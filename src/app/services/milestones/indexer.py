"""Milestone indexing from scan logs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Optional, Sequence

from ...config import settings
from ...models.domain import BoxUpdate, MilestoneRecord, Scan
from .progress import classify, now_millis

logger = logging.getLogger(__name__)


def sort_scans(scans: Iterable[Scan]) -> list[Scan]:
    """Chronological order; scans sharing a timestamp keep their ingestion order."""

    indexed = list(enumerate(scans))
    indexed.sort(key=lambda item: (item[1].time, item[0]))
    return [scan for _, scan in indexed]


def derive_milestones(scans: Iterable[Scan]) -> MilestoneRecord:
    """Build a milestone record from scratch out of a box's full scan set."""

    record = MilestoneRecord()
    for scan in sort_scans(scans):
        if scan.at_destination and scan.marked_received and record.validated is None:
            record.mark("validated", scan)
        elif scan.at_destination:
            if record.received is not None and record.reached_and_received is None:
                record.mark("reachedAndReceived", scan)
            elif record.reached_gps is None:
                record.mark("reachedGps", scan)
        elif scan.marked_received:
            if record.reached_gps is not None and record.reached_and_received is None:
                record.mark("reachedAndReceived", scan)
            elif record.received is None:
                record.mark("received", scan)
        elif record.is_empty():
            record.mark("inProgress", scan)
    return record


def index_box(box_id: str, scans: Iterable[Scan], *, now: Any = None) -> BoxUpdate:
    record = derive_milestones(scans)
    return BoxUpdate(box_id=box_id, milestones=record, progress=classify(record, now))


class DuplicateBoxError(ValueError):
    """Raised when a batch names the same box more than once."""


def group_scans_by_box(box_ids: Iterable[str], scans: Iterable[Scan]) -> dict[str, list[Scan]]:
    """Bucket scans under their box, in box order.

    Scans of boxes outside ``box_ids`` are dropped with a warning; a repeated
    box id raises ``DuplicateBoxError`` instead of merging two scan logs.
    """

    grouped: dict[str, list[Scan]] = {}
    for box_id in box_ids:
        if box_id in grouped:
            raise DuplicateBoxError(f"Box '{box_id}' appears more than once in the batch.")
        grouped[box_id] = []

    orphaned = 0
    for scan in scans:
        bucket = grouped.get(scan.box_id)
        if bucket is None:
            orphaned += 1
            continue
        bucket.append(scan)
    if orphaned:
        logger.warning(f"Ignoring {orphaned} scans that belong to none of the {len(grouped)} boxes")
    return grouped


def index_boxes(
    boxes_with_scans: Iterable[tuple[str, Sequence[Scan]]],
    *,
    max_workers: Optional[int] = None,
    now: Any = None,
) -> list[BoxUpdate]:
    """Index many boxes independently and return their updates in input order."""

    jobs = list(boxes_with_scans)
    if not jobs:
        return []

    # one observation instant for the whole batch
    now = now_millis() if now is None else now
    workers = min(max_workers or settings.index_max_workers, len(jobs))
    logger.info(f"Indexing {len(jobs)} boxes with {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        updates = list(executor.map(lambda job: index_box(job[0], job[1], now=now), jobs))

    logger.debug(f"Indexed {len(updates)} boxes")
    return updates
