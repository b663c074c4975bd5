"""Destination reclassification after coordinate corrections."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence

from ...config import settings
from ...models.domain import (
    Box,
    BoxUpdate,
    Coordinates,
    CoordinateCorrection,
    CoordinateCorrectionResult,
    RecalculationResult,
    Scan,
    ScanUpdate,
)
from ..geospatial import is_at_destination
from .indexer import group_scans_by_box, index_box
from .progress import now_millis

logger = logging.getLogger(__name__)


def reclassify_scans(box: Box, scans: Sequence[Scan]) -> tuple[list[Scan], list[ScanUpdate]]:
    """Recompute ``at_destination`` for every scan against the box destination.

    Returns the refreshed scans and an update for each scan whose flag flipped.
    """

    refreshed: list[Scan] = []
    updates: list[ScanUpdate] = []
    for scan in scans:
        at_destination = is_at_destination(box.destination, scan.location)
        if at_destination != scan.at_destination:
            scan = replace(scan, at_destination=at_destination)
            updates.append(ScanUpdate(scan_id=scan.id, at_destination=at_destination))
        refreshed.append(scan)
    return refreshed, updates


def _recalculate_box(box: Box, scans: Sequence[Scan], now: Any) -> tuple[list[ScanUpdate], BoxUpdate]:
    refreshed, scan_updates = reclassify_scans(box, scans)
    return scan_updates, index_box(box.id, refreshed, now=now)


def recalculate_boxes(
    boxes: Sequence[Box],
    scans: Iterable[Scan],
    *,
    max_workers: Optional[int] = None,
    now: Any = None,
) -> RecalculationResult:
    """Reclassify every scan of the given boxes and re-derive their milestones.

    One independent task per box; results are gathered in box order. A box id
    listed twice raises ``DuplicateBoxError``.
    """

    if not boxes:
        return RecalculationResult()

    scans_by_box = group_scans_by_box((box.id for box in boxes), scans)
    now = now_millis() if now is None else now
    workers = min(max_workers or settings.index_max_workers, len(boxes))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        outcomes = list(executor.map(lambda box: _recalculate_box(box, scans_by_box[box.id], now), boxes))

    result = RecalculationResult()
    for scan_updates, box_update in outcomes:
        result.scan_updates.extend(scan_updates)
        result.box_updates.append(box_update)

    logger.info(
        f"Recalculated {len(boxes)} boxes: {len(result.scan_updates)} scans changed destination status"
    )
    return result


def apply_coordinate_corrections(
    boxes: Iterable[Box],
    corrections: Iterable[CoordinateCorrection],
) -> CoordinateCorrectionResult:
    """Move box destinations to corrected coordinates, matched by recipient code.

    Only boxes whose coordinates actually changed are returned in ``boxes``.
    """

    by_code = {correction.recipient_code: correction for correction in corrections}
    matched = 0
    changed: list[Box] = []
    for box in boxes:
        correction = by_code.get(box.recipient_code) if box.recipient_code else None
        if correction is None:
            continue
        matched += 1
        destination = Coordinates(latitude=correction.latitude, longitude=correction.longitude)
        if destination == box.destination:
            continue
        changed.append(replace(box, destination=destination))

    logger.info(f"Coordinate corrections matched {matched} boxes, {len(changed)} moved")
    return CoordinateCorrectionResult(boxes=changed, matched=matched, updated=len(changed))
