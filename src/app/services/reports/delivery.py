"""Per-box delivery report rows and their export."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ...config import settings
from ...models.domain import Box, Scan
from ...persistence.filesystem import FileStorage
from ..geospatial import haversine_meters
from ..milestones.progress import last_scan_with_conditions

logger = logging.getLogger(__name__)

REPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "project",
    "recipient",
    "district",
    "destinationLatitude",
    "destinationLongitude",
    "lastScanLatitude",
    "lastScanLongitude",
    "lastScanDistanceInMeters",
    "lastScanDate",
    "reachedGps",
    "reachedDate",
    "received",
    "receivedDistanceInMeters",
    "receivedDate",
    "receivedComment",
    "validated",
    "validatedDate",
    "validatedComment",
)


def _scan_date(scan: Optional[Scan]) -> str:
    if scan is None:
        return ""
    stamp = scan.location.timestamp if scan.location.timestamp is not None else scan.time
    return datetime.fromtimestamp(stamp / 1000, tz=timezone.utc).date().isoformat()


def _distance(box: Box, scan: Optional[Scan]) -> int | str:
    if scan is None:
        return ""
    return round(haversine_meters(box.destination, scan.location))


def build_report_row(box: Box, scans: Sequence[Scan]) -> dict:
    last_scan = last_scan_with_conditions(scans)
    last_reached = last_scan_with_conditions(scans, ["at_destination"])
    last_received = last_scan_with_conditions(scans, ["marked_received"])
    last_validated = last_scan_with_conditions(scans, ["at_destination", "marked_received"])

    row: dict = {
        "id": box.id,
        "project": box.project,
        "recipient": box.recipient or "",
        "district": box.district or "",
        "destinationLatitude": box.destination.latitude,
        "destinationLongitude": box.destination.longitude,
        "lastScanLatitude": last_scan.location.latitude if last_scan else "",
        "lastScanLongitude": last_scan.location.longitude if last_scan else "",
        "lastScanDistanceInMeters": _distance(box, last_scan),
        "lastScanDate": _scan_date(last_scan),
        "reachedGps": int(last_reached is not None),
        "reachedDate": _scan_date(last_reached),
        "received": int(last_received is not None),
        "receivedDistanceInMeters": _distance(box, last_received),
        "receivedDate": _scan_date(last_received),
        "receivedComment": (last_received.comment or "") if last_received else "",
        "validated": int(last_validated is not None),
        "validatedDate": _scan_date(last_validated),
        "validatedComment": (last_validated.comment or "") if last_validated else "",
    }
    for item, count in (box.content or {}).items():
        # content items never shadow the fixed columns
        if item not in row:
            row[item] = count
    return row


def build_delivery_report(boxes: Sequence[Box], scans: Iterable[Scan]) -> List[dict]:
    scans_by_box: Dict[str, List[Scan]] = {}
    for scan in scans:
        scans_by_box.setdefault(scan.box_id, []).append(scan)
    return [build_report_row(box, scans_by_box.get(box.id, [])) for box in boxes]


def report_fieldnames(rows: Iterable[dict]) -> List[str]:
    """Fixed columns first, then content items in order of first appearance."""

    names = list(REPORT_COLUMNS)
    seen = set(names)
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                names.append(key)
    return names


def export_delivery_report(
    rows: Sequence[dict],
    *,
    storage: FileStorage | None = None,
    formats: Optional[Sequence[str]] = None,
) -> List[Path]:
    """Write the report into a fresh run directory; returns the written files."""

    storage = storage or FileStorage()
    formats = tuple(formats) if formats is not None else settings.report_formats
    fieldnames = report_fieldnames(rows)
    run_dir = storage.make_run_directory(prefix="report")

    written: List[Path] = []
    for file_format in formats:
        match file_format:
            case "csv":
                path = run_dir / "report.csv"
                storage.write_csv(path, rows, fieldnames)
            case "xlsx":
                path = run_dir / "report.xlsx"
                storage.write_workbook(path, rows, fieldnames, sheet_title="Deliveries")
            case _:
                raise ValueError(f"Unknown report format '{file_format}'.")
        written.append(path)

    storage.write_json(
        run_dir / "summary.json",
        {"rowCount": len(rows), "columns": fieldnames, "files": [path.name for path in written]},
    )
    logger.info(f"Exported delivery report with {len(rows)} rows to {run_dir}")
    return written
