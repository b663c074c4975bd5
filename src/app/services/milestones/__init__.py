"""Milestone indexing and progress classification."""

from .indexer import (
    DuplicateBoxError,
    derive_milestones,
    group_scans_by_box,
    index_box,
    index_boxes,
    sort_scans,
)
from .progress import (
    ORDERED_MILESTONES,
    PROGRESS_LABELS,
    InvalidTimestampError,
    classify,
    last_scan_with_conditions,
    to_millis,
)
from .reclassify import apply_coordinate_corrections, recalculate_boxes, reclassify_scans

__all__ = [
    "ORDERED_MILESTONES",
    "PROGRESS_LABELS",
    "DuplicateBoxError",
    "InvalidTimestampError",
    "apply_coordinate_corrections",
    "classify",
    "derive_milestones",
    "group_scans_by_box",
    "index_box",
    "index_boxes",
    "last_scan_with_conditions",
    "recalculate_boxes",
    "reclassify_scans",
    "sort_scans",
    "to_millis",
]
