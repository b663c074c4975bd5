"""Delivery funnel insights over box populations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Collection, Dict, List, Optional, Sequence

from ...config import settings
from ...models.domain import Box
from ..milestones.progress import PROGRESS_LABELS, classify, now_millis, to_millis

logger = logging.getLogger(__name__)

ONE_DAY_MS = 86_400_000


def repartition(boxes: Sequence[Box], cutoff: Any = None) -> Dict[str, int]:
    """Count boxes per progress label as of ``cutoff``."""

    limit = now_millis() if cutoff is None else to_millis(cutoff)
    counts: Dict[str, int] = {label: 0 for label in PROGRESS_LABELS}
    for box in boxes:
        counts[classify(box.milestones, limit)] += 1
    counts["total"] = len(boxes)
    return counts


def timeline(boxes: Sequence[Box], *, window_days: Optional[int] = None) -> List[dict]:
    """Daily repartitions reconstructing the funnel over the recent past."""

    timestamps = [
        stamp
        for box in boxes
        if box.milestones is not None
        for stamp in box.milestones.timestamps()
    ]
    if not timestamps:
        return []

    window = settings.timeline_window_days if window_days is None else window_days
    last = max(timestamps) + ONE_DAY_MS
    first = max(min(timestamps), last - window * ONE_DAY_MS) - ONE_DAY_MS

    points: List[dict] = []
    step = first
    while step <= last:
        day = datetime.fromtimestamp(step / 1000, tz=timezone.utc).date().isoformat()
        points.append({"day": day, "repartition": repartition(boxes, step)})
        step += ONE_DAY_MS
    return points


def content(boxes: Sequence[Box]) -> Dict[str, dict]:
    """Per-item quantities, split into all boxes and validated boxes."""

    totals: Dict[str, dict] = {}
    for box in boxes:
        if not box.content:
            continue
        validated = box.progress == "validated" or (
            box.milestones is not None and box.milestones.validated is not None
        )
        for item, count in box.content.items():
            entry = totals.setdefault(item, {"total": 0, "validatedTotal": 0})
            entry["total"] += count
            if validated:
                entry["validatedTotal"] += count
    return totals


def _summarize(boxes: Sequence[Box], now: Any) -> dict:
    return {
        "repartition": repartition(boxes, now),
        "timeline": timeline(boxes),
        "content": content(boxes),
    }


def compute_insights(
    boxes: Optional[Sequence[Box]],
    *,
    grouped: bool = True,
    project_filter: Optional[Collection[str]] = None,
    now: Any = None,
) -> dict:
    """Aggregate repartition, timeline and content for a box population.

    Grouped results are keyed by project in order of first appearance. An
    empty or missing population gives an empty dict.
    """

    if not boxes:
        return {}

    now = now_millis() if now is None else to_millis(now)
    allowed = set(project_filter) if project_filter is not None else None

    if not grouped:
        sample = [box for box in boxes if allowed is None or box.project in allowed]
        return _summarize(sample, now)

    by_project: Dict[str, List[Box]] = {}
    for box in boxes:
        by_project.setdefault(box.project, []).append(box)

    insights: Dict[str, dict] = {}
    for project, sample in by_project.items():
        if allowed is not None and project not in allowed:
            continue
        insights[project] = _summarize(sample, now)

    logger.debug(f"Computed insights for {len(insights)} of {len(by_project)} projects")
    return insights
