"""Insight aggregation services."""

from .aggregator import compute_insights, content, repartition, timeline

__all__ = [
    "compute_insights",
    "content",
    "repartition",
    "timeline",
]
