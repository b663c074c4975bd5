"""Route group exports."""

from . import boxes, health, insights, milestones

__all__ = ["boxes", "health", "insights", "milestones"]
