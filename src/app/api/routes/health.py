"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/settings", status_code=status.HTTP_200_OK)
def health_settings() -> dict:
    """Expose the tunables that shape milestone and insight results."""
    return {
        "destinationToleranceMeters": settings.destination_tolerance_meters,
        "timelineWindowDays": settings.timeline_window_days,
        "indexMaxWorkers": settings.index_max_workers,
        "reportFormats": list(settings.report_formats),
    }
