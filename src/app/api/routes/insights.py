"""Insight and delivery report endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.insights import InsightsRequest, ReportRequest, ReportResponse
from ...services.insights import compute_insights
from ...services.reports import build_delivery_report, export_delivery_report

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("", status_code=status.HTTP_200_OK)
def get_insights(payload: InsightsRequest) -> dict:
    boxes = [box.to_domain() for box in payload.boxes] if payload.boxes else None
    return compute_insights(boxes, grouped=payload.grouped, project_filter=payload.only)


@router.post("/report", response_model=ReportResponse, status_code=status.HTTP_200_OK)
def get_delivery_report(payload: ReportRequest) -> ReportResponse:
    rows = build_delivery_report(
        [box.to_domain() for box in payload.boxes],
        [scan.to_domain() for scan in payload.scans],
    )
    if not payload.persist:
        return ReportResponse(rows=rows)

    try:
        files = export_delivery_report(rows, formats=payload.formats)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ReportResponse(
        rows=rows,
        run_id=files[0].parent.name if files else None,
        files=[path.name for path in files],
    )
