"""Geo verification and milestone derivation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.boxes import MilestoneRecordModel
from ...schemas.insights import (
    ClassifyRequest,
    ClassifyResponse,
    DeriveMilestonesRequest,
    DeriveMilestonesResponse,
    DestinationCheckRequest,
    DestinationCheckResponse,
)
from ...services.geospatial import haversine_meters, is_at_destination
from ...services.milestones import InvalidTimestampError, classify, derive_milestones

router = APIRouter(tags=["milestones"])


@router.post("/geo/destination-check", response_model=DestinationCheckResponse, status_code=status.HTTP_200_OK)
def check_destination(payload: DestinationCheckRequest) -> DestinationCheckResponse:
    destination = payload.destination.to_domain()
    location = payload.scan.to_domain()
    return DestinationCheckResponse(
        distance_meters=haversine_meters(destination, location),
        at_destination=is_at_destination(destination, location),
    )


@router.post("/milestones/derive", response_model=DeriveMilestonesResponse, status_code=status.HTTP_200_OK)
def derive_box_milestones(
    payload: DeriveMilestonesRequest,
    cutoff: int | None = Query(default=None, description="Classify progress as of this epoch-ms instant"),
) -> DeriveMilestonesResponse:
    record = derive_milestones(scan.to_domain() for scan in payload.scans)
    try:
        progress = classify(record, cutoff)
    except InvalidTimestampError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeriveMilestonesResponse(
        status_changes=MilestoneRecordModel.from_domain(record),
        progress=progress,
    )


@router.post("/milestones/classify", response_model=ClassifyResponse, status_code=status.HTTP_200_OK)
def classify_milestones(payload: ClassifyRequest) -> ClassifyResponse:
    record = payload.status_changes.to_domain() if payload.status_changes else None
    try:
        progress = classify(record, payload.cutoff)
    except InvalidTimestampError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ClassifyResponse(progress=progress)
