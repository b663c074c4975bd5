"""Batch reindex and recalculation endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from ...models.domain import BoxUpdate, RecalculationResult
from ...schemas.boxes import (
    BoxesWithScansRequest,
    BoxUpdateModel,
    CoordinateCorrectionRequest,
    CoordinateCorrectionResponse,
    MilestoneRecordModel,
    RecalculationResponse,
    ScanUpdateModel,
)
from ...services.milestones import (
    DuplicateBoxError,
    apply_coordinate_corrections,
    group_scans_by_box,
    index_boxes,
    recalculate_boxes,
)

router = APIRouter(prefix="/boxes", tags=["boxes"])


def _box_update_model(update: BoxUpdate) -> BoxUpdateModel:
    return BoxUpdateModel(
        box_id=update.box_id,
        status_changes=MilestoneRecordModel.from_domain(update.milestones),
        progress=update.progress,
    )


def _recalculation_fields(result: RecalculationResult) -> dict:
    return {
        "scan_updates": [
            ScanUpdateModel(scan_id=item.scan_id, at_destination=item.at_destination)
            for item in result.scan_updates
        ],
        "box_updates": [_box_update_model(item) for item in result.box_updates],
        "recalculated": len(result.scan_updates),
        "reindexed": len(result.box_updates),
    }


@router.post("/reindex", response_model=List[BoxUpdateModel], status_code=status.HTTP_200_OK)
def reindex_boxes(payload: BoxesWithScansRequest) -> List[BoxUpdateModel]:
    try:
        scans_by_box = group_scans_by_box(
            (box.id for box in payload.boxes),
            [scan.to_domain() for scan in payload.scans],
        )
    except DuplicateBoxError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    updates = index_boxes(scans_by_box.items())
    return [_box_update_model(update) for update in updates]


@router.post("/recalculate", response_model=RecalculationResponse, status_code=status.HTTP_200_OK)
def recalculate(payload: BoxesWithScansRequest) -> RecalculationResponse:
    try:
        result = recalculate_boxes(
            [box.to_domain() for box in payload.boxes],
            [scan.to_domain() for scan in payload.scans],
        )
    except DuplicateBoxError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return RecalculationResponse(**_recalculation_fields(result))


@router.post("/coords", response_model=CoordinateCorrectionResponse, status_code=status.HTTP_200_OK)
def correct_coordinates(payload: CoordinateCorrectionRequest) -> CoordinateCorrectionResponse:
    correction = apply_coordinate_corrections(
        [box.to_domain() for box in payload.boxes],
        [item.to_domain() for item in payload.coords],
    )
    result = RecalculationResult()
    if correction.updated:
        try:
            result = recalculate_boxes(correction.boxes, [scan.to_domain() for scan in payload.scans])
        except DuplicateBoxError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CoordinateCorrectionResponse(
        matched=correction.matched,
        updated=correction.updated,
        **_recalculation_fields(result),
    )
