"""Insight, milestone and report API schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .boxes import BoxModel, CoordinatesModel, MilestoneRecordModel, ProgressLabel, ScanLocationModel, ScanModel


class DestinationCheckRequest(BaseModel):
    destination: CoordinatesModel
    scan: ScanLocationModel


class DestinationCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    distance_meters: float = Field(..., alias="distanceMeters")
    at_destination: bool = Field(..., alias="atDestination")


class DeriveMilestonesRequest(BaseModel):
    scans: List[ScanModel] = Field(default_factory=list)


class DeriveMilestonesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_changes: MilestoneRecordModel = Field(..., alias="statusChanges")
    progress: ProgressLabel


class ClassifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_changes: Optional[MilestoneRecordModel] = Field(None, alias="statusChanges")
    cutoff: Optional[int] = Field(None, description="Observation instant, epoch milliseconds.")


class ClassifyResponse(BaseModel):
    progress: ProgressLabel


class InsightsRequest(BaseModel):
    boxes: Optional[List[BoxModel]] = None
    grouped: bool = True
    only: Optional[List[str]] = Field(default=None, description="Restrict insights to these projects.")


class ReportRequest(BaseModel):
    boxes: List[BoxModel]
    scans: List[ScanModel] = Field(default_factory=list)
    persist: bool = Field(default=False, description="Write the report to the outputs directory.")
    formats: Optional[List[str]] = Field(default=None, description="Export formats (csv, xlsx).")


class ReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rows: List[Dict[str, object]]
    run_id: Optional[str] = Field(None, alias="runId")
    files: List[str] = Field(default_factory=list)
