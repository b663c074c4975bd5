"""Pydantic models for scans, milestone records and box projections."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import (
    Box,
    Coordinates,
    CoordinateCorrection,
    MilestoneRecord,
    Scan,
    ScanLocation,
)

ProgressLabel = Literal["noScans", "inProgress", "received", "reachedGps", "reachedAndReceived", "validated"]


class CoordinatesModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class ScanLocationModel(CoordinatesModel):
    accuracy: Optional[float] = Field(default=None, description="Reported accuracy radius in meters.")
    timestamp: Optional[int] = Field(default=None, description="Device fix time, epoch milliseconds.")

    def to_domain(self) -> ScanLocation:
        return ScanLocation(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=self.timestamp,
        )


class ScanModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    box_id: str = Field(..., alias="boxId")
    time: int = Field(..., description="Scan time, epoch milliseconds.")
    at_destination: bool = Field(False, alias="atDestination")
    marked_received: bool = Field(False, alias="markedReceived")
    location: ScanLocationModel
    comment: Optional[str] = None

    def to_domain(self) -> Scan:
        return Scan(
            id=self.id,
            box_id=self.box_id,
            time=self.time,
            at_destination=self.at_destination,
            marked_received=self.marked_received,
            location=self.location.to_domain(),
            comment=self.comment,
        )


class StatusChangeModel(BaseModel):
    scan: str
    time: int


class MilestoneRecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    in_progress: Optional[StatusChangeModel] = Field(None, alias="inProgress")
    received: Optional[StatusChangeModel] = None
    reached_gps: Optional[StatusChangeModel] = Field(None, alias="reachedGps")
    reached_and_received: Optional[StatusChangeModel] = Field(None, alias="reachedAndReceived")
    validated: Optional[StatusChangeModel] = None

    def to_domain(self) -> MilestoneRecord:
        return MilestoneRecord.from_dict(self.model_dump(by_alias=True))

    @classmethod
    def from_domain(cls, record: MilestoneRecord) -> "MilestoneRecordModel":
        return cls.model_validate(record.as_dict())


class BoxModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    project: str
    destination: CoordinatesModel
    content: Optional[Dict[str, int]] = None
    status_changes: Optional[MilestoneRecordModel] = Field(None, alias="statusChanges")
    progress: ProgressLabel = "noScans"
    recipient: Optional[str] = None
    district: Optional[str] = None
    recipient_code: Optional[str] = Field(None, alias="recipientCode")

    def to_domain(self) -> Box:
        return Box(
            id=self.id,
            project=self.project,
            destination=self.destination.to_domain(),
            content=dict(self.content) if self.content is not None else None,
            milestones=self.status_changes.to_domain() if self.status_changes else None,
            progress=self.progress,
            recipient=self.recipient,
            district=self.district,
            recipient_code=self.recipient_code,
        )


class BoxUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    box_id: str = Field(..., alias="boxId")
    status_changes: MilestoneRecordModel = Field(..., alias="statusChanges")
    progress: ProgressLabel


class ScanUpdateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scan_id: str = Field(..., alias="scanId")
    at_destination: bool = Field(..., alias="atDestination")


class CoordinateCorrectionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipient_code: str = Field(..., alias="recipientCode", min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> CoordinateCorrection:
        return CoordinateCorrection(
            recipient_code=self.recipient_code,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class BoxesWithScansRequest(BaseModel):
    boxes: List[BoxModel]
    scans: List[ScanModel] = Field(default_factory=list)


class CoordinateCorrectionRequest(BoxesWithScansRequest):
    coords: List[CoordinateCorrectionModel]


class RecalculationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scan_updates: List[ScanUpdateModel] = Field(..., alias="scanUpdates")
    box_updates: List[BoxUpdateModel] = Field(..., alias="boxUpdates")
    recalculated: int
    reindexed: int


class CoordinateCorrectionResponse(RecalculationResponse):
    matched: int
    updated: int
