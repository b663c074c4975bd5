"""Domain models for boxes, scans and delivery milestones."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

Milestone = Literal["inProgress", "received", "reachedGps", "reachedAndReceived", "validated"]
Progress = Literal["noScans", "inProgress", "received", "reachedGps", "reachedAndReceived", "validated"]

_SLOT_ATTRIBUTES: dict[str, str] = {
    "inProgress": "in_progress",
    "received": "received",
    "reachedGps": "reached_gps",
    "reachedAndReceived": "reached_and_received",
    "validated": "validated",
}


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class ScanLocation:
    """Position reported by the capture device, with its accuracy radius in meters."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Scan:
    """A single field scan of a box.

    Scans are immutable; ``at_destination`` is the only flag that gets
    recomputed, by building a new instance when destination coordinates change.
    """

    id: str
    box_id: str
    time: int
    at_destination: bool
    marked_received: bool
    location: ScanLocation
    comment: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StatusChange:
    scan: str
    time: int

    def as_dict(self) -> dict:
        return {"scan": self.scan, "time": self.time}


@dataclass(slots=True)
class MilestoneRecord:
    """First qualifying scan for each delivery milestone.

    A slot is written at most once; ``mark`` refuses to overwrite it.
    """

    in_progress: Optional[StatusChange] = None
    received: Optional[StatusChange] = None
    reached_gps: Optional[StatusChange] = None
    reached_and_received: Optional[StatusChange] = None
    validated: Optional[StatusChange] = None

    def get(self, milestone: str) -> Optional[StatusChange]:
        return getattr(self, _SLOT_ATTRIBUTES[milestone])

    def mark(self, milestone: str, scan: Scan) -> bool:
        attribute = _SLOT_ATTRIBUTES[milestone]
        if getattr(self, attribute) is not None:
            return False
        setattr(self, attribute, StatusChange(scan=scan.id, time=scan.time))
        return True

    def is_empty(self) -> bool:
        return all(getattr(self, attribute) is None for attribute in _SLOT_ATTRIBUTES.values())

    def timestamps(self) -> list[int]:
        return [change.time for change in (self.get(name) for name in _SLOT_ATTRIBUTES) if change is not None]

    def as_dict(self) -> dict:
        result: dict[str, Optional[dict]] = {}
        for milestone in _SLOT_ATTRIBUTES:
            change = self.get(milestone)
            result[milestone] = change.as_dict() if change else None
        return result

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["MilestoneRecord"]:
        if data is None:
            return None
        record = cls()
        for milestone, attribute in _SLOT_ATTRIBUTES.items():
            change = data.get(milestone)
            if change:
                setattr(record, attribute, StatusChange(scan=str(change["scan"]), time=change["time"]))
        return record


@dataclass(slots=True)
class Box:
    """Projection of a shipment carried to a remote recipient."""

    id: str
    project: str
    destination: Coordinates
    content: Optional[dict[str, int]] = None
    milestones: Optional[MilestoneRecord] = None
    progress: Progress = "noScans"
    recipient: Optional[str] = None
    district: Optional[str] = None
    recipient_code: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BoxUpdate:
    """Instruction for the persistence layer after a box was (re)indexed."""

    box_id: str
    milestones: MilestoneRecord
    progress: Progress

    def as_dict(self) -> dict:
        return {
            "filter": {"id": self.box_id},
            "set": {"statusChanges": self.milestones.as_dict(), "progress": self.progress},
        }


@dataclass(frozen=True, slots=True)
class ScanUpdate:
    scan_id: str
    at_destination: bool

    def as_dict(self) -> dict:
        return {"filter": {"id": self.scan_id}, "set": {"atDestination": self.at_destination}}


@dataclass(slots=True)
class CoordinateCorrection:
    recipient_code: str
    latitude: float
    longitude: float


@dataclass(slots=True)
class RecalculationResult:
    scan_updates: list[ScanUpdate] = field(default_factory=list)
    box_updates: list[BoxUpdate] = field(default_factory=list)


@dataclass(slots=True)
class CoordinateCorrectionResult:
    boxes: list[Box]
    matched: int
    updated: int
