from datetime import datetime, timezone

import pytest

from src.app.models.domain import MilestoneRecord, Scan, ScanLocation, StatusChange
from src.app.services.milestones import (
    ORDERED_MILESTONES,
    PROGRESS_LABELS,
    InvalidTimestampError,
    classify,
    derive_milestones,
    index_box,
    index_boxes,
    last_scan_with_conditions,
    sort_scans,
    to_millis,
)


def _scan(
    sid: str,
    time: int,
    *,
    at_destination: bool = False,
    marked_received: bool = False,
    box_id: str = "B1",
    comment: str | None = None,
) -> Scan:
    return Scan(
        id=sid,
        box_id=box_id,
        time=time,
        at_destination=at_destination,
        marked_received=marked_received,
        location=ScanLocation(latitude=48.8566, longitude=2.3522, accuracy=10),
        comment=comment,
    )


def _rank(label: str) -> int:
    return PROGRESS_LABELS.index(label)


def test_no_scans_gives_empty_record():
    record = derive_milestones([])
    assert record.is_empty()
    assert classify(record) == "noScans"
    assert index_box("B1", []).progress == "noScans"


def test_received_then_reached_sets_reached_and_received():
    scans = [
        _scan("s1", 100),
        _scan("s2", 200, marked_received=True),
        _scan("s3", 300, at_destination=True),
    ]
    record = derive_milestones(scans)

    assert record.in_progress == StatusChange(scan="s1", time=100)
    assert record.received == StatusChange(scan="s2", time=200)
    assert record.reached_and_received == StatusChange(scan="s3", time=300)
    assert record.reached_gps is None
    assert record.validated is None
    assert classify(record) == "reachedAndReceived"


def test_reached_then_received_sets_reached_and_received():
    scans = [
        _scan("s1", 100, at_destination=True),
        _scan("s2", 200, marked_received=True),
    ]
    record = derive_milestones(scans)

    assert record.reached_gps == StatusChange(scan="s1", time=100)
    assert record.reached_and_received == StatusChange(scan="s2", time=200)
    assert record.received is None
    assert record.in_progress is None


def test_single_scan_with_both_flags_is_validated_only():
    record = derive_milestones([_scan("s1", 500, at_destination=True, marked_received=True)])

    assert record.validated == StatusChange(scan="s1", time=500)
    for milestone in ORDERED_MILESTONES[:-1]:
        assert record.get(milestone) is None
    assert classify(record) == "validated"


def test_in_progress_only_before_any_other_milestone():
    scans = [
        _scan("s1", 100, marked_received=True),
        _scan("s2", 200),
    ]
    record = derive_milestones(scans)
    assert record.received == StatusChange(scan="s1", time=100)
    assert record.in_progress is None


def test_slots_keep_the_first_qualifying_scan():
    scans = [
        _scan("s1", 100),
        _scan("s2", 150),
        _scan("s3", 200, at_destination=True),
        _scan("s4", 250, at_destination=True),
        _scan("s5", 300, at_destination=True, marked_received=True),
        _scan("s6", 400, at_destination=True, marked_received=True),
    ]
    record = derive_milestones(scans)

    assert record.in_progress.scan == "s1"
    assert record.reached_gps.scan == "s3"
    assert record.validated.scan == "s5"
    assert record.reached_and_received is None


def test_scans_are_processed_in_chronological_order():
    scans = [
        _scan("late", 300, at_destination=True, marked_received=True),
        _scan("early", 100),
    ]
    record = derive_milestones(scans)
    assert record.in_progress == StatusChange(scan="early", time=100)
    assert record.validated == StatusChange(scan="late", time=300)


def test_equal_times_keep_ingestion_order():
    received = _scan("rcv", 100, marked_received=True)
    reached = _scan("gps", 100, at_destination=True)

    first = derive_milestones([received, reached])
    assert first.received.scan == "rcv"
    assert first.reached_and_received.scan == "gps"
    assert first.reached_gps is None

    second = derive_milestones([reached, received])
    assert second.reached_gps.scan == "gps"
    assert second.reached_and_received.scan == "rcv"
    assert second.received is None

    assert [scan.id for scan in sort_scans([received, reached])] == ["rcv", "gps"]


def test_derivation_is_deterministic():
    scans = [
        _scan("a", 300, at_destination=True),
        _scan("b", 100),
        _scan("c", 200, marked_received=True),
        _scan("d", 200),
        _scan("e", 400, at_destination=True, marked_received=True),
    ]
    assert derive_milestones(scans) == derive_milestones(list(scans))
    assert index_box("B1", scans, now=1_000) == index_box("B1", scans, now=1_000)


def test_slots_never_clear_as_the_scan_prefix_grows():
    scans = sort_scans(
        [
            _scan("a", 100),
            _scan("b", 200, at_destination=True),
            _scan("c", 300),
            _scan("d", 400, marked_received=True),
            _scan("e", 500, marked_received=True),
            _scan("f", 600, at_destination=True, marked_received=True),
        ]
    )
    full = derive_milestones(scans)
    for end in range(1, len(scans) + 1):
        prefix = derive_milestones(scans[:end])
        for milestone in ORDERED_MILESTONES:
            change = prefix.get(milestone)
            if change is not None:
                assert full.get(milestone) == change


def test_classify_without_record_is_no_scans():
    assert classify(None) == "noScans"
    assert classify(None, 0) == "noScans"


def test_classify_respects_cutoff():
    record = MilestoneRecord(
        in_progress=StatusChange("s1", 100),
        reached_gps=StatusChange("s3", 300),
        validated=StatusChange("s5", 500),
    )
    assert classify(record, 50) == "noScans"
    assert classify(record, 150) == "inProgress"
    assert classify(record, 350) == "reachedGps"
    assert classify(record, 600) == "validated"


def test_classify_uses_rank_not_chronology():
    record = MilestoneRecord(
        received=StatusChange("s2", 500),
        reached_gps=StatusChange("s1", 100),
    )
    assert classify(record, 600) == "reachedGps"


def test_classify_counts_a_milestone_at_time_zero():
    record = MilestoneRecord(in_progress=StatusChange("s1", 0))
    assert classify(record, 0) == "inProgress"


def test_classify_is_monotonic_in_cutoff():
    record = derive_milestones(
        [
            _scan("a", 100),
            _scan("b", 200, marked_received=True),
            _scan("c", 300, at_destination=True),
            _scan("d", 400, at_destination=True, marked_received=True),
        ]
    )
    ranks = [_rank(classify(record, cutoff)) for cutoff in range(0, 600, 25)]
    assert ranks == sorted(ranks)


def test_classify_accepts_datetime_cutoff():
    record = MilestoneRecord(in_progress=StatusChange("s1", 1_000))
    assert classify(record, datetime(1970, 1, 1, 0, 0, 2, tzinfo=timezone.utc)) == "inProgress"
    assert classify(record, datetime(1970, 1, 1, 0, 0, 0)) == "noScans"


@pytest.mark.parametrize("cutoff", ["yesterday", True, float("nan"), object()])
def test_classify_rejects_malformed_cutoff(cutoff):
    record = MilestoneRecord(in_progress=StatusChange("s1", 100))
    with pytest.raises(InvalidTimestampError):
        classify(record, cutoff)


def test_to_millis_passes_numbers_through():
    assert to_millis(1_700_000_000_000) == 1_700_000_000_000
    assert to_millis(datetime(2024, 1, 1, tzinfo=timezone.utc)) == 1_704_067_200_000


def test_index_box_reports_progress():
    update = index_box("B9", [_scan("s1", 100, at_destination=True)], now=1_000)
    assert update.box_id == "B9"
    assert update.progress == "reachedGps"
    assert update.as_dict() == {
        "filter": {"id": "B9"},
        "set": {
            "statusChanges": {
                "inProgress": None,
                "received": None,
                "reachedGps": {"scan": "s1", "time": 100},
                "reachedAndReceived": None,
                "validated": None,
            },
            "progress": "reachedGps",
        },
    }


def test_index_boxes_keeps_input_order():
    jobs = [
        (f"B{i}", [_scan(f"s{i}", 100 + i, box_id=f"B{i}", marked_received=bool(i % 2))])
        for i in range(20)
    ]
    updates = index_boxes(jobs, max_workers=4, now=10_000)

    assert [update.box_id for update in updates] == [f"B{i}" for i in range(20)]
    assert updates[0].progress == "inProgress"
    assert updates[1].progress == "received"


def test_index_boxes_with_no_jobs():
    assert index_boxes([]) == []


def test_record_round_trips_through_wire_form():
    record = derive_milestones([_scan("s1", 100), _scan("s2", 200, at_destination=True)])
    assert MilestoneRecord.from_dict(record.as_dict()) == record
    assert MilestoneRecord.from_dict(None) is None


def test_last_scan_with_conditions():
    early = _scan("early", 100, at_destination=True, comment="first")
    late = _scan("late", 200, at_destination=True)
    tie = _scan("tie", 200, at_destination=True)
    received = _scan("rcv", 300, marked_received=True)

    assert last_scan_with_conditions([]) is None
    assert last_scan_with_conditions(None) is None
    assert last_scan_with_conditions([early, late, tie, received], ["at_destination"]) is late
    assert last_scan_with_conditions([late, early], ["at_destination"]) is late
    assert last_scan_with_conditions([early, received]) is received
    assert last_scan_with_conditions([early, late], ["at_destination", "marked_received"]) is None


def test_last_scan_with_unknown_condition():
    with pytest.raises(ValueError):
        last_scan_with_conditions([], ["teleported"])
