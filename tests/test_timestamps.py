"""
Unit tests for app/detection/timestamps.py.

Capture times and the naive REFERENCE_TIME are both IST wall-clock unless a
test sets OffsetTimeOriginal or passes an aware reference.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.detection import constants as c
from app.detection.timestamps import (
    capture_instant,
    parse_gps_timestamp,
    parse_utc_offset,
    validate_timestamp,
)
from app.schemas.evidence import ExtractedMetadata, ValidationContext
from tests.conftest import REFERENCE_TIME

CONTEXT = ValidationContext(reference_time=REFERENCE_TIME)


def _meta(captured: datetime, **kwargs) -> ExtractedMetadata:
    return ExtractedMetadata(date_time_original=captured, **kwargs)


def _codes(flags):
    return [flag.code for flag in flags]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("text, expected", [
    ("+05:30", timedelta(hours=5, minutes=30)),
    ("-03:00", timedelta(hours=-3)),
    ("+00:00", timedelta(0)),
    ("+24:00", None),
    ("+05:60", None),
    ("0530", None),
    ("", None),
    (None, None),
])
def test_parse_utc_offset(text, expected):
    assert parse_utc_offset(text) == expected


@pytest.mark.parametrize("date_stamp, time_stamp", [
    ("2025:01:15", "05:30:00"),
    ("2025-01-15", "05:30:00"),
    ("2025:01:15", "5,30,0"),
    ("2025:01:15", "05:30:00.75"),
])
def test_parse_gps_timestamp_formats(date_stamp, time_stamp):
    assert parse_gps_timestamp(date_stamp, time_stamp) == datetime(2025, 1, 15, 5, 30, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("date_stamp, time_stamp", [
    ("2025:13:15", "05:30:00"),
    ("2025:01", "05:30:00"),
    ("2025:01:15", "05:30"),
    ("yesterday", "noon"),
])
def test_parse_gps_timestamp_rejects_garbage(date_stamp, time_stamp):
    assert parse_gps_timestamp(date_stamp, time_stamp) is None


def test_capture_instant_uses_default_offset():
    captured = capture_instant(_meta(datetime(2025, 1, 15, 11, 0)))
    assert captured == datetime(2025, 1, 15, 5, 30, tzinfo=timezone.utc)


def test_capture_instant_prefers_exif_offset():
    captured = capture_instant(_meta(datetime(2025, 1, 15, 11, 0), offset_time_original="+01:00"))
    assert captured == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# validate_timestamp
# ---------------------------------------------------------------------------


def test_missing_timestamp_uses_defaults():
    detail, flags = validate_timestamp(ExtractedMetadata(make="Apple"), False, CONTEXT)
    assert _codes(flags) == [c.NO_TIMESTAMP]
    assert flags[0].deduction == 20
    assert detail.age_hours is None
    assert detail.is_future is False
    assert detail.is_stale is False
    assert detail.is_internally_consistent is True
    assert detail.is_gps_camera_consistent is True


def test_recent_photo_is_clean():
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME - timedelta(hours=1)), True, CONTEXT)
    assert flags == []
    assert detail.age_hours == 1.0


def test_aware_reference_is_used_as_is():
    # 06:30 UTC is 12:00 IST
    context = ValidationContext(reference_time=datetime(2025, 1, 15, 6, 30, tzinfo=timezone.utc))
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME - timedelta(hours=1)), True, context)
    assert flags == []
    assert detail.age_hours == 1.0


def test_future_within_tolerance_not_flagged():
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME + timedelta(minutes=4)), True, CONTEXT)
    assert flags == []
    assert detail.is_future is False


def test_future_beyond_tolerance_flagged():
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME + timedelta(minutes=10)), True, CONTEXT)
    assert _codes(flags) == [c.FUTURE_TIMESTAMP]
    assert flags[0].deduction == 25
    assert detail.is_future is True
    assert detail.age_hours < 0


def test_stale_photo_flagged_with_default_max_age():
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME - timedelta(days=31)), True, CONTEXT)
    assert _codes(flags) == [c.STALE_TIMESTAMP]
    assert flags[0].deduction == 10
    assert detail.is_stale is True
    assert "744 hours old" in flags[0].message


def test_context_max_age_overrides_policy():
    context = ValidationContext(reference_time=REFERENCE_TIME, max_age_hours=24 * 40)
    detail, flags = validate_timestamp(_meta(REFERENCE_TIME - timedelta(days=31)), True, context)
    assert flags == []
    assert detail.is_stale is False


def test_policy_max_age_applies():
    policy = Settings(default_max_age_hours=24)
    _, flags = validate_timestamp(_meta(REFERENCE_TIME - timedelta(hours=30)), True, CONTEXT, policy)
    assert _codes(flags) == [c.STALE_TIMESTAMP]


def test_internal_drift_flagged():
    captured = REFERENCE_TIME - timedelta(hours=1)
    detail, flags = validate_timestamp(
        _meta(captured, date_time=captured + timedelta(minutes=2)), True, CONTEXT
    )
    assert _codes(flags) == [c.TIMESTAMP_INCONSISTENCY]
    assert detail.is_internally_consistent is False


def test_small_internal_drift_tolerated():
    captured = REFERENCE_TIME - timedelta(hours=1)
    detail, flags = validate_timestamp(
        _meta(captured, date_time=captured + timedelta(seconds=30)), True, CONTEXT
    )
    assert flags == []
    assert detail.is_internally_consistent is True


def test_gps_clock_matching_ist_capture_is_consistent():
    meta = _meta(datetime(2025, 1, 15, 11, 0), gps_date_stamp="2025:01:15", gps_time_stamp="05:30:00")
    detail, flags = validate_timestamp(meta, True, CONTEXT)
    assert flags == []
    assert detail.is_gps_camera_consistent is True


def test_gps_clock_uses_exif_offset():
    meta = _meta(
        datetime(2025, 1, 15, 11, 0),
        offset_time_original="+01:00",
        gps_date_stamp="2025:01:15",
        gps_time_stamp="10:00:00",
    )
    _, flags = validate_timestamp(meta, True, CONTEXT)
    assert flags == []


def test_gps_clock_mismatch_flagged():
    meta = _meta(datetime(2025, 1, 15, 11, 0), gps_date_stamp="2025:01:14", gps_time_stamp="05:30:00")
    detail, flags = validate_timestamp(meta, True, CONTEXT)
    assert _codes(flags) == [c.GPS_CAMERA_MISMATCH]
    assert flags[0].deduction == 10
    assert detail.is_gps_camera_consistent is False


def test_unparseable_gps_stamp_skipped():
    meta = _meta(datetime(2025, 1, 15, 11, 0), gps_date_stamp="n/a", gps_time_stamp="05:30:00")
    detail, flags = validate_timestamp(meta, True, CONTEXT)
    assert flags == []
    assert detail.is_gps_camera_consistent is True


def test_other_region_default_offset():
    policy = Settings(default_utc_offset="+00:00")
    meta = _meta(datetime(2025, 1, 15, 11, 0), gps_date_stamp="2025:01:15", gps_time_stamp="11:00:00")
    context = ValidationContext(reference_time=datetime(2025, 1, 15, 12, 0))
    detail, flags = validate_timestamp(meta, True, context, policy)
    assert flags == []
    assert detail.age_hours == 1.0


@pytest.mark.parametrize("reference", [
    datetime(1, 1, 1),
    datetime(9999, 12, 31, 23, 0),
    datetime(1, 1, 1, 1, tzinfo=timezone.utc),
])
def test_unshiftable_reference_time_rejected(reference):
    with pytest.raises(ValidationError):
        ValidationContext(reference_time=reference)


def test_earliest_shiftable_reference_time_validates():
    context = ValidationContext(reference_time=datetime(1, 1, 2))
    detail, _ = validate_timestamp(_meta(datetime(1, 1, 2)), True, context)
    assert detail.age_hours == 0.0
