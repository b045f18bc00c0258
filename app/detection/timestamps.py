"""
Capture-time checks: presence, future, staleness, internal consistency and the
GPS-UTC vs device-clock cross-check.

EXIF capture times are device wall-clock values. They are converted to UTC
with OffsetTimeOriginal when the camera wrote one, otherwise with the policy's
regional default offset. A naive reference time is read in that same default
offset, so callers working purely in local wall-clock get wall-clock arithmetic.
"""

import re
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from app.config import Settings, settings
from app.detection import constants as c
from app.detection.flags import build_flag
from app.schemas.evidence import (
    ExtractedMetadata,
    Severity,
    TimestampDetail,
    ValidationContext,
    ValidationFlag,
)

logger = logging.getLogger(__name__)

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):(\d{2})$")


def parse_utc_offset(text: Optional[str]) -> Optional[timedelta]:
    """'+05:30' → timedelta(hours=5, minutes=30). None when absent or malformed."""
    if not text:
        return None
    match = _OFFSET_RE.match(text.strip())
    if not match:
        return None
    sign, hours, minutes = match.groups()
    if int(hours) > 23 or int(minutes) > 59:
        return None
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    return -offset if sign == "-" else offset


def to_utc(wall_clock: datetime, offset: timedelta) -> datetime:
    """Attach `offset` to a naive wall-clock time and express it in UTC."""
    if wall_clock.tzinfo is not None:
        return wall_clock.astimezone(timezone.utc)
    return wall_clock.replace(tzinfo=timezone(offset)).astimezone(timezone.utc)


def parse_gps_timestamp(date_stamp: str, time_stamp: str) -> Optional[datetime]:
    """
    GPSDateStamp ("2025:01:15" or "2025-01-15") + GPSTimeStamp ("10:30:00" or
    "10,30,0") → aware UTC datetime, or None if either part is unusable.
    """
    try:
        date_parts = date_stamp.strip().replace(":", "-").split("-")
        time_parts = time_stamp.strip().replace(",", ":").split(":")
        if len(date_parts) != 3 or len(time_parts) < 3:
            return None
        year, month, day = (int(p) for p in date_parts)
        hour, minute = int(time_parts[0]), int(time_parts[1])
        second = int(float(time_parts[2]))
        return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        return None


def default_offset(policy: Settings = settings) -> timedelta:
    offset = parse_utc_offset(policy.default_utc_offset)
    return offset if offset is not None else timedelta(0)


def capture_instant(metadata: ExtractedMetadata, policy: Settings = settings) -> Optional[datetime]:
    if metadata.date_time_original is None:
        return None
    offset = parse_utc_offset(metadata.offset_time_original)
    if offset is None:
        offset = default_offset(policy)
    return to_utc(metadata.date_time_original, offset)


def reference_instant(context: ValidationContext, policy: Settings = settings) -> datetime:
    reference = context.reference_time
    if reference is None:
        return datetime.now(timezone.utc)
    return to_utc(reference, default_offset(policy))


def validate_timestamp(
    metadata: ExtractedMetadata,
    has_timestamp: bool,
    context: ValidationContext,
    policy: Settings = settings,
) -> Tuple[TimestampDetail, List[ValidationFlag]]:
    flags: List[ValidationFlag] = []

    if not has_timestamp:
        flags.append(build_flag(c.NO_TIMESTAMP, Severity.ERROR, "No DateTimeOriginal in EXIF data"))
        return TimestampDetail(), flags

    captured = capture_instant(metadata, policy)
    now = reference_instant(context, policy)
    detail = {}

    # Future (with clock-skew allowance)
    ahead_sec = (captured - now).total_seconds()
    detail["is_future"] = ahead_sec > policy.future_tolerance_sec
    if detail["is_future"]:
        flags.append(build_flag(c.FUTURE_TIMESTAMP, Severity.ERROR, "Photo timestamp is in the future"))

    # Staleness
    max_age_hours = context.max_age_hours if context.max_age_hours is not None else policy.default_max_age_hours
    age_hours = (now - captured).total_seconds() / 3600
    detail["age_hours"] = round(age_hours, 2)
    detail["is_stale"] = age_hours > max_age_hours
    if detail["is_stale"]:
        flags.append(build_flag(
            c.STALE_TIMESTAMP, Severity.WARNING,
            f"Photo is {round(age_hours)} hours old (max: {max_age_hours:g} hours)",
        ))

    # DateTime vs DateTimeOriginal, both device wall-clock
    detail["is_internally_consistent"] = True
    if metadata.date_time is not None:
        drift_sec = abs((metadata.date_time - metadata.date_time_original).total_seconds())
        if drift_sec > policy.internal_timestamp_tolerance_sec:
            detail["is_internally_consistent"] = False
            flags.append(build_flag(
                c.TIMESTAMP_INCONSISTENCY, Severity.WARNING,
                f"DateTime and DateTimeOriginal differ by {round(drift_sec)}s",
            ))

    # GPS clock (UTC) vs device clock
    detail["is_gps_camera_consistent"] = True
    if metadata.gps_date_stamp and metadata.gps_time_stamp:
        gps_utc = parse_gps_timestamp(metadata.gps_date_stamp, metadata.gps_time_stamp)
        if gps_utc is None:
            logger.debug(
                f"[TIMESTAMP] Unparseable GPS stamp: {metadata.gps_date_stamp!r} {metadata.gps_time_stamp!r}"
            )
        else:
            skew_sec = abs((gps_utc - captured).total_seconds())
            if skew_sec > policy.gps_camera_tolerance_sec:
                detail["is_gps_camera_consistent"] = False
                flags.append(build_flag(
                    c.GPS_CAMERA_MISMATCH, Severity.WARNING,
                    f"GPS and camera timestamps differ by {round(skew_sec)}s",
                ))

    return TimestampDetail(**detail), flags
