"""
Top-level trust pipeline — public entry point for photo-evidence validation.

`validate_photo` orchestrates:
  1. EXIF extraction (the only step that runs off the event loop)
  2. Geo-validation      → L1 region, L2 factory proximity, L3 cluster, GPS accuracy
  3. Timestamp checks    → presence, future, staleness, internal, GPS/device clock
  4. Anti-spoofing       → software provenance, device info, shape, client GPS
  5. Trust score         → 100 minus every flag's deduction, clamped to [0, 100]

Each step returns its own detail object and flags; the flags are concatenated
in the order above and form the audit trail of the run.
"""

import asyncio
import logging
from typing import Optional

from app.config import Settings, settings
from app.detection import constants as c
from app.detection.anti_spoofing import analyze_spoofing
from app.detection.exif_extractor import extract_metadata
from app.detection.flags import build_flag, total_deduction
from app.detection.geo import validate_geo
from app.detection.timestamps import validate_timestamp
from app.schemas.evidence import (
    AntiSpoofingDetail,
    ExtractedMetadata,
    FullValidationResult,
    GeoDetail,
    Severity,
    TimestampDetail,
    ValidationContext,
)

logger = logging.getLogger(__name__)


def has_valid_gps(metadata: ExtractedMetadata) -> bool:
    """Both coordinates present and inside the canonical lat/lon ranges."""
    lat, lon = metadata.latitude, metadata.longitude
    if lat is None or lon is None:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def compute_trust_score(flags) -> int:
    score = c.TRUST_SCORE_MAX - total_deduction(flags)
    return max(c.TRUST_SCORE_MIN, min(c.TRUST_SCORE_MAX, score))


def evaluate_metadata(
    metadata: ExtractedMetadata,
    context: ValidationContext,
    policy: Settings = settings,
) -> FullValidationResult:
    """Run every validation layer on already-extracted metadata."""
    has_gps = has_valid_gps(metadata)
    has_timestamp = metadata.date_time_original is not None

    geo, geo_flags = validate_geo(metadata, has_gps, context, policy)
    timestamp, timestamp_flags = validate_timestamp(metadata, has_timestamp, context, policy)
    anti_spoofing, spoofing_flags = analyze_spoofing(metadata, has_gps, context, policy)

    flags = tuple(geo_flags + timestamp_flags + spoofing_flags)

    return FullValidationResult(
        extraction_success=True,
        exif=metadata,
        geo=geo,
        timestamp=timestamp,
        anti_spoofing=anti_spoofing,
        trust_score=compute_trust_score(flags),
        flags=flags,
        has_gps=has_gps,
        has_timestamp=has_timestamp,
        has_valid_geo_tag=has_gps and has_timestamp,
        latitude=metadata.latitude if has_gps else None,
        longitude=metadata.longitude if has_gps else None,
        geo_timestamp=metadata.date_time_original if has_timestamp else None,
        is_within_india=geo.is_within_india,
    )


def build_failed_result(error: str = c.NO_EXIF_MESSAGE) -> FullValidationResult:
    return FullValidationResult(
        extraction_success=False,
        exif=ExtractedMetadata(),
        geo=GeoDetail(),
        timestamp=TimestampDetail(),
        anti_spoofing=AntiSpoofingDetail(),
        trust_score=0,
        flags=(build_flag(c.NO_EXIF, Severity.ERROR, error),),
        error=error,
    )


async def validate_photo(
    data: bytes,
    context: Optional[ValidationContext] = None,
    policy: Optional[Settings] = None,
) -> FullValidationResult:
    """
    Validate one photo's embedded metadata and score it.

    Args:
        data: Raw image bytes. Empty input counts as "no metadata".
        context: Caller-supplied evidence (factory, client GPS, siblings,
            max age, reference time). Defaults to an empty context.
        policy: Thresholds to apply. Defaults to the shared settings.

    Never raises for malformed images; passing something other than bytes or
    a ValidationContext is a caller bug and raises TypeError.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes, not {type(data).__name__}")
    if context is None:
        context = ValidationContext()
    elif not isinstance(context, ValidationContext):
        raise TypeError(f"context must be a ValidationContext, not {type(context).__name__}")
    policy = policy or settings

    metadata = await asyncio.to_thread(extract_metadata, bytes(data))

    if metadata is None:
        logger.info("[PIPELINE] No usable EXIF metadata, returning terminal result")
        return build_failed_result()

    result = evaluate_metadata(metadata, context, policy)
    logger.info(
        f"[PIPELINE] Trust score {result.trust_score} | "
        f"flags={[flag.code for flag in result.flags]}"
    )
    return result
