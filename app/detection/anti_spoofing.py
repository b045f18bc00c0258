"""
Anti-spoofing signals that do not depend on where or when the photo was taken:
software provenance, device identity, image shape and the client-reported
location cross-check.
"""

import logging
from typing import List, Optional, Tuple

from app.config import Settings, settings
from app.detection import constants as c
from app.detection.flags import build_flag
from app.detection.geo import haversine_distance
from app.schemas.evidence import (
    AntiSpoofingDetail,
    ExtractedMetadata,
    Severity,
    SoftwareRisk,
    SoftwareRiskLevel,
    ValidationContext,
    ValidationFlag,
)

logger = logging.getLogger(__name__)


def analyze_software_risk(software: Optional[str]) -> SoftwareRisk:
    """
    Case-insensitive substring match of the EXIF Software tag against the
    known spoofing and editing tool names. A HIGH-tier hit dominates.
    """
    if not software:
        return SoftwareRisk(level=SoftwareRiskLevel.NONE)

    lower = software.lower()
    high = [token for token in c.HIGH_RISK_SOFTWARE if token in lower]
    medium = [token for token in c.MEDIUM_RISK_SOFTWARE if token in lower]

    if high:
        level = SoftwareRiskLevel.HIGH
    elif medium:
        level = SoftwareRiskLevel.MEDIUM
    else:
        level = SoftwareRiskLevel.NONE

    return SoftwareRisk(level=level, matched_tokens=tuple(high + medium))


def has_standard_aspect_ratio(width: int, height: int, policy: Settings = settings) -> bool:
    ratio = width / height
    return any(abs(ratio - standard) < policy.aspect_ratio_tolerance for standard in c.STANDARD_ASPECT_RATIOS)


def is_screenshot_dimension(width: int, height: int) -> bool:
    return (width, height) in c.SCREENSHOT_DIMENSIONS


def analyze_spoofing(
    metadata: ExtractedMetadata,
    has_gps: bool,
    context: ValidationContext,
    policy: Settings = settings,
) -> Tuple[AntiSpoofingDetail, List[ValidationFlag]]:
    flags: List[ValidationFlag] = []
    detail = {}

    # Software provenance
    risk = analyze_software_risk(metadata.software)
    detail["software_risk_level"] = risk.level
    detail["suspicious_software_patterns"] = risk.matched_tokens
    if risk.level in (SoftwareRiskLevel.HIGH, SoftwareRiskLevel.MEDIUM):
        severity = Severity.ERROR if risk.level == SoftwareRiskLevel.HIGH else Severity.WARNING
        flags.append(build_flag(
            c.SUSPICIOUS_SOFTWARE, severity,
            f"Suspicious software detected: {metadata.software}",
        ))
        logger.info(f"[SPOOF] {risk.level.value} software risk: {list(risk.matched_tokens)}")

    # Device identity
    detail["has_device_info"] = bool(metadata.make and metadata.model)
    if not metadata.make and not metadata.model:
        flags.append(build_flag(c.NO_DEVICE_INFO, Severity.WARNING, "No camera Make/Model in EXIF data"))

    # Image shape (reported only)
    width, height = metadata.image_width, metadata.image_height
    if width and height:
        detail["has_standard_aspect_ratio"] = has_standard_aspect_ratio(width, height, policy)
        detail["is_screenshot_dimension"] = is_screenshot_dimension(width, height)

    # Client-reported GPS vs EXIF GPS
    client = context.client_location
    if has_gps and client is not None:
        distance = haversine_distance(metadata.latitude, metadata.longitude, client.latitude, client.longitude)
        detail["client_exif_distance_m"] = round(distance)
        detail["is_client_exif_consistent"] = distance <= policy.client_exif_mismatch_m
        if not detail["is_client_exif_consistent"]:
            flags.append(build_flag(
                c.CLIENT_EXIF_MISMATCH, Severity.WARNING,
                f"Client GPS and EXIF GPS differ by {detail['client_exif_distance_m']}m "
                f"(threshold: {policy.client_exif_mismatch_m}m)",
            ))

    return AntiSpoofingDetail(**detail), flags
