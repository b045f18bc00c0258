"""
Geofencing checks on EXIF coordinates.

  L1 — regional bounding box
  L2 — proximity to the registered factory (only with factory coordinates)
  L3 — spread of a photo batch (only with sibling coordinates)

plus a horizontal-accuracy check on the GPS fix itself.
"""

import math
import logging
from itertools import combinations
from typing import List, Optional, Sequence, Tuple

from app.config import Settings, settings
from app.detection import constants as c
from app.detection.flags import build_flag
from app.schemas.evidence import (
    ExtractedMetadata,
    GeoDetail,
    GeoPoint,
    GpsAccuracyGrade,
    Severity,
    ValidationContext,
    ValidationFlag,
    VerificationMode,
)

logger = logging.getLogger(__name__)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * c.EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def is_within_region(latitude: float, longitude: float, policy: Settings = settings) -> bool:
    return (
        policy.region_min_lat <= latitude <= policy.region_max_lat
        and policy.region_min_lon <= longitude <= policy.region_max_lon
    )


def grade_gps_accuracy(accuracy_m: Optional[float]) -> GpsAccuracyGrade:
    if accuracy_m is None:
        return GpsAccuracyGrade.UNKNOWN
    if accuracy_m <= 5:
        return GpsAccuracyGrade.EXCELLENT
    if accuracy_m <= 15:
        return GpsAccuracyGrade.GOOD
    if accuracy_m <= 50:
        return GpsAccuracyGrade.MODERATE
    if accuracy_m <= 100:
        return GpsAccuracyGrade.POOR
    return GpsAccuracyGrade.VERY_POOR


def proximity_threshold(mode: VerificationMode, policy: Settings = settings) -> int:
    if mode == VerificationMode.FIELD:
        return policy.proximity_threshold_field_m
    return policy.proximity_threshold_standard_m


def max_pairwise_distance(points: Sequence[GeoPoint]) -> float:
    spread = 0.0
    for a, b in combinations(points, 2):
        spread = max(spread, haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude))
    return spread


def validate_geo(
    metadata: ExtractedMetadata,
    has_gps: bool,
    context: ValidationContext,
    policy: Settings = settings,
) -> Tuple[GeoDetail, List[ValidationFlag]]:
    flags: List[ValidationFlag] = []

    if not has_gps:
        flags.append(build_flag(c.NO_GPS, Severity.ERROR, "No valid GPS coordinates in EXIF data"))
        return GeoDetail(gps_accuracy_grade=grade_gps_accuracy(metadata.gps_accuracy_m)), flags

    lat, lon = metadata.latitude, metadata.longitude
    detail = {}

    # L1
    detail["is_within_india"] = is_within_region(lat, lon, policy)
    if not detail["is_within_india"]:
        flags.append(build_flag(
            c.OUTSIDE_INDIA, Severity.ERROR,
            f"GPS coordinates are outside {policy.region_name}",
        ))

    # L2
    factory = context.factory_location
    if factory is not None:
        distance = haversine_distance(lat, lon, factory.latitude, factory.longitude)
        threshold = proximity_threshold(context.verification_mode, policy)
        detail["distance_from_factory_m"] = round(distance)
        detail["proximity_threshold_m"] = round(threshold)
        detail["is_within_proximity"] = distance <= threshold

        if not detail["is_within_proximity"]:
            flags.append(build_flag(
                c.FAR_FROM_FACTORY, Severity.WARNING,
                f"Photo taken {detail['distance_from_factory_m']}m from factory (threshold: {threshold}m)",
            ))

    # L3
    if context.sibling_locations:
        cluster = [GeoPoint(latitude=lat, longitude=lon)]
        cluster += context.sibling_locations[: policy.max_photos_in_cluster - 1]
        spread = max_pairwise_distance(cluster)
        detail["cluster_spread_m"] = round(spread)
        detail["is_cluster_consistent"] = spread <= policy.max_cluster_spread_m

        if not detail["is_cluster_consistent"]:
            flags.append(build_flag(
                c.CLUSTER_SPREAD, Severity.WARNING,
                f"Photo cluster spread {detail['cluster_spread_m']}m exceeds {policy.max_cluster_spread_m}m limit",
            ))

    accuracy = metadata.gps_accuracy_m
    detail["gps_accuracy_grade"] = grade_gps_accuracy(accuracy)
    if accuracy is not None and accuracy > policy.low_gps_accuracy_m:
        flags.append(build_flag(
            c.LOW_GPS_ACCURACY, Severity.WARNING,
            f"GPS accuracy is {accuracy:g}m (poor)",
        ))

    logger.debug(f"[GEO] {detail} -> {[f.code for f in flags]}")
    return GeoDetail(**detail), flags
