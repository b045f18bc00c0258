from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EARLIEST_REFERENCE = datetime(1, 1, 2)
_LATEST_REFERENCE = datetime(9999, 12, 30)


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class VerificationMode(str, Enum):
    STANDARD = "standard"   # OEM self-submitted factory photos
    FIELD = "field"         # photos taken by a field verifier on site


class SoftwareRiskLevel(str, Enum):
    NONE = "NONE"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class GpsAccuracyGrade(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    POOR = "POOR"
    VERY_POOR = "VERY_POOR"
    UNKNOWN = "UNKNOWN"


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ExtractedMetadata(BaseModel):
    """Normalized EXIF fields. Every field is independently optional."""

    model_config = ConfigDict(frozen=True)

    # GPS
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    gps_accuracy_m: Optional[float] = None
    gps_dop: Optional[float] = None
    gps_date_stamp: Optional[str] = None
    gps_time_stamp: Optional[str] = None

    # Timestamps (device wall-clock, naive)
    date_time_original: Optional[datetime] = None
    date_time_digitized: Optional[datetime] = None
    date_time: Optional[datetime] = None
    offset_time_original: Optional[str] = None

    # Device
    make: Optional[str] = None
    model: Optional[str] = None
    software: Optional[str] = None

    # Image
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    orientation: Optional[int] = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class ValidationContext(BaseModel):
    """Caller-supplied evidence for one validation run."""

    model_config = ConfigDict(frozen=True)

    verification_mode: VerificationMode = VerificationMode.STANDARD
    factory_location: Optional[GeoPoint] = None
    client_location: Optional[GeoPoint] = None
    sibling_locations: Tuple[GeoPoint, ...] = ()
    max_age_hours: Optional[float] = Field(None, gt=0)
    reference_time: Optional[datetime] = None

    @field_validator("reference_time")
    @classmethod
    def reference_time_is_shiftable(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Must survive conversion to UTC from any offset
        if value is not None and not _EARLIEST_REFERENCE <= value.replace(tzinfo=None) <= _LATEST_REFERENCE:
            raise ValueError("reference_time must be between years 1 and 9999 with a day of margin")
        return value


class ValidationFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    severity: Severity
    message: str
    deduction: int = Field(ge=0)


class SoftwareRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: SoftwareRiskLevel
    matched_tokens: Tuple[str, ...] = ()


class GeoDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_within_india: bool = False
    distance_from_factory_m: Optional[int] = None
    is_within_proximity: Optional[bool] = None
    proximity_threshold_m: Optional[int] = None
    cluster_spread_m: Optional[int] = None
    is_cluster_consistent: Optional[bool] = None
    gps_accuracy_grade: GpsAccuracyGrade = GpsAccuracyGrade.UNKNOWN


class TimestampDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_future: bool = False
    is_stale: bool = False
    age_hours: Optional[float] = None
    is_internally_consistent: bool = True
    is_gps_camera_consistent: bool = True


class AntiSpoofingDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    software_risk_level: SoftwareRiskLevel = SoftwareRiskLevel.NONE
    suspicious_software_patterns: Tuple[str, ...] = ()
    has_device_info: bool = False
    has_standard_aspect_ratio: bool = True
    is_screenshot_dimension: bool = False
    client_exif_distance_m: Optional[int] = None
    is_client_exif_consistent: Optional[bool] = None


class FullValidationResult(BaseModel):
    """Sole output of the trust pipeline. `flags` is the ordered audit trail."""

    model_config = ConfigDict(frozen=True)

    extraction_success: bool
    exif: ExtractedMetadata
    geo: GeoDetail
    timestamp: TimestampDetail
    anti_spoofing: AntiSpoofingDetail
    trust_score: int = Field(ge=0, le=100)
    flags: Tuple[ValidationFlag, ...] = ()

    # Simplified view for callers that only need yes/no answers
    has_gps: bool = False
    has_timestamp: bool = False
    has_valid_geo_tag: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geo_timestamp: Optional[datetime] = None
    is_within_india: bool = False

    error: Optional[str] = None
