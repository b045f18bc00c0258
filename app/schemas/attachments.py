from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.evidence import GpsAccuracyGrade, SoftwareRiskLevel, ValidationFlag


class DocumentType(str, Enum):
    GEO_TAGGED_PHOTOS = "GEO_TAGGED_PHOTOS"     # factory photos, one per slot
    FIELD_PHOTOS = "FIELD_PHOTOS"               # taken during field verification
    OTHER = "OTHER"                             # any document without geo-evidence


class EvidenceRecord(BaseModel):
    """Stored attachment plus the selected validation fields kept for audit."""

    id: str
    application_id: str
    document_type: DocumentType
    photo_slot: Optional[str] = None
    original_name: str
    mime_type: str
    file_size_bytes: int
    checksum: str

    has_valid_geo_tag: bool = False
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None
    gps_altitude: Optional[float] = None
    gps_accuracy_m: Optional[float] = None
    gps_accuracy_grade: Optional[GpsAccuracyGrade] = None
    is_within_india: Optional[bool] = None

    date_time_original: Optional[datetime] = None
    date_time_digitized: Optional[datetime] = None
    date_time_modified: Optional[datetime] = None
    timestamp_age_hours: Optional[float] = None

    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    software: Optional[str] = None
    software_risk_level: Optional[SoftwareRiskLevel] = None

    distance_from_factory_m: Optional[int] = None
    is_within_proximity: Optional[bool] = None
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    client_exif_distance_m: Optional[int] = None

    trust_score: Optional[int] = None
    flags: List[ValidationFlag] = []

    created_at: datetime
