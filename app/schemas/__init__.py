from app.schemas.evidence import (
    AntiSpoofingDetail,
    ExtractedMetadata,
    FullValidationResult,
    GeoDetail,
    GeoPoint,
    GpsAccuracyGrade,
    Severity,
    SoftwareRisk,
    SoftwareRiskLevel,
    TimestampDetail,
    ValidationContext,
    ValidationFlag,
    VerificationMode,
)
from app.schemas.attachments import DocumentType, EvidenceRecord

__all__ = [
    "AntiSpoofingDetail",
    "ExtractedMetadata",
    "FullValidationResult",
    "GeoDetail",
    "GeoPoint",
    "GpsAccuracyGrade",
    "Severity",
    "SoftwareRisk",
    "SoftwareRiskLevel",
    "TimestampDetail",
    "ValidationContext",
    "ValidationFlag",
    "VerificationMode",
    "DocumentType",
    "EvidenceRecord",
]
