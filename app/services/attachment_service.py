"""
Attachment ingestion for application documents.

Geo-evidence photo types go through the trust pipeline before they are
stored; an upload without both GPS and a capture timestamp is rejected.
The evidence store is accessed at call-time via the integration module so it
picks up the instance initialized during the FastAPI lifespan.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException

from app.config import settings
from app.detection.geo import grade_gps_accuracy
from app.detection.pipeline import validate_photo
from app.integrations import evidence_store as store_module
from app.integrations.evidence_store import SlotTakenError, UploadLimitError
from app.schemas.attachments import DocumentType, EvidenceRecord
from app.schemas.evidence import FullValidationResult, GeoPoint, ValidationContext, VerificationMode

logger = logging.getLogger(__name__)

GEO_EVIDENCE_TYPES = {DocumentType.GEO_TAGGED_PHOTOS, DocumentType.FIELD_PHOTOS}

MISSING_GEO_TAG_MESSAGE = (
    "Photo must contain both GPS coordinates and a timestamp in EXIF data. "
    "Use a Timestamp Camera app."
)


def _upload_limit_message() -> str:
    return f"Total upload limit exceeded. Maximum: {settings.max_application_upload_mb}MB"


def _slot_taken_message(photo_slot: str) -> str:
    return f'A photo for slot "{photo_slot}" already exists. Delete the existing one first.'


def _get_store():
    store = store_module.store
    if store is None:
        raise HTTPException(status_code=503, detail="Evidence store unavailable.")
    return store


def requires_geo_evidence(document_type: DocumentType, mime_type: str) -> bool:
    return document_type in GEO_EVIDENCE_TYPES and (mime_type or "").startswith("image/")


def sibling_locations(application_id: str) -> List[GeoPoint]:
    """GPS points of photos already stored for this application, oldest first."""
    return [
        GeoPoint(latitude=r.gps_latitude, longitude=r.gps_longitude)
        for r in _get_store().list_for_application(application_id)
        if r.gps_latitude is not None and r.gps_longitude is not None
    ]


def build_context(
    application_id: str,
    document_type: DocumentType,
    factory_location: Optional[GeoPoint] = None,
    client_location: Optional[GeoPoint] = None,
) -> ValidationContext:
    mode = VerificationMode.FIELD if document_type == DocumentType.FIELD_PHOTOS else VerificationMode.STANDARD
    return ValidationContext(
        verification_mode=mode,
        factory_location=factory_location,
        client_location=client_location,
        sibling_locations=tuple(sibling_locations(application_id)),
    )


def evidence_fields(result: FullValidationResult, client_location: Optional[GeoPoint]) -> dict:
    """Selected validation fields persisted next to the stored photo."""
    exif = result.exif
    return {
        "has_valid_geo_tag": result.has_valid_geo_tag,
        "gps_latitude": result.latitude,
        "gps_longitude": result.longitude,
        "gps_altitude": exif.altitude,
        "gps_accuracy_m": exif.gps_accuracy_m,
        "gps_accuracy_grade": grade_gps_accuracy(exif.gps_accuracy_m),
        "is_within_india": result.is_within_india,
        "date_time_original": exif.date_time_original,
        "date_time_digitized": exif.date_time_digitized,
        "date_time_modified": exif.date_time,
        "timestamp_age_hours": result.timestamp.age_hours,
        "camera_make": exif.make,
        "camera_model": exif.model,
        "software": exif.software,
        "software_risk_level": result.anti_spoofing.software_risk_level,
        "distance_from_factory_m": result.geo.distance_from_factory_m,
        "is_within_proximity": result.geo.is_within_proximity,
        "client_latitude": client_location.latitude if client_location else None,
        "client_longitude": client_location.longitude if client_location else None,
        "client_exif_distance_m": result.anti_spoofing.client_exif_distance_m,
        "trust_score": result.trust_score,
        "flags": list(result.flags),
    }


async def ingest_photo(
    application_id: str,
    document_type: DocumentType,
    original_name: str,
    mime_type: str,
    data: bytes,
    photo_slot: Optional[str] = None,
    factory_location: Optional[GeoPoint] = None,
    client_location: Optional[GeoPoint] = None,
) -> EvidenceRecord:
    """
    Validate (for geo-evidence photo types) and store one uploaded document.
    Raises HTTPException(400) when the photo cannot serve as evidence, its
    slot is taken, or the application's upload total would be exceeded.
    """
    store = _get_store()
    fields = {}
    unique_slot = False

    if store.total_bytes(application_id) + len(data) > settings.max_application_upload_bytes:
        raise HTTPException(status_code=400, detail=_upload_limit_message())

    if requires_geo_evidence(document_type, mime_type):
        if document_type == DocumentType.GEO_TAGGED_PHOTOS:
            if not photo_slot:
                raise HTTPException(status_code=400, detail="photoSlot is required for geo-tagged factory photos")
            if store.find_by_slot(application_id, document_type, photo_slot):
                raise HTTPException(status_code=400, detail=_slot_taken_message(photo_slot))
            unique_slot = True

        context = build_context(application_id, document_type, factory_location, client_location)
        result = await validate_photo(data, context)

        if not result.has_gps or not result.has_timestamp:
            logger.info(
                f"[INGEST] Rejected {original_name} for application {application_id}: "
                f"flags={[flag.code for flag in result.flags]}"
            )
            raise HTTPException(status_code=400, detail=result.error or MISSING_GEO_TAG_MESSAGE)

        fields = evidence_fields(result, client_location)

    record = EvidenceRecord(
        id=uuid.uuid4().hex,
        application_id=application_id,
        document_type=document_type,
        photo_slot=photo_slot,
        original_name=original_name,
        mime_type=mime_type,
        file_size_bytes=len(data),
        checksum=hashlib.sha256(data).hexdigest(),
        created_at=datetime.now(timezone.utc),
        **fields,
    )

    # Re-checked atomically: other uploads may have landed while validating.
    try:
        store.insert(record, unique_slot=unique_slot, max_total_bytes=settings.max_application_upload_bytes)
    except SlotTakenError:
        raise HTTPException(status_code=400, detail=_slot_taken_message(photo_slot))
    except UploadLimitError:
        raise HTTPException(status_code=400, detail=_upload_limit_message())

    logger.info(
        f"[INGEST] Stored {document_type.value} {original_name} for application {application_id} "
        f"(trust score: {record.trust_score})"
    )
    return record


def list_evidence(application_id: str) -> List[EvidenceRecord]:
    return _get_store().list_for_application(application_id)


def delete_evidence(application_id: str, record_id: str) -> EvidenceRecord:
    """Remove one stored attachment, freeing its photo slot. 404 if it is not on this application."""
    store = _get_store()
    record = store.get(record_id)
    if record is None or record.application_id != application_id:
        raise HTTPException(status_code=404, detail="Attachment not found")
    store.delete(record_id)
    logger.info(f"[INGEST] Deleted {record.document_type.value} {record.original_name} from application {application_id}")
    return record
