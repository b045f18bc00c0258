"""
Evidence routes.

  POST   /evidence/validate                                  — score a photo, store nothing
  POST   /applications/{application_id}/photos               — validate + store an attachment
  GET    /applications/{application_id}/photos               — stored evidence records
  DELETE /applications/{application_id}/photos/{record_id}   — remove one, freeing its slot

The POST routes accept multipart/form-data. Evidence photos pass the photo
upload boundary; other documents only the MIME/size one. Context
coordinates are optional form fields;
`sibling_locations` is a JSON list of {"latitude": .., "longitude": ..}.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile
from pydantic import ValidationError

from app.core.file_validator import validate_document_upload, validate_photo_upload
from app.detection.pipeline import validate_photo
from app.schemas.attachments import DocumentType, EvidenceRecord
from app.schemas.evidence import FullValidationResult, GeoPoint, ValidationContext, VerificationMode
from app.services.attachment_service import delete_evidence, ingest_photo, list_evidence, requires_geo_evidence

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Evidence"])


def _point(latitude: Optional[float], longitude: Optional[float], label: str) -> Optional[GeoPoint]:
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise HTTPException(status_code=400, detail=f"Both {label}_latitude and {label}_longitude are required")
    try:
        return GeoPoint(latitude=latitude, longitude=longitude)
    except ValidationError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} coordinates")


def _siblings(raw: Optional[str]) -> List[GeoPoint]:
    if not raw:
        return []
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("expected a JSON list")
        return [GeoPoint(**item) for item in items]
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"[ROUTE] Invalid sibling_locations: {e}")
        raise HTTPException(status_code=400, detail="Invalid sibling_locations")


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    validate_photo_upload(file.filename or "upload", len(data), file.content_type, data)
    return data


@router.post("/evidence/validate", response_model=FullValidationResult)
async def validate_evidence(
    file: UploadFile = File(...),
    verification_mode: VerificationMode = Form(VerificationMode.STANDARD),
    factory_latitude: Optional[float] = Form(None),
    factory_longitude: Optional[float] = Form(None),
    client_latitude: Optional[float] = Form(None),
    client_longitude: Optional[float] = Form(None),
    max_age_hours: Optional[float] = Form(None),
    sibling_locations: Optional[str] = Form(None),
):
    """Run the trust pipeline on one photo and return the full result."""
    data = await _read_upload(file)

    try:
        context = ValidationContext(
            verification_mode=verification_mode,
            factory_location=_point(factory_latitude, factory_longitude, "factory"),
            client_location=_point(client_latitude, client_longitude, "client"),
            sibling_locations=tuple(_siblings(sibling_locations)),
            max_age_hours=max_age_hours,
        )
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid validation context")

    result = await validate_photo(data, context)
    logger.info(f"[ROUTE] {file.filename}: trust score {result.trust_score}")
    return result


@router.post(
    "/applications/{application_id}/photos",
    response_model=EvidenceRecord,
    status_code=201,
)
async def upload_application_photo(
    application_id: str,
    file: UploadFile = File(...),
    document_type: DocumentType = Form(...),
    photo_slot: Optional[str] = Form(None),
    factory_latitude: Optional[float] = Form(None),
    factory_longitude: Optional[float] = Form(None),
    client_latitude: Optional[float] = Form(None),
    client_longitude: Optional[float] = Form(None),
):
    if requires_geo_evidence(document_type, file.content_type):
        data = await _read_upload(file)
    else:
        data = await file.read()
        validate_document_upload(file.filename or "upload", len(data), file.content_type)

    return await ingest_photo(
        application_id=application_id,
        document_type=document_type,
        original_name=file.filename or "upload",
        mime_type=file.content_type or "application/octet-stream",
        data=data,
        photo_slot=photo_slot,
        factory_location=_point(factory_latitude, factory_longitude, "factory"),
        client_location=_point(client_latitude, client_longitude, "client"),
    )


@router.get("/applications/{application_id}/photos", response_model=List[EvidenceRecord])
async def list_application_photos(application_id: str):
    return list_evidence(application_id)


@router.delete("/applications/{application_id}/photos/{record_id}", status_code=204)
async def delete_application_photo(application_id: str, record_id: str):
    delete_evidence(application_id, record_id)
    return Response(status_code=204)
