"""
Upload boundary for application attachments.

Evidence photos are checked for extension, MIME type, size and decodable
content before any bytes reach the trust pipeline. Other documents only pass
a MIME allow-list and size limit. Sets PIL.Image.MAX_IMAGE_PIXELS to prevent
decompression-bomb attacks.
"""

import io
import os
import logging
from typing import Optional

from fastapi import HTTPException
from PIL import Image
from pillow_heif import register_heif_opener

from app.config import settings

register_heif_opener()
Image.MAX_IMAGE_PIXELS = settings.pil_max_image_pixels

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.heic', '.heif', '.tiff', '.tif'}
PHOTO_FORMATS = {'jpeg', 'mpo', 'png', 'webp', 'heif', 'tiff'}
DOCUMENT_MIME_TYPES = {
    'application/pdf',
    'image/jpeg',
    'image/png',
    'image/gif',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


def validate_photo_upload(
    filename: str,
    filesize: int,
    content_type: Optional[str] = None,
    data: Optional[bytes] = None,
) -> bool:
    """Check extension, MIME type, size and (when bytes are given) content integrity."""
    ext = os.path.splitext(filename or "")[1].lower()

    if ext not in PHOTO_EXTENSIONS:
        raise HTTPException(status_code=415, detail="Unsupported file format.")

    if content_type and not content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {content_type}")

    if filesize > settings.max_photo_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Photo too large. Max {settings.max_photo_upload_mb}MB allowed."
        )

    if data is not None:
        if not data:
            raise HTTPException(status_code=400, detail="Empty file.")
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
                actual_format = (img.format or "").lower()
            if actual_format not in PHOTO_FORMATS:
                raise ValueError(f"Format mismatch: {actual_format}")
        except Exception as e:
            logger.error(f"Malicious or corrupted photo detected ({filename}): {e}")
            raise HTTPException(status_code=400, detail="Invalid file content or format mismatch.")

    return True


def validate_document_upload(filename: str, filesize: int, content_type: Optional[str]) -> bool:
    """Non-evidence attachments: MIME allow-list and size only, content is stored as-is."""
    if content_type not in DOCUMENT_MIME_TYPES:
        logger.info(f"Rejected document {filename}: content type {content_type}")
        raise HTTPException(status_code=415, detail=f"Unsupported content type: {content_type}")

    if filesize > settings.max_document_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Max {settings.max_document_upload_mb}MB allowed."
        )

    if filesize == 0:
        raise HTTPException(status_code=400, detail="Empty file.")

    return True
