"""
EXIF metadata extraction for evidence photos.

Functions:
  - read_exif_tags: Decodes IFD0 + Exif + GPS sub-IFDs into one name-keyed dict.
  - normalize_exif: Total, field-by-field coercion of that dict into ExtractedMetadata.
  - extract_metadata: Bytes in, ExtractedMetadata (or None) out. Never raises.

A malformed file is expected adversarial input, so decoder failures are logged
and reported as "no metadata" rather than propagated.
"""

import io
import math
import re
import logging
import numbers
from datetime import datetime
from typing import Any, Optional

from PIL import Image
from PIL.ExifTags import GPSTAGS, IFD, TAGS
from pillow_heif import register_heif_opener

from app.schemas.evidence import ExtractedMetadata

register_heif_opener()

logger = logging.getLogger(__name__)

_POINTER_TAGS = {"ExifOffset", "GPSInfo", "InteropOffset"}
_UTC_OFFSET_RE = re.compile(r"^[+-]\d{2}:\d{2}$")
_EARLIEST = datetime(1, 1, 2)
_LATEST = datetime(9999, 12, 30)


def read_exif_tags(data: bytes) -> dict:
    """
    Decode every EXIF tag Pillow can see, keyed by tag name.
    GPS tags keep their GPS* names; unknown tag ids stay numeric.
    Raises whatever Pillow raises for unreadable input.
    """
    with Image.open(io.BytesIO(data)) as img:
        exif = img.getexif()
        tags = {}

        for tag_id, value in exif.items():
            name = TAGS.get(tag_id, tag_id)
            if name not in _POINTER_TAGS:
                tags[name] = value

        for tag_id, value in exif.get_ifd(IFD.Exif).items():
            tags[TAGS.get(tag_id, tag_id)] = value

        for tag_id, value in exif.get_ifd(IFD.GPSInfo).items():
            tags[GPSTAGS.get(tag_id, tag_id)] = value

        return tags


def extract_metadata(data: bytes) -> Optional[ExtractedMetadata]:
    if not data:
        logger.info("[EXIF] Empty input, nothing to extract")
        return None

    try:
        tags = read_exif_tags(data)
    except Exception as e:
        logger.warning(f"[EXIF] Extraction failed: {e}")
        return None

    metadata = normalize_exif(tags)
    if metadata is None:
        logger.info(f"[EXIF] No usable tags ({len(tags)} raw tags decoded)")
    return metadata


def normalize_exif(tags: dict) -> Optional[ExtractedMetadata]:
    """Map a raw tag dict onto ExtractedMetadata, dropping tags that do not type-check."""
    if not tags:
        return None

    width = _as_dimension(tags.get("ExifImageWidth")) or _as_dimension(tags.get("ImageWidth"))
    height = (
        _as_dimension(tags.get("ExifImageHeight"))
        or _as_dimension(tags.get("ImageLength"))
        or _as_dimension(tags.get("ImageHeight"))
    )

    modified = _as_datetime(tags.get("DateTime"))
    if modified is None:
        modified = _as_datetime(tags.get("ModifyDate"))

    metadata = ExtractedMetadata(
        latitude=_as_coordinate(tags.get("GPSLatitude"), tags.get("GPSLatitudeRef")),
        longitude=_as_coordinate(tags.get("GPSLongitude"), tags.get("GPSLongitudeRef")),
        altitude=_as_altitude(tags.get("GPSAltitude"), tags.get("GPSAltitudeRef")),
        gps_accuracy_m=_as_float(tags.get("GPSHPositioningError")),
        gps_dop=_as_float(tags.get("GPSDOP")),
        gps_date_stamp=_as_text(tags.get("GPSDateStamp")),
        gps_time_stamp=_as_gps_time(tags.get("GPSTimeStamp")),
        date_time_original=_as_datetime(tags.get("DateTimeOriginal")),
        date_time_digitized=_as_datetime(tags.get("DateTimeDigitized")),
        date_time=modified,
        offset_time_original=_as_utc_offset(tags.get("OffsetTimeOriginal")),
        make=_as_text(tags.get("Make")),
        model=_as_text(tags.get("Model")),
        software=_as_text(tags.get("Software")),
        image_width=width,
        image_height=height,
        orientation=_as_int(tags.get("Orientation")),
    )

    if metadata.is_empty():
        return None
    return metadata


# --- Per-field parsers: each returns a value or None, never raises ---


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return result if math.isfinite(result) else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _as_dimension(value: Any) -> Optional[int]:
    number = _as_int(value)
    return number if number is not None and number > 0 else None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    cleaned = value.replace("\x00", "").strip()
    return cleaned or None


def _as_ref(value: Any) -> str:
    return (_as_text(value) or "").upper()


def _as_coordinate(value: Any, ref: Any) -> Optional[float]:
    """Degrees/minutes/seconds (or a bare decimal) + hemisphere ref → signed decimal."""
    if isinstance(value, (tuple, list)):
        if not 1 <= len(value) <= 3:
            return None
        parts = [_as_float(v) for v in value]
        if any(p is None for p in parts):
            return None
        parts += [0.0] * (3 - len(parts))
        decimal = parts[0] + parts[1] / 60 + parts[2] / 3600
    else:
        decimal = _as_float(value)
        if decimal is None:
            return None

    if _as_ref(ref) in ("S", "W"):
        decimal = -abs(decimal)
    return decimal


def _as_altitude(value: Any, ref: Any) -> Optional[float]:
    altitude = _as_float(value)
    if altitude is None:
        return None
    if isinstance(ref, bytes):
        below_sea_level = ref[:1] == b"\x01"
    else:
        below_sea_level = _as_int(ref) == 1
    return -altitude if below_sea_level else altitude


def _as_gps_time(value: Any) -> Optional[str]:
    if isinstance(value, (tuple, list)) and len(value) == 3:
        parts = [_as_float(v) for v in value]
        if any(p is None for p in parts):
            return None
        hours, minutes, seconds = (int(p) for p in parts)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return _as_text(value)


def _as_datetime(value: Any) -> Optional[datetime]:
    parsed = _parse_datetime(value)
    # Must stay shiftable by any UTC offset
    if parsed is None or not _EARLIEST <= parsed <= _LATEST:
        return None
    return parsed


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)

    text = _as_text(value)
    if not text:
        return None

    # EXIF style "YYYY:MM:DD HH:MM:SS", sometimes with sub-seconds appended
    try:
        return datetime.strptime(text.split(".")[0], "%Y:%m:%d %H:%M:%S")
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None


def _as_utc_offset(value: Any) -> Optional[str]:
    text = _as_text(value)
    if text and _UTC_OFFSET_RE.match(text):
        return text
    return None
