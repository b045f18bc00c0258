"""
Shared pytest fixtures for all test modules.

The EXIF decoder (`read_exif_tags`) is patched with hand-built tag dicts in
most tests, in the shape Pillow returns them (IFDRational GPS triples, EXIF
date strings). A few tests write real EXIF into an in-memory JPEG instead.
"""

import io
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from PIL.ExifTags import IFD
from PIL.TiffImagePlugin import IFDRational

from app.integrations import evidence_store as store_module
from app.integrations.evidence_store import InMemoryEvidenceStore
from app.main import app

IST = timezone(timedelta(hours=5, minutes=30))

# Naive wall-clock reference; capture times below are read in the same offset.
REFERENCE_TIME = datetime(2025, 1, 15, 12, 0, 0)

DELHI = (28.6139, 77.2090)
LONDON = (51.5074, -0.1278)


# ---------------------------------------------------------------------------
# Tag builders
# ---------------------------------------------------------------------------


def dms(value: float) -> tuple:
    """Decimal degrees → (deg, min, sec) IFDRational triple, as Pillow decodes GPS."""
    value = abs(value)
    degrees = int(value)
    minutes_full = (value - degrees) * 60
    minutes = int(minutes_full)
    seconds = (minutes_full - minutes) * 60
    return (IFDRational(degrees, 1), IFDRational(minutes, 1), IFDRational(round(seconds * 10000), 10000))


def gps_tags(latitude: float, longitude: float) -> dict:
    return {
        "GPSLatitudeRef": "N" if latitude >= 0 else "S",
        "GPSLatitude": dms(latitude),
        "GPSLongitudeRef": "E" if longitude >= 0 else "W",
        "GPSLongitude": dms(longitude),
    }


def clean_tags(captured: datetime = REFERENCE_TIME - timedelta(hours=1), location=DELHI, **overrides) -> dict:
    """
    Tags of an honest phone photo: GPS inside India, device info, standard
    4:3 sensor, GPS clock agreeing with the IST device clock.
    Overrides set to None remove the tag.
    """
    gps_utc = captured.replace(tzinfo=IST).astimezone(timezone.utc)
    tags = {
        "Make": "Apple",
        "Model": "iPhone 14 Pro",
        "DateTimeOriginal": captured.strftime("%Y:%m:%d %H:%M:%S"),
        "DateTime": captured.strftime("%Y:%m:%d %H:%M:%S"),
        "GPSDateStamp": gps_utc.strftime("%Y:%m:%d"),
        "GPSTimeStamp": (IFDRational(gps_utc.hour, 1), IFDRational(gps_utc.minute, 1), IFDRational(gps_utc.second, 1)),
        "ExifImageWidth": 4032,
        "ExifImageHeight": 3024,
        "Orientation": 1,
    }
    if location is not None:
        tags.update(gps_tags(*location))
    for key, value in overrides.items():
        if value is None:
            tags.pop(key, None)
        else:
            tags[key] = value
    return tags


def without_gps(tags: dict) -> dict:
    return {k: v for k, v in tags.items() if k not in ("GPSLatitude", "GPSLongitude", "GPSLatitudeRef", "GPSLongitudeRef")}


def patch_tags(tags: dict):
    """Patch the Pillow decoder so any bytes decode to `tags`."""
    return patch("app.detection.exif_extractor.read_exif_tags", return_value=tags)


# ---------------------------------------------------------------------------
# Image bytes
# ---------------------------------------------------------------------------


def make_tiny_jpeg() -> bytes:
    """Create a minimal 10×10 JPEG in memory, no EXIF."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=(128, 128, 128)).save(buf, format="JPEG")
    return buf.getvalue()


def make_exif_jpeg(captured: datetime, location=DELHI, make="Apple", model="iPhone 14 Pro") -> bytes:
    """A small JPEG carrying real IFD0, Exif and GPS sub-IFD entries."""
    exif = Image.Exif()
    exif[0x010F] = make
    exif[0x0110] = model
    exif[IFD.Exif] = {
        0x9003: captured.strftime("%Y:%m:%d %H:%M:%S"),  # DateTimeOriginal
        0xA002: 4032,  # ExifImageWidth
        0xA003: 3024,  # ExifImageHeight
    }
    lat, lon = location
    exif[IFD.GPSInfo] = {
        1: "N" if lat >= 0 else "S",
        2: dms(lat),
        3: "E" if lon >= 0 else "W",
        4: dms(lon),
    }
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), color=(90, 120, 60)).save(buf, format="JPEG", exif=exif)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def evidence_db(monkeypatch):
    """Replace evidence_store.store with a fresh in-memory store."""
    db = InMemoryEvidenceStore()
    monkeypatch.setattr(store_module, "store", db)
    return db


@pytest.fixture
def client(evidence_db):
    """FastAPI TestClient; initialize() is patched so it can't replace the fixture store."""
    with patch("app.integrations.evidence_store.initialize"):
        with TestClient(app, raise_server_exceptions=False) as c:
            yield c
