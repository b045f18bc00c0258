"""
Central evidence-policy configuration.

Every threshold the trust pipeline applies lives here as a typed, documented
field. Any field can be overridden at runtime via an environment variable of
the same name (case-insensitive), e.g.:

    PROXIMITY_THRESHOLD_FIELD_M=150 uvicorn app.main:app
    export DEFAULT_UTC_OFFSET=+07:00            # retarget to another region

A `.env` file at the project root is loaded automatically.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # L1: Regional bounding box                                           #
    # ------------------------------------------------------------------ #
    region_name: str = Field("India", description="Label used in flag messages")
    region_min_lat: float = Field(6.5, description="Southern edge (inclusive)")
    region_max_lat: float = Field(35.5, description="Northern edge (inclusive)")
    region_min_lon: float = Field(68.0, description="Western edge (inclusive)")
    region_max_lon: float = Field(97.5, description="Eastern edge (inclusive)")

    # ------------------------------------------------------------------ #
    # L2 / L3: Proximity and cluster                                      #
    # ------------------------------------------------------------------ #
    proximity_threshold_standard_m: int = Field(
        500, description="Max distance from factory for standard verification"
    )
    proximity_threshold_field_m: int = Field(
        200, description="Max distance from factory for field verification"
    )
    max_cluster_spread_m: int = Field(
        1000, description="Max pairwise distance inside one photo batch"
    )
    max_photos_in_cluster: int = Field(
        6, ge=2, description="This photo plus up to N-1 siblings are compared"
    )
    low_gps_accuracy_m: float = Field(
        100.0, description="Horizontal error above this → LOW_GPS_ACCURACY"
    )
    client_exif_mismatch_m: int = Field(
        2000, description="Client-reported vs EXIF GPS distance limit"
    )

    # ------------------------------------------------------------------ #
    # Timestamps                                                          #
    # ------------------------------------------------------------------ #
    future_tolerance_sec: int = Field(
        300, description="Clock-skew allowance before a capture counts as future"
    )
    default_max_age_hours: float = Field(
        720.0, description="30 days — staleness limit when the caller sets none"
    )
    internal_timestamp_tolerance_sec: int = Field(
        60, description="DateTime vs DateTimeOriginal allowance"
    )
    gps_camera_tolerance_sec: int = Field(
        300, description="GPS-UTC vs device clock allowance"
    )
    default_utc_offset: str = Field(
        "+05:30", description="Offset assumed for device wall-clock without OffsetTimeOriginal"
    )

    # ------------------------------------------------------------------ #
    # Image shape                                                         #
    # ------------------------------------------------------------------ #
    aspect_ratio_tolerance: float = Field(
        0.05, description="Allowed deviation from a standard photographic ratio"
    )

    # ------------------------------------------------------------------ #
    # Upload boundary                                                     #
    # ------------------------------------------------------------------ #
    max_photo_upload_mb: int = Field(
        20, description="Max MB for a single evidence photo upload"
    )
    max_document_upload_mb: int = Field(
        10, description="Max MB for a single non-photo document upload"
    )
    max_application_upload_mb: int = Field(
        100, description="Max MB of stored attachments per application"
    )
    pil_max_image_pixels: int = Field(
        100_000_000, description="PIL decompression-bomb guard (pixels)"
    )

    @property
    def max_photo_upload_bytes(self) -> int:
        return self.max_photo_upload_mb * 1024 * 1024

    @property
    def max_document_upload_bytes(self) -> int:
        return self.max_document_upload_mb * 1024 * 1024

    @property
    def max_application_upload_bytes(self) -> int:
        return self.max_application_upload_mb * 1024 * 1024


# Single shared instance — import this everywhere.
settings = Settings()
