"""
Fixed vocabulary of the trust pipeline: flag codes, point deductions,
software token tiers and image-shape reference tables.

Thresholds that are policy (distances, ages, region) live in app.config.
"""

EARTH_RADIUS_M = 6_371_000

TRUST_SCORE_MAX = 100
TRUST_SCORE_MIN = 0

# --- Flag codes & deductions ---
NO_EXIF = "NO_EXIF"
NO_GPS = "NO_GPS"
OUTSIDE_INDIA = "OUTSIDE_INDIA"
FAR_FROM_FACTORY = "FAR_FROM_FACTORY"
CLUSTER_SPREAD = "CLUSTER_SPREAD"
LOW_GPS_ACCURACY = "LOW_GPS_ACCURACY"
NO_TIMESTAMP = "NO_TIMESTAMP"
FUTURE_TIMESTAMP = "FUTURE_TIMESTAMP"
STALE_TIMESTAMP = "STALE_TIMESTAMP"
TIMESTAMP_INCONSISTENCY = "TIMESTAMP_INCONSISTENCY"
GPS_CAMERA_MISMATCH = "GPS_CAMERA_MISMATCH"
SUSPICIOUS_SOFTWARE = "SUSPICIOUS_SOFTWARE"
NO_DEVICE_INFO = "NO_DEVICE_INFO"
CLIENT_EXIF_MISMATCH = "CLIENT_EXIF_MISMATCH"

DEDUCTIONS = {
    NO_EXIF: 100,
    NO_GPS: 40,
    OUTSIDE_INDIA: 30,
    FAR_FROM_FACTORY: 15,
    CLUSTER_SPREAD: 0,  # reported, not scored
    LOW_GPS_ACCURACY: 5,
    NO_TIMESTAMP: 20,
    FUTURE_TIMESTAMP: 25,
    STALE_TIMESTAMP: 10,
    TIMESTAMP_INCONSISTENCY: 10,
    GPS_CAMERA_MISMATCH: 10,
    SUSPICIOUS_SOFTWARE: 20,
    NO_DEVICE_INFO: 10,
    CLIENT_EXIF_MISMATCH: 15,
}

NO_EXIF_MESSAGE = "No EXIF data found. Use a Timestamp Camera app to capture photos."

# --- Software provenance (lowercase substrings) ---
# Location mocking, root and app-cloning tools
HIGH_RISK_SOFTWARE = (
    "fake gps",
    "mock location",
    "gps joystick",
    "fly gps",
    "fake location",
    "location spoofer",
    "gps emulator",
    "mock gps",
    "location changer",
    "xposed",
    "magisk",
    "lucky patcher",
    "app cloner",
    "parallel space",
    "dual space",
)

# General-purpose image and metadata editors
MEDIUM_RISK_SOFTWARE = (
    "photoshop",
    "gimp",
    "exiftool",
)

# --- Image shape ---
STANDARD_ASPECT_RATIOS = (
    4 / 3,   # most phone cameras
    3 / 4,
    16 / 9,
    9 / 16,
    3 / 2,   # DSLR
    2 / 3,
    1.0,
)

SCREENSHOT_DIMENSIONS = frozenset({
    (1080, 1920), (1920, 1080),
    (1440, 2560), (2560, 1440),
    (1080, 2340), (2340, 1080),
    (1080, 2400), (2400, 1080),
    (1125, 2436), (2436, 1125),
    (1170, 2532), (2532, 1170),
    (1284, 2778), (2778, 1284),
    (750, 1334), (1334, 750),
    (828, 1792), (1792, 828),
})
