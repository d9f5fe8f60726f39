"""Verification and reconciliation tuning shared by every environment."""

import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Face matching (Euclidean distance between 128-d descriptors)
MATCH_THRESHOLD = float(os.getenv("MATCH_THRESHOLD", "0.55"))
DUPLICATE_FACE_THRESHOLD = float(os.getenv("DUPLICATE_FACE_THRESHOLD", "0.5"))

# Device location
LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))
SPOOF_MAX_SPEED_KMH = float(os.getenv("SPOOF_MAX_SPEED_KMH", "150"))
SPOOF_MIN_ACCURACY_M = float(os.getenv("SPOOF_MIN_ACCURACY_M", "100"))

# Check-out policy; 0 disables a rule
EARLY_CHECKOUT_BLOCK_HOURS = float(os.getenv("EARLY_CHECKOUT_BLOCK_HOURS", "1"))
EARLY_CHECKOUT_CONFIRM_HOURS = float(os.getenv("EARLY_CHECKOUT_CONFIRM_HOURS", "4"))

# Seeded by AUTO_SEED_DB when no site of that name exists
DEFAULT_SITE = {
    "name": os.getenv("DEFAULT_SITE_NAME", "Main Site"),
    "address": os.getenv("DEFAULT_SITE_ADDRESS") or None,
    "latitude": float(os.getenv("DEFAULT_SITE_LAT", "23.481389")),
    "longitude": float(os.getenv("DEFAULT_SITE_LON", "69.501389")),
    "radius_meters": int(os.getenv("DEFAULT_SITE_RADIUS_M", "572")),
}

# Image-based capture needs the optional face_recognition/OpenCV stack
ENABLE_IMAGE_CAPTURE = bool(int(os.getenv("ENABLE_IMAGE_CAPTURE", "0")))
