"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_M = 6_371_000
DEFAULT_SITE_RADIUS_M = 200

DESCRIPTOR_LENGTH = 128
DEFAULT_MATCH_THRESHOLD = 0.55
DEFAULT_DUPLICATE_FACE_THRESHOLD = 0.5

LOCATION_TIMEOUT_SECONDS = 10.0

SPOOF_MAX_SPEED_KMH = 150.0
SPOOF_MIN_ACCURACY_M = 100.0
SPOOF_PERFECT_ACCURACY_M = 3.0

EARLY_CHECKOUT_BLOCK_HOURS = 1.0
EARLY_CHECKOUT_CONFIRM_HOURS = 4.0

DEFAULT_LIST_LIMIT = 200
