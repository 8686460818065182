"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Legacy watermarks: passes below these numbers were issued by hand before the registry existed.
BASE_PASS_IDS = {
    "cargo": 1038,
    "landside": 46,
}

CNIC_PATTERN = r"^\d{5}-\d{7}-\d$"
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

# Spreadsheet row N (0-based, header excluded) is reported as N + 2.
IMPORT_ROW_OFFSET = 2

DEFAULT_SESSION_DAYS = 7
DEFAULT_PASS_ID_MAX_RETRIES = 3
DEFAULT_MAX_IMPORT_ROWS = 5000
DEFAULT_RECENT_LIMIT = 5

ALLOWED_PHOTO_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}
