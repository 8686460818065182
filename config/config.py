"""Settings shared by every environment module."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def env_base_offsets() -> dict:
    """PASS_ID_BASE_OFFSETS="cargo=1038,landside=46" overrides the legacy watermarks."""
    raw = os.getenv("PASS_ID_BASE_OFFSETS", "").strip()
    offsets = {}
    for part in raw.split(","):
        if "=" in part:
            key, value = part.split("=", 1)
            offsets[key.strip().lower()] = int(value.strip())
    return offsets


def db_config(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "pass_registry"),
    }


UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
LOG_FILE = os.getenv("LOG_FILE") or None
PASS_ID_MAX_RETRIES = int(os.getenv("PASS_ID_MAX_RETRIES", "3"))
MAX_IMPORT_ROWS = int(os.getenv("MAX_IMPORT_ROWS", "5000"))
PASS_ID_BASE_OFFSETS = env_base_offsets()

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
