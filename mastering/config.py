"""
Environment-driven settings. Read once at import time.
Chain constants and the 60 s preview length are not configurable.
"""
import os

ENV = os.environ.get("ENV", "development").lower()
DEV = ENV in ("development", "dev", "test")

LOG_LEVEL = os.environ.get("MASTERING_LOG_LEVEL", "INFO").upper()

HOST = os.environ.get("MASTERING_HOST", "0.0.0.0")
PORT = int(os.environ.get("MASTERING_PORT", "8000"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("MASTERING_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

MAX_UPLOAD_MB = float(os.environ.get("MASTERING_MAX_UPLOAD_MB", "200"))
MAX_UPLOAD_BYTES = int(MAX_UPLOAD_MB * 1024 * 1024)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
