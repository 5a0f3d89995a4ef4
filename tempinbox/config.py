"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
OUTPUT_DIR = PROJECT_ROOT / "output"

# Remote mail API (fixed scheme/host for every request)
API_SCHEME = os.getenv("TEMPINBOX_API_SCHEME", "https").lower()
API_HOST = os.getenv("TEMPINBOX_API_HOST", "www.1secmail.com")
API_PATH = os.getenv("TEMPINBOX_API_PATH", "/api/v1/")
REQUEST_TIMEOUT = float(os.getenv("TEMPINBOX_REQUEST_TIMEOUT", "15"))

# Polling
POLL_INTERVAL_MS = int(os.getenv("TEMPINBOX_POLL_INTERVAL_MS", "5000"))

# Local message identifiers
ID_LENGTH_BYTES = int(os.getenv("TEMPINBOX_ID_BYTES", "8"))
ID_ENCODING = os.getenv("TEMPINBOX_ID_ENCODING", "hex").lower()

# Logging
LOG_DIR = OUTPUT_DIR / "logs"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"
# Empty LOG_FILE disables the JSONL file handler
LOG_FILE = os.getenv("LOG_FILE", str(LOG_DIR / "tempinbox.jsonl"))


def api_base_url() -> str:
    """Return scheme://host/path with a trailing slash."""
    path = "/" + API_PATH.strip("/") + "/" if API_PATH.strip("/") else "/"
    return f"{API_SCHEME}://{API_HOST}{path}"
