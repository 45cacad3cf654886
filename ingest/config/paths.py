"""Path and logging configuration."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).parent.parent

# Empty string disables stage caching
CACHE_DIR = os.getenv("CACHE_DIR", "")
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "output")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
