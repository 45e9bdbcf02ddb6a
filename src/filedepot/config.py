"""Bootstrap configuration read from the environment."""

import os
from pathlib import Path


BASE_DIR = Path(os.environ.get("FILEDEPOT_BASE_DIR", Path.cwd())).resolve()

CONFIG_PATH = Path(os.environ.get("FILEDEPOT_CONFIG", BASE_DIR / "data" / "config.json"))

HOST = os.environ.get("FILEDEPOT_HOST", "0.0.0.0")

PORT = int(os.environ.get("FILEDEPOT_PORT", "8000"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
