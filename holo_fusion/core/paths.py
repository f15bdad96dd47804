"""Centralized path constants for holo-fusion."""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Configuration
CONFIG_PATH = PROJECT_ROOT / "config.txt"

# Logging
_LOGS_ENV = os.environ.get("HOLO_FUSION_LOG_DIR")
LOGS_DIR = Path(_LOGS_ENV).expanduser() if _LOGS_ENV else PROJECT_ROOT / "logs"
MASTER_LOG_FILE = LOGS_DIR / "holo_fusion.log"


__all__ = [
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "LOGS_DIR",
    "MASTER_LOG_FILE",
]
