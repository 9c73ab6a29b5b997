"""Shared configuration constants used by the API, the CLI and the engine."""
from __future__ import annotations

import os
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean env flag."""
    val = os.environ.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


# Project root: resolve relative to this file's location
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Logging level for API and CLI entry points (DEBUG shows every normalizer repair)
LOG_LEVEL = os.environ.get("SAFESTORY_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Dev mode relaxes CORS ("*" allowed) and exposes /docs
DEV_MODE = _env_flag("SAFESTORY_DEV_MODE", default=True)

CORS_ALLOW_ORIGINS_RAW = os.environ.get("SAFESTORY_CORS_ALLOW_ORIGINS", "")

# Sample stories (raw generation output) shipped with the repo
SAMPLES_DIR = os.environ.get("SAFESTORY_SAMPLES_DIR", str(_PROJECT_ROOT / "data" / "samples"))
