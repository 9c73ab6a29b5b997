"""App config: illustration prompt style, CORS allowlist, env overrides.

Story-shape limits are fixed in backend.app.constants and are not env-tunable.
"""
from __future__ import annotations

import logging
import os

from shared.config import CORS_ALLOW_ORIGINS_RAW, DEV_MODE, LOG_LEVEL, SAMPLES_DIR

logger = logging.getLogger(__name__)


# Appended to every slide's illustration prompt before it reaches the illustrator
ILLUSTRATION_STYLE_SUFFIX = os.environ.get(
    "SAFESTORY_ILLUSTRATION_STYLE",
    "Children's book style, warm colors, safe educational tone.",
).strip()


def _parse_cors_allowlist(raw: str) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o and o.strip()]
    if origins:
        return origins
    return [
        "http://localhost",
        "http://127.0.0.1",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]


CORS_ALLOW_ORIGINS = _parse_cors_allowlist(CORS_ALLOW_ORIGINS_RAW)


def illustration_prompt_for(prompt: str) -> str:
    """Prompt sent to the illustration collaborator for one slide."""
    base = (prompt or "").strip().rstrip(".")
    if not ILLUSTRATION_STYLE_SUFFIX:
        return base
    return f"{base}. {ILLUSTRATION_STYLE_SUFFIX}"


def log_resolved_config() -> None:
    """Log resolved runtime config at startup (no secrets)."""
    lines = [
        "SafeStory config:",
        f"  dev_mode={DEV_MODE}",
        f"  log_level={LOG_LEVEL}",
        f"  cors_origins={len(CORS_ALLOW_ORIGINS)}",
        f"  samples_dir={SAMPLES_DIR}",
        f"  illustration_style={'custom' if 'SAFESTORY_ILLUSTRATION_STYLE' in os.environ else 'default'}",
    ]
    logger.info("\n".join(lines))
