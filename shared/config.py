"""Shared configuration helpers used by the engine, the API and the CLI."""
from __future__ import annotations

import os
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean env flag."""
    val = os.environ.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def _env_int(name: str, default: int | None = None) -> int | None:
    """Read integer env value; blank or malformed values fall back to default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Project root: resolve relative to this file's location
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Content tables (dialogue lines, date locations, story arcs) - absolute to avoid CWD dependency
CONTENT_DIR = os.environ.get("HEARTLINE_CONTENT_DIR", str(PROJECT_ROOT / "data" / "content"))
# Optional directory whose YAML files are deep-merged over CONTENT_DIR (per-id patches)
CONTENT_OVERRIDE_DIR = os.environ.get("HEARTLINE_CONTENT_OVERRIDE_DIR", "").strip() or None

LOG_LEVEL = os.environ.get("HEARTLINE_LOG_LEVEL", "INFO").strip().upper() or "INFO"
