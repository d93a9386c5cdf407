"""Engine config: content locations, memory retention, randomness and API settings.

Every value has an env override (HEARTLINE_*). By default memory logs are
unbounded and rolls are nondeterministic.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from shared.config import (
    CONTENT_DIR,
    CONTENT_OVERRIDE_DIR,
    LOG_LEVEL,
    _env_flag,
    _env_int,
)

logger = logging.getLogger(__name__)


def resolve_content_dir(content_dir: str | Path | None = None) -> Path:
    """Return the content table directory (explicit arg > env > repo default)."""
    return Path(content_dir or CONTENT_DIR).expanduser().resolve()


def resolve_content_override_dir() -> Path | None:
    if not CONTENT_OVERRIDE_DIR:
        return None
    return Path(CONTENT_OVERRIDE_DIR).expanduser().resolve()


# Memory retention: 0 keeps every memory forever.
# A positive cap evicts the most faded memory (oldest first on ties) once exceeded.
MAX_MEMORIES_PER_CHARACTER = max(0, _env_int("HEARTLINE_MAX_MEMORIES_PER_CHARACTER", 0) or 0)

# Seed for the engine's random source. Unset = fresh entropy per engine.
RNG_SEED = _env_int("HEARTLINE_RNG_SEED", None)

# Starting wallet balance for sessions created through the API/CLI
DEFAULT_FUNDS = _env_int("HEARTLINE_DEFAULT_FUNDS", 500) or 0

# Strict content loading: raise instead of skipping invalid YAML rows
STRICT_CONTENT = _env_flag("HEARTLINE_STRICT_CONTENT", default=False)

LOG_LEVEL_NAME = LOG_LEVEL
CORS_ALLOW_ORIGINS_RAW = os.environ.get("HEARTLINE_CORS_ALLOW_ORIGINS", "")


def log_level() -> int:
    """Resolve HEARTLINE_LOG_LEVEL to a logging level (INFO on unknown names)."""
    level = logging.getLevelName(LOG_LEVEL_NAME)
    return level if isinstance(level, int) else logging.INFO


def _log_resolved_config() -> None:
    logger.debug(
        "Engine config: content_dir=%s override=%s max_memories=%s seed=%s",
        resolve_content_dir(),
        resolve_content_override_dir(),
        MAX_MEMORIES_PER_CHARACTER or "unbounded",
        RNG_SEED,
    )


_log_resolved_config()
