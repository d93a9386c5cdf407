"""Injectable random source and clock shared by every engine component."""
from __future__ import annotations

import hashlib
import random
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def derive_seed(player_id: str, salt: str = "", counter: int = 0) -> int:
    """Derive a stable integer seed from player + salt + counter."""
    base = f"{player_id}:{salt}:{counter}"
    digest = hashlib.sha256(base.encode("utf-8")).hexdigest()[:16]
    return int(digest, 16)


def make_rng(seed: int | None = None, *, player_id: str | None = None) -> random.Random:
    """Seeded Random when a seed is configured (mixed with player id so sessions differ), else fresh entropy."""
    if seed is None:
        return random.Random()
    if player_id:
        return random.Random(derive_seed(player_id, str(seed)))
    return random.Random(seed)
