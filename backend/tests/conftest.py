"""Pytest setup: workspace temp files, a controllable clock and engines over the bundled content."""
from __future__ import annotations

import os
import random
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
CONTENT_DIR = REPO_ROOT / "data" / "content"


def pytest_sessionstart(session) -> None:
    """Redirect temp files to a writable workspace path and pin engine env for tests."""
    tmp_root = Path(__file__).resolve().parent / ".tmp"
    tmp_root.mkdir(parents=True, exist_ok=True)
    for key in ("TMPDIR", "TEMP", "TMP"):
        os.environ[key] = str(tmp_root)
    tempfile.tempdir = str(tmp_root)
    for key in ("HEARTLINE_CONTENT_OVERRIDE_DIR", "HEARTLINE_MAX_MEMORIES_PER_CHARACTER", "HEARTLINE_RNG_SEED"):
        os.environ.pop(key, None)
    os.environ["HEARTLINE_CONTENT_DIR"] = str(CONTENT_DIR)

    class _WorkspaceTemporaryDirectory:
        """TemporaryDirectory variant that uses a workspace path with safe permissions."""

        def __init__(self, suffix: str | None = None, prefix: str | None = None, dir: str | None = None, **_kwargs):
            base = Path(dir) if dir else tmp_root
            name = f"{(prefix or 'tmp')}{uuid4().hex}{suffix or ''}"
            self._path = base / name
            self._path.mkdir(parents=True, exist_ok=False)

        def __enter__(self) -> str:
            return str(self._path)

        def __exit__(self, exc_type, exc, tb) -> None:
            shutil.rmtree(self._path, ignore_errors=True)

    tempfile.TemporaryDirectory = _WorkspaceTemporaryDirectory


class FakeClock:
    """Callable clock that only moves when advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 4, 10, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture(scope="session")
def content():
    from backend.app.content.repository import ContentRepository

    return ContentRepository(CONTENT_DIR, strict=False)


@pytest.fixture
def engine(content, clock, rng):
    from backend.app.core.engine import RelationshipEngine, new_player_state

    return RelationshipEngine(content, new_player_state("tester", funds=500), rng=rng, clock=clock)
