"""In-process session registry: one RelationshipEngine per play session."""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from backend.app.config import RNG_SEED
from backend.app.content.repository import ContentRepository
from backend.app.core.engine import RelationshipEngine, new_player_state
from backend.app.core.error_handling import UnknownSessionError
from backend.app.core.randomness import Clock, make_rng, utc_now

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Engines keyed by session id.

    Engines are not thread-safe. ``_lock`` guards the maps and each session has its own
    lock; callers that mutate an engine go through ``session()`` so concurrent requests
    on one session run one at a time.
    """

    def __init__(self, content: ContentRepository, clock: Clock = utc_now) -> None:
        self._content = content
        self._clock = clock
        self._lock = threading.RLock()
        self._engines: dict[str, RelationshipEngine] = {}
        self._session_locks: dict[str, threading.RLock] = {}

    @property
    def content(self) -> ContentRepository:
        return self._content

    def create(
        self,
        player_id: str = "player",
        funds: int | None = None,
        stats: Mapping[str, int] | None = None,
        seed: int | None = None,
    ) -> tuple[str, RelationshipEngine]:
        session_id = str(uuid.uuid4())
        effective_seed = RNG_SEED if seed is None else seed
        engine = RelationshipEngine(
            self._content,
            new_player_state(player_id, funds=funds, stats=stats),
            rng=make_rng(effective_seed, player_id=player_id),
            clock=self._clock,
        )
        with self._lock:
            self._engines[session_id] = engine
            self._session_locks[session_id] = threading.RLock()
        logger.info("Created session %s for player %s", session_id, player_id)
        return session_id, engine

    def get(self, session_id: str) -> RelationshipEngine:
        with self._lock:
            engine = self._engines.get(session_id)
        if engine is None:
            raise UnknownSessionError(f"Session '{session_id}' not found")
        return engine

    @contextmanager
    def session(self, session_id: str) -> Iterator[RelationshipEngine]:
        """Yield the session's engine while holding that session's lock."""
        with self._session_lock(session_id):
            yield self.get(session_id)

    def _session_lock(self, session_id: str) -> threading.RLock:
        with self._lock:
            if session_id not in self._engines:
                raise UnknownSessionError(f"Session '{session_id}' not found")
            return self._session_locks.setdefault(session_id, threading.RLock())

    def restore(self, session_id: str, snapshot: Mapping[str, Any]) -> RelationshipEngine:
        """Replace (or create) a session's engine from a snapshot dict."""
        engine = RelationshipEngine.from_snapshot(snapshot, self._content, clock=self._clock)
        with self._lock:
            lock = self._session_locks.setdefault(session_id, threading.RLock())
        # wait for in-flight work on the old engine before swapping it out
        with lock, self._lock:
            self._engines[session_id] = engine
        logger.info("Restored session %s (player=%s)", session_id, engine.state.player_id)
        return engine

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._engines.pop(session_id, None) is None:
                raise UnknownSessionError(f"Session '{session_id}' not found")
            self._session_locks.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._engines)
