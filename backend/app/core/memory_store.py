"""Episodic memory log per character: creation, recall, fading and pattern analysis.

Memories are never deleted unless a per-character cap is configured
(HEARTLINE_MAX_MEMORIES_PER_CHARACTER); fade_level moves down only through
decay() and up only through recall().
"""
from __future__ import annotations

import logging
import uuid
from collections import Counter
from typing import TYPE_CHECKING

from backend.app.constants import (
    MEMORY_FADE_FLOOR,
    MEMORY_FADE_MAX,
    MEMORY_FADE_PER_DAY,
    MEMORY_INFLUENCE_PATTERNS,
    MEMORY_RECALL_FADE_BOOST,
    MEMORY_RECALL_IMPACT_DIVISOR,
    MEMORY_RECALL_IMPACT_MAX,
    MEMORY_RECALL_IMPACT_MIN,
)
from backend.app.core.randomness import Clock, utc_now
from backend.app.models.memory import Memory, MemoryDraft, MemoryPatterns, MemoryType

if TYPE_CHECKING:
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.relationship import AffectionLedger

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400.0


def _new_memory_id() -> str:
    return f"mem_{uuid.uuid4().hex[:12]}"


class MemoryStore:
    def __init__(
        self,
        emotions: "EmotionalStateStore",
        ledger: "AffectionLedger",
        clock: Clock = utc_now,
        max_per_character: int = 0,
    ) -> None:
        self._emotions = emotions
        self._ledger = ledger
        self._clock = clock
        self._max = max(0, int(max_per_character or 0))

    def _log(self, character_id: str) -> list[Memory]:
        return self._emotions.record(character_id).memories

    def add(self, draft: MemoryDraft, *, apply_consequences: bool = True) -> str:
        """Store a memory and return its id.

        Consequences (emotion/trust deltas, affection delta) are applied here unless the
        caller already applied them itself (apply_consequences=False).
        """
        now = self._clock()
        memory = Memory(
            **draft.model_dump(),
            id=_new_memory_id(),
            created_at=now,
            last_recalled_at=now,
        )
        log = self._log(draft.character_id)
        log.append(memory)

        if apply_consequences:
            self._apply_consequences(memory)
        if self._max and len(log) > self._max:
            self._evict(draft.character_id)

        logger.debug(
            "Memory %s added for %s (type=%s weight=%.0f)",
            memory.id,
            memory.character_id,
            memory.type,
            memory.emotional_weight,
        )
        return memory.id

    def _apply_consequences(self, memory: Memory) -> None:
        consequences = memory.consequences
        delta = dict(consequences.emotion_delta)
        if consequences.trust_delta:
            delta["trust"] = delta.get("trust", 0.0) + consequences.trust_delta
        if delta:
            self._emotions.apply_delta(memory.character_id, delta, trigger=f"memory:{memory.type}")
        if consequences.affection_delta:
            self._ledger.apply_delta(memory.character_id, consequences.affection_delta)

    def _evict(self, character_id: str) -> None:
        log = self._log(character_id)
        while len(log) > self._max:
            victim = min(log, key=lambda m: (m.fade_level, m.created_at))
            log.remove(victim)
            logger.debug("Evicted memory %s for %s (fade=%.1f)", victim.id, character_id, victim.fade_level)

    # -- queries --------------------------------------------------------

    def all(self, character_id: str) -> list[Memory]:
        return list(self._log(character_id))

    def get(self, character_id: str, memory_id: str) -> Memory | None:
        return next((m for m in self._log(character_id) if m.id == memory_id), None)

    def recent(self, character_id: str, limit: int = 5) -> list[Memory]:
        # reversed() first so equal timestamps keep newest-appended first
        ordered = sorted(reversed(self._log(character_id)), key=lambda m: m.created_at, reverse=True)
        return ordered[:limit]

    def strongest(self, character_id: str, limit: int = 5) -> list[Memory]:
        ordered = sorted(self._log(character_id), key=lambda m: abs(m.emotional_weight), reverse=True)
        return ordered[:limit]

    def by_type(self, character_id: str, memory_type: MemoryType) -> list[Memory]:
        return [m for m in self._log(character_id) if m.type == memory_type]

    # -- dynamics -------------------------------------------------------

    def recall(self, character_id: str, memory_id: str) -> Memory | None:
        """Bring a memory back to mind: sharper, counted, and a small emotional echo."""
        log = self._log(character_id)
        index = next((i for i, m in enumerate(log) if m.id == memory_id), None)
        if index is None:
            return None

        memory = log[index]
        recalled = memory.model_copy(
            update={
                "recall_count": memory.recall_count + 1,
                "last_recalled_at": max(self._clock(), memory.last_recalled_at),
                "fade_level": min(MEMORY_FADE_MAX, memory.fade_level + MEMORY_RECALL_FADE_BOOST),
            }
        )
        log[index] = recalled

        weight = recalled.emotional_weight
        # capped on the positive side only
        impact = min(MEMORY_RECALL_IMPACT_MAX, weight / MEMORY_RECALL_IMPACT_DIVISOR)
        if abs(impact) > MEMORY_RECALL_IMPACT_MIN:
            if weight > 0:
                delta = {"happiness": impact, "nostalgia": impact / 2}
            else:
                delta = {"sadness": abs(impact), "worry": abs(impact) / 2}
            self._emotions.apply_delta(character_id, delta, trigger=f"recall:{memory_id}")
        return recalled

    def decay(self, character_id: str) -> int:
        """Fade every memory by the time since it was last recalled or faded. Returns how many moved."""
        now = self._clock()
        log = self._log(character_id)
        changed = 0
        for i, memory in enumerate(log):
            anchor = max(memory.last_recalled_at, memory.last_faded_at or memory.last_recalled_at)
            days = (now - anchor).total_seconds() / _SECONDS_PER_DAY
            if days <= 0:
                continue
            fade = max(MEMORY_FADE_FLOOR, memory.fade_level - MEMORY_FADE_PER_DAY * days)
            log[i] = memory.model_copy(update={"fade_level": fade, "last_faded_at": now})
            if fade != memory.fade_level:
                changed += 1
        return changed

    # -- analysis -------------------------------------------------------

    def analyze_patterns(self, character_id: str) -> MemoryPatterns:
        log = self._log(character_id)
        themes = Counter(tag for m in log for tag in m.tags)
        total = sum(m.emotional_weight for m in log)
        return MemoryPatterns(
            positive_memories=sum(1 for m in log if m.emotional_weight > 0),
            negative_memories=sum(1 for m in log if m.emotional_weight < 0),
            romantic_memories=sum(1 for m in log if "romantic" in m.tags),
            conflict_memories=sum(1 for m in log if m.type == "conflict"),
            overall_sentiment=total / max(1, len(log)),
            dominant_themes=[tag for tag, _ in themes.most_common(3)],
        )

    def active_influences(self, character_id: str) -> list[str]:
        """Memory-influence patterns whose count threshold is met."""
        patterns = self.analyze_patterns(character_id)
        counts = {
            "positive_memories_boost": patterns.positive_memories,
            "negative_memories_burden": patterns.negative_memories,
            "romantic_memories_influence": patterns.romantic_memories,
            "conflict_memories_trauma": patterns.conflict_memories,
        }
        return [
            name for name, (threshold, _) in MEMORY_INFLUENCE_PATTERNS.items()
            if counts.get(name, 0) >= threshold
        ]

    def influence_delta(self, character_id: str, patterns: list[str] | None = None) -> dict[str, float]:
        """Sum the emotion effects of the given patterns (default: every active one)."""
        names = self.active_influences(character_id) if patterns is None else patterns
        delta: dict[str, float] = {}
        for name in names:
            _, effects = MEMORY_INFLUENCE_PATTERNS[name]
            for emotion, change in effects.items():
                delta[emotion] = delta.get(emotion, 0.0) + change
        return delta
