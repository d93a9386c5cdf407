"""Per-character emotion vectors with lazy baseline seeding and mood re-evaluation."""
from __future__ import annotations

import logging
from typing import Mapping

from backend.app.core.mood import classify_mood
from backend.app.core.randomness import Clock, utc_now
from backend.app.models.emotion import EMOTION_FIELDS, CharacterCondition, EmotionalState, MoodState
from backend.app.models.state import CharacterRecord, PlayerState

logger = logging.getLogger(__name__)


class EmotionalStateStore:
    """Owns the emotional_state / mood / condition of every CharacterRecord in a PlayerState.

    A character is seeded on first access from the global default overlaid with its
    content baseline; characters without a baseline get the global default.
    """

    def __init__(
        self,
        state: PlayerState,
        baselines: Mapping[str, Mapping[str, float]] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._state = state
        self._baselines = baselines or {}
        self._clock = clock

    def record(self, character_id: str) -> CharacterRecord:
        rec = self._state.characters.get(character_id)
        if rec is None:
            baseline = self._baselines.get(character_id)
            if baseline is None:
                logger.debug("No emotional baseline for %s; using global default", character_id)
            rec = CharacterRecord(emotional_state=EmotionalState.from_baseline(baseline))
            self._state.characters[character_id] = rec
        return rec

    def get(self, character_id: str) -> EmotionalState:
        return self.record(character_id).emotional_state

    def mood(self, character_id: str) -> MoodState:
        return self.record(character_id).mood

    def condition(self, character_id: str) -> CharacterCondition:
        return self.record(character_id).condition

    def apply_delta(
        self,
        character_id: str,
        delta: Mapping[str, float],
        trigger: str = "interaction",
    ) -> EmotionalState:
        """Add each known delta, clamp, persist, then re-run mood classification."""
        unknown = [key for key in delta if key not in EMOTION_FIELDS]
        if unknown:
            logger.debug("Ignoring unknown emotion keys for %s: %s", character_id, unknown)

        rec = self.record(character_id)
        rec.emotional_state = rec.emotional_state.with_delta(delta)
        rec.mood = classify_mood(rec.emotional_state, rec.mood, trigger=trigger, now=self._clock())
        return rec.emotional_state

    def apply_condition_delta(self, character_id: str, delta: Mapping[str, float]) -> CharacterCondition:
        rec = self.record(character_id)
        rec.condition = rec.condition.with_delta(delta)
        return rec.condition
