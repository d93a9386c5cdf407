"""Emotion vector and mood records kept per character.

Every emotion field is a float clamped to [0, 100]; deltas are applied and then
clamped, so no update path can push a value out of bounds.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Mapping

from pydantic import BaseModel, Field, field_validator

from backend.app.constants import (
    CONDITION_DEFAULT,
    EMOTION_MAX,
    EMOTION_MIN,
    MOOD_DEFAULT_DURATION_MINUTES,
    MOOD_DEFAULT_INTENSITY,
)

# Primary emotions first, then secondary states (order is stable for display)
EMOTION_FIELDS: tuple[str, ...] = (
    "love",
    "jealousy",
    "happiness",
    "sadness",
    "anger",
    "fear",
    "excitement",
    "embarrassment",
    "longing",
    "contentment",
    "trust",
    "shyness",
    "curiosity",
    "gratitude",
    "worry",
    "hope",
    "nostalgia",
    "pride",
    "guilt",
    "relief",
)

Mood = Literal[
    "happy",
    "sad",
    "angry",
    "excited",
    "calm",
    "nervous",
    "romantic",
    "melancholic",
    "playful",
    "serious",
]
MOODS: tuple[str, ...] = (
    "happy", "sad", "angry", "excited", "calm",
    "nervous", "romantic", "melancholic", "playful", "serious",
)


def clamp_emotion(value: float) -> float:
    return max(EMOTION_MIN, min(EMOTION_MAX, float(value)))


class EmotionalState(BaseModel):
    """20-dimensional emotion vector for one character toward the player."""
    love: float = 0.0
    jealousy: float = 0.0
    happiness: float = 50.0
    sadness: float = 20.0
    anger: float = 10.0
    fear: float = 15.0
    excitement: float = 30.0
    embarrassment: float = 25.0
    longing: float = 10.0
    contentment: float = 40.0
    trust: float = 30.0
    shyness: float = 40.0
    curiosity: float = 35.0
    gratitude: float = 25.0
    worry: float = 30.0
    hope: float = 45.0
    nostalgia: float = 15.0
    pride: float = 35.0
    guilt: float = 10.0
    relief: float = 30.0

    @field_validator(*EMOTION_FIELDS)
    @classmethod
    def _clamp(cls, value: float) -> float:
        return clamp_emotion(value)

    @classmethod
    def from_baseline(cls, baseline: Mapping[str, float] | None = None) -> "EmotionalState":
        """Global default overlaid with a partial per-character baseline (unknown keys dropped)."""
        overrides = {k: v for k, v in (baseline or {}).items() if k in EMOTION_FIELDS}
        return cls(**overrides)

    def value(self, emotion: str) -> float:
        return float(getattr(self, emotion))

    def as_dict(self) -> dict[str, float]:
        return {name: self.value(name) for name in EMOTION_FIELDS}

    def with_delta(self, delta: Mapping[str, float]) -> "EmotionalState":
        """Return a new vector with each known delta added and clamped."""
        values = self.as_dict()
        for emotion, change in delta.items():
            if emotion in values and isinstance(change, (int, float)):
                values[emotion] = clamp_emotion(values[emotion] + change)
        return EmotionalState(**values)


class MoodHistoryEntry(BaseModel):
    """A mood the character has moved out of."""
    mood: Mood
    intensity: float
    timestamp: datetime
    trigger: str = ""


class MoodState(BaseModel):
    """Current discrete mood plus a bounded FIFO of previous moods."""
    current_mood: Mood = "calm"
    intensity: float = Field(default=MOOD_DEFAULT_INTENSITY, ge=0, le=100)
    duration_minutes: int = MOOD_DEFAULT_DURATION_MINUTES
    trigger: str = "default"
    history: list[MoodHistoryEntry] = Field(default_factory=list)


class CharacterCondition(BaseModel):
    """Physical/composure state fed by story events; blends into date success rolls."""
    calmness: float = CONDITION_DEFAULT
    energy: float = CONDITION_DEFAULT

    @field_validator("calmness", "energy")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return clamp_emotion(value)

    def with_delta(self, delta: Mapping[str, float]) -> "CharacterCondition":
        return CharacterCondition(
            calmness=self.calmness + float(delta.get("calmness", 0) or 0),
            energy=self.energy + float(delta.get("energy", 0) or 0),
        )
