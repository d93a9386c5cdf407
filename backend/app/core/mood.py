"""Discrete mood classification from the continuous emotion vector.

The classifier is pure: it never mutates ``previous`` and returns either
``previous`` itself (no commit) or a fresh MoodState with the old mood pushed
onto the bounded history.
"""
from __future__ import annotations

import logging
from datetime import datetime

from backend.app.constants import (
    EMOTION_MAX,
    MOOD_CHANGE_MIN_INTENSITY_DELTA,
    MOOD_COMMIT_DURATION_MINUTES,
    MOOD_DOMINANT_THRESHOLD,
    MOOD_EXCITED_THRESHOLD,
    MOOD_HISTORY_MAX,
    MOOD_INTENSITY_BOOST,
)
from backend.app.models.emotion import EMOTION_FIELDS, EmotionalState, MoodHistoryEntry, MoodState

logger = logging.getLogger(__name__)

# Every emotion maps to exactly one mood; "happy" entries upgrade to "excited" above the threshold.
EMOTION_TO_MOOD: dict[str, str] = {
    "love": "romantic",
    "jealousy": "calm",
    "happiness": "happy",
    "sadness": "melancholic",
    "anger": "angry",
    "fear": "nervous",
    "excitement": "happy",
    "embarrassment": "nervous",
    "longing": "romantic",
    "contentment": "happy",
    "trust": "calm",
    "shyness": "nervous",
    "curiosity": "calm",
    "gratitude": "calm",
    "worry": "nervous",
    "hope": "calm",
    "nostalgia": "melancholic",
    "pride": "calm",
    "guilt": "calm",
    "relief": "calm",
}


def dominant_emotions(state: EmotionalState) -> list[tuple[str, float]]:
    """Emotions strictly above the dominance threshold, strongest first (field order breaks ties)."""
    above = [(name, state.value(name)) for name in EMOTION_FIELDS if state.value(name) > MOOD_DOMINANT_THRESHOLD]
    return sorted(above, key=lambda item: item[1], reverse=True)


def mood_for(emotion: str, value: float) -> str:
    mood = EMOTION_TO_MOOD.get(emotion, "calm")
    if mood == "happy" and value > MOOD_EXCITED_THRESHOLD:
        return "excited"
    return mood


def _commit(previous: MoodState, mood: str, intensity: float, trigger: str, now: datetime) -> MoodState:
    history = list(previous.history)
    history.append(
        MoodHistoryEntry(
            mood=previous.current_mood,
            intensity=previous.intensity,
            timestamp=now,
            trigger=previous.trigger,
        )
    )
    return MoodState(
        current_mood=mood,
        intensity=intensity,
        duration_minutes=MOOD_COMMIT_DURATION_MINUTES,
        trigger=trigger,
        history=history[-MOOD_HISTORY_MAX:],
    )


def classify_mood(
    state: EmotionalState,
    previous: MoodState,
    *,
    trigger: str,
    now: datetime,
) -> MoodState:
    dominant = dominant_emotions(state)
    if not dominant:
        candidate, intensity = "calm", previous.intensity
    else:
        emotion, value = dominant[0]
        candidate = mood_for(emotion, value)
        intensity = min(EMOTION_MAX, value + MOOD_INTENSITY_BOOST)

    changed_label = candidate != previous.current_mood
    big_swing = abs(intensity - previous.intensity) > MOOD_CHANGE_MIN_INTENSITY_DELTA
    if not (changed_label or big_swing):
        return previous

    logger.debug(
        "Mood commit: %s(%.0f) -> %s(%.0f) trigger=%s",
        previous.current_mood,
        previous.intensity,
        candidate,
        intensity,
        trigger,
    )
    return _commit(previous, candidate, intensity, trigger, now)
