"""Contextual dialogue: pick a scripted line and decorate it with the character's current state."""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from backend.app.constants import (
    ACCENT_JEALOUSY_THRESHOLD,
    ACCENT_LOVE_THRESHOLD,
    ACCENT_SHYNESS_THRESHOLD,
    CLOSE_FRIEND_SUFFIX_CHANCE,
    DIALOGUE_PLACEHOLDER,
    LOVER_SUFFIX_CHANCE,
    MEMORY_CALLBACK_MIN_WEIGHT,
    MEMORY_GUARDED_MAX_WEIGHT,
    TONE_GUARDED_SENTIMENT,
    TONE_TRUST_THRESHOLD,
    TONE_WARM_SENTIMENT,
)
from backend.app.models.dialogue import DialogueContext

if TYPE_CHECKING:
    from backend.app.content.repository import ContentRepository
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.memory_store import MemoryStore
    from backend.app.core.relationship import RelationshipTracker

logger = logging.getLogger(__name__)

# One delivery phrase per mood, rendered as "(phrase) line"
MOOD_PHRASES: dict[str, str] = {
    "happy": "brightly",
    "sad": "in a slightly gloomy voice",
    "angry": "sounding a little irritated",
    "excited": "excitedly",
    "calm": "calmly",
    "nervous": "nervously",
    "romantic": "softly and sweetly",
    "melancholic": "wistfully",
    "playful": "teasingly",
    "serious": "in a serious tone",
}

# Longer tone descriptions used by describe_tone()
MOOD_TONES: dict[str, str] = {
    "happy": "in a bright, cheerful tone",
    "sad": "in a somewhat gloomy tone",
    "angry": "in a slightly angry tone",
    "excited": "in an excited, lively tone",
    "calm": "in an even tone",
    "nervous": "in a tense, awkward tone",
    "romantic": "in a gentle, romantic tone",
    "melancholic": "in a wistful tone",
    "playful": "in a playful tone",
    "serious": "in a serious tone",
}

LOVE_ACCENT = " (gazing at you lovingly)"
SHYNESS_ACCENT = " (blushing)"
JEALOUSY_ACCENT = " (looking a little jealous)"
STAGE_SUFFIXES: dict[str, tuple[float, str]] = {
    "lover": (LOVER_SUFFIX_CHANCE, " Darling."),
    "close_friend": (CLOSE_FRIEND_SUFFIX_CHANCE, " My friend."),
}


class DialogueSelector:
    def __init__(
        self,
        content: "ContentRepository",
        emotions: "EmotionalStateStore",
        tracker: "RelationshipTracker",
        memories: "MemoryStore",
        rng: random.Random | None = None,
    ) -> None:
        self._content = content
        self._emotions = emotions
        self._tracker = tracker
        self._memories = memories
        self._rng = rng or random.Random()

    def select(
        self,
        character_id: str,
        category: str,
        subcategory: str | None = None,
        context: DialogueContext | None = None,
    ) -> str:
        """Uniformly pick a line for the category and decorate it; "..." when nothing is scripted."""
        lines = self._content.dialogue_lines(character_id, category, subcategory)
        if not lines:
            logger.debug("No dialogue for %s/%s/%s", character_id, category, subcategory)
            return DIALOGUE_PLACEHOLDER
        line = self._rng.choice(lines)
        return self.contextualize(character_id, line, context)

    def contextualize(self, character_id: str, line: str, context: DialogueContext | None = None) -> str:
        context = context or DialogueContext()
        emotions = self._emotions.get(character_id)
        mood = self._emotions.mood(character_id)

        text = f"({MOOD_PHRASES[mood.current_mood]}) {line}"

        # Accents stack: every crossed threshold adds its own aside
        if emotions.love > ACCENT_LOVE_THRESHOLD:
            text += LOVE_ACCENT
        if emotions.shyness > ACCENT_SHYNESS_THRESHOLD:
            text += SHYNESS_ACCENT
        if emotions.jealousy > ACCENT_JEALOUSY_THRESHOLD:
            text += JEALOUSY_ACCENT

        suffix = STAGE_SUFFIXES.get(self._tracker.stage(character_id).status)
        if suffix is not None:
            chance, words = suffix
            if self._rng.random() < chance:
                text += words

        if context.weather:
            addendum = self._content.weather_line(context.weather, character_id)
            if addendum:
                text += f" {addendum.strip()}"

        if context.recent_memory:
            recent = self._memories.recent(character_id, 1)
            if recent:
                memory = recent[0]
                if memory.emotional_weight > MEMORY_CALLBACK_MIN_WEIGHT:
                    text = f"That reminds me of {memory.title}. {text}"
                elif memory.emotional_weight < MEMORY_GUARDED_MAX_WEIGHT:
                    text = f"About last time... I'd like to forget it, but... {text}"
        return text

    def describe_tone(self, character_id: str) -> str:
        """Delivery hint combining mood, the strongest emotional cue and overall memory sentiment."""
        emotions = self._emotions.get(character_id)
        mood = self._emotions.mood(character_id)
        sentiment = self._memories.analyze_patterns(character_id).overall_sentiment

        parts = [MOOD_TONES[mood.current_mood]]
        if emotions.love > ACCENT_LOVE_THRESHOLD:
            parts.append("with loving eyes")
        elif emotions.shyness > ACCENT_SHYNESS_THRESHOLD:
            parts.append("shyly")
        elif emotions.trust > TONE_TRUST_THRESHOLD:
            parts.append("with trusting eyes")

        if sentiment > TONE_WARM_SENTIMENT:
            parts.append("recalling good memories")
        elif sentiment < TONE_GUARDED_SENTIMENT:
            parts.append("carefully")
        return ", ".join(parts)
