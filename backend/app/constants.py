"""Centralized tuning constants shared across the engine."""
from __future__ import annotations

# Emotion vector bounds
EMOTION_MIN = 0.0
EMOTION_MAX = 100.0

# Affection accumulator bounds (per player/character pair)
AFFECTION_MIN = 0
AFFECTION_MAX = 100

# Mood classification
MOOD_DOMINANT_THRESHOLD = 60      # only emotions strictly above this compete for the mood
MOOD_EXCITED_THRESHOLD = 80       # happiness-family emotions above this read as "excited"
MOOD_INTENSITY_BOOST = 10
MOOD_CHANGE_MIN_INTENSITY_DELTA = 15  # hysteresis: smaller moves keep the current mood
MOOD_HISTORY_MAX = 10
MOOD_DEFAULT_INTENSITY = 50
MOOD_DEFAULT_DURATION_MINUTES = 30
MOOD_COMMIT_DURATION_MINUTES = 60

# Episodic memory
MEMORY_FADE_MAX = 100.0
MEMORY_FADE_FLOOR = 10.0
MEMORY_FADE_PER_DAY = 2.0
MEMORY_RECALL_FADE_BOOST = 5.0
MEMORY_RECALL_IMPACT_DIVISOR = 5
MEMORY_RECALL_IMPACT_MAX = 10.0
MEMORY_RECALL_IMPACT_MIN = 1.0    # nudges at or below this are not applied
MEMORY_WEIGHT_MIN = -100
MEMORY_WEIGHT_MAX = 100
MILESTONE_MEMORY_WEIGHT = 10

# Memory influence patterns: (threshold count, emotion delta)
MEMORY_INFLUENCE_PATTERNS: dict[str, tuple[int, dict[str, float]]] = {
    "positive_memories_boost": (3, {"happiness": 15, "trust": 10, "contentment": 12, "hope": 10}),
    "negative_memories_burden": (2, {"sadness": 12, "worry": 15, "fear": 8, "trust": -10}),
    "romantic_memories_influence": (2, {"love": 20, "excitement": 15, "shyness": 10, "longing": 12}),
    "conflict_memories_trauma": (1, {"anger": 10, "sadness": 8, "trust": -15, "fear": 12}),
}

# Romantic tension factors
TENSION_RECENT_INTERACTION_FACTOR = 1.2
TENSION_JEALOUSY_FACTOR = 0.8
TENSION_MAX = 100
CONFESSION_MIN_TENSION = 70

# Jealousy
JEALOUSY_MIN_AFFECTION = 45       # close_friend or above
JEALOUSY_MIN_PENALTY = 5
JEALOUSY_PENALTY_DIVISOR = 10
JEALOUSY_DURATION_HOURS = 24

# Date resolution
DATE_BASE_SUCCESS = 0.6
DATE_STATE_SUCCESS_WEIGHT = 0.3
DATE_MAX_SUCCESS = 0.9
DATE_MIN_MEMORY_WEIGHT = 3
DATE_SUCCESS_AFFECTION_PER_ACTIVITY = 5
CONDITION_DEFAULT = 50.0

# Dialogue decoration
DIALOGUE_PLACEHOLDER = "..."
ACCENT_LOVE_THRESHOLD = 70
ACCENT_SHYNESS_THRESHOLD = 70
ACCENT_JEALOUSY_THRESHOLD = 50
TONE_TRUST_THRESHOLD = 80
LOVER_SUFFIX_CHANCE = 0.3
CLOSE_FRIEND_SUFFIX_CHANCE = 0.2
MEMORY_CALLBACK_MIN_WEIGHT = 15
MEMORY_GUARDED_MAX_WEIGHT = -10
TONE_WARM_SENTIMENT = 30
TONE_GUARDED_SENTIMENT = -20

# Story events
MEETING_EVENT_CHANCE = 0.3
SEASONAL_EVENT_CHANCE = 0.2
STORY_EVENT_MIN_MEMORY_WEIGHT = 5
