"""Application models (emotion, memory, relationship, dates, dialogue, story, player state)."""
from .dates import DateActivity, DateLocation, DatePlan, DateResults
from .emotion import EMOTION_FIELDS, CharacterCondition, EmotionalState, MoodState
from .memory import Memory, MemoryDraft, MemoryPatterns
from .relationship import RelationshipStage, StageChange
from .state import CharacterRecord, PlayerState
from .story import StoryArc, StoryEvent

__all__ = [
    "DateActivity",
    "DateLocation",
    "DatePlan",
    "DateResults",
    "EMOTION_FIELDS",
    "CharacterCondition",
    "EmotionalState",
    "MoodState",
    "Memory",
    "MemoryDraft",
    "MemoryPatterns",
    "RelationshipStage",
    "StageChange",
    "CharacterRecord",
    "PlayerState",
    "StoryArc",
    "StoryEvent",
]
