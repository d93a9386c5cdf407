"""Episodic memory records: what happened, how it felt, and how vivid it still is."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from backend.app.constants import (
    MEMORY_FADE_FLOOR,
    MEMORY_FADE_MAX,
    MEMORY_WEIGHT_MAX,
    MEMORY_WEIGHT_MIN,
)

MemoryType = Literal[
    "conversation",
    "gift",
    "activity",
    "date",
    "confession",
    "conflict",
    "milestone",
]


class MemoryContext(BaseModel):
    """Snapshot of the scene when the memory formed."""
    player_action: str = ""
    character_reaction: str = ""
    player_stats: dict[str, int] = Field(default_factory=dict)
    relationship_stage: str = ""
    weather: str | None = None
    season: str | None = None


class MemoryConsequences(BaseModel):
    """Deltas the interaction caused (applied once, at creation)."""
    affection_delta: float = 0.0
    trust_delta: float = 0.0
    emotion_delta: dict[str, float] = Field(default_factory=dict)
    flags: list[str] = Field(default_factory=list)


class MemoryDraft(BaseModel):
    """Caller-supplied memory fields; MemoryStore.add derives the rest."""
    character_id: str
    player_id: str = "player"
    type: MemoryType = "conversation"
    title: str
    description: str = ""
    location: str = ""
    time_of_day: str = ""
    emotional_weight: float = 0.0
    tags: list[str] = Field(default_factory=list)
    participants: list[str] = Field(default_factory=list)
    context: MemoryContext = Field(default_factory=MemoryContext)
    consequences: MemoryConsequences = Field(default_factory=MemoryConsequences)

    @field_validator("emotional_weight")
    @classmethod
    def _clamp_weight(cls, value: float) -> float:
        return max(MEMORY_WEIGHT_MIN, min(MEMORY_WEIGHT_MAX, float(value)))

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in value:
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class Memory(MemoryDraft):
    """Stored memory. fade_level only rises on recall and never drops below the floor."""
    id: str
    created_at: datetime
    last_recalled_at: datetime
    last_faded_at: datetime | None = None
    recall_count: int = 1
    fade_level: float = MEMORY_FADE_MAX

    @field_validator("fade_level")
    @classmethod
    def _clamp_fade(cls, value: float) -> float:
        return max(MEMORY_FADE_FLOOR, min(MEMORY_FADE_MAX, float(value)))


class MemoryPatterns(BaseModel):
    """Aggregate view of a character's memory log."""
    positive_memories: int = 0
    negative_memories: int = 0
    romantic_memories: int = 0
    conflict_memories: int = 0
    overall_sentiment: float = 0.0
    dominant_themes: list[str] = Field(default_factory=list)
