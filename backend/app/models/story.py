"""Scripted story events: random meetings, seasonal events and per-character arcs."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

EventKind = Literal["meeting", "seasonal", "scripted"]
Season = Literal["spring", "summer", "autumn", "winter"]


class StoryChoiceOutcome(BaseModel):
    affection: int = 0
    relationship_change: str = ""   # short label shown with the result, e.g. "a quiet companion"
    unlocks: list[str] = Field(default_factory=list)
    # Emotion fields go to the emotion vector; calmness/energy go to the character condition
    state_change: dict[str, float] = Field(default_factory=dict)


class StoryChoice(BaseModel):
    text: str
    outcomes: StoryChoiceOutcome = Field(default_factory=StoryChoiceOutcome)


class EventTrigger(BaseModel):
    time_of_day: str | None = None
    location: str | None = None
    flags: list[str] = Field(default_factory=list)


class StoryEvent(BaseModel):
    id: str
    title: str
    description: str = ""            # may contain {character}
    kind: EventKind = "scripted"
    choices: list[StoryChoice] = Field(default_factory=list)
    unlock_condition: str | None = None   # flag that must be set first
    is_confession: bool = False
    required_affection: int | None = None
    trigger: EventTrigger = Field(default_factory=EventTrigger)


class StoryArc(BaseModel):
    id: str
    title: str
    required_affection: int = 0
    events: list[StoryEvent] = Field(default_factory=list)


class EventResolution(BaseModel):
    """What resolving one story-event choice did."""
    event_id: str
    choice_index: int
    affection_delta: int = 0
    message: str = ""
    memory_id: str | None = None
    unlocked_flags: list[str] = Field(default_factory=list)
    stage_changed_to: str | None = None
