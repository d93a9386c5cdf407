"""Dialogue selection context and branching-choice records."""
from __future__ import annotations

from pydantic import BaseModel, Field


class DialogueContext(BaseModel):
    """Scene facts the selector decorates a line with."""
    time_of_day: str | None = None
    weather: str | None = None
    location: str | None = None
    recent_memory: bool = True  # allow the most recent memory to color the line


class ChoiceRequirements(BaseModel):
    stats: dict[str, int] = Field(default_factory=dict)
    affection: int | None = None
    flags: list[str] = Field(default_factory=list)


class ChoiceOutcome(BaseModel):
    affection: int = 0
    emotion_changes: dict[str, float] = Field(default_factory=dict)
    stat_changes: dict[str, int] = Field(default_factory=dict)
    flags: list[str] = Field(default_factory=list)
    unlocks: list[str] = Field(default_factory=list)
    next_node: str | None = None


class DialogueChoice(BaseModel):
    id: str
    text: str
    requirements: ChoiceRequirements = Field(default_factory=ChoiceRequirements)
    outcomes: ChoiceOutcome = Field(default_factory=ChoiceOutcome)


class ChoiceResult(BaseModel):
    choice_id: str
    applied: bool = True
    affection_delta: int = 0
    memory_id: str | None = None
    next_node: str | None = None
    message: str = ""
    stage_changed_to: str | None = None
