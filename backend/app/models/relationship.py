"""Relationship stage bands and the progression record emitted when a band changes."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

StageStatus = Literal[
    "stranger",
    "acquaintance",
    "friend",
    "close_friend",
    "romantic_interest",
    "lover",
    "soulmate",
]


class RelationshipStage(BaseModel):
    """One affection band [min_affection, max_affection] (inclusive)."""
    name: str
    status: StageStatus
    min_affection: int
    max_affection: int
    description: str = ""
    unlocked_features: list[str] = Field(default_factory=list)
    romantic_tension: int = 0   # baseline tension for the band
    intimacy_level: int = 0     # baseline intimacy for the band

    def contains(self, affection: float) -> bool:
        return self.min_affection <= affection <= self.max_affection


class StageChange(BaseModel):
    """Returned by RelationshipTracker.progress when affection crosses a band edge."""
    character_id: str
    old_status: StageStatus
    new_status: StageStatus
    new_name: str
    affection: float
    milestone_memory_id: str | None = None

    @property
    def is_upgrade(self) -> bool:
        from backend.app.core.relationship import stage_index

        return stage_index(self.new_status) > stage_index(self.old_status)
