"""Per-player simulation state: everything the engine owns, in one serializable record."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from backend.app.models.dates import DatePlan
from backend.app.models.emotion import CharacterCondition, EmotionalState, MoodState
from backend.app.models.memory import Memory


class CharacterRecord(BaseModel):
    """State owned by one character id."""
    emotional_state: EmotionalState = Field(default_factory=EmotionalState)
    mood: MoodState = Field(default_factory=MoodState)
    condition: CharacterCondition = Field(default_factory=CharacterCondition)
    memories: list[Memory] = Field(default_factory=list)


class PlayerState(BaseModel):
    """Snapshot root. RelationshipEngine.snapshot() dumps this; from_snapshot() validates it back."""
    player_id: str = "player"
    funds: int = 0
    stats: dict[str, int] = Field(default_factory=dict)
    affection: dict[str, int] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    # Characters the player spoke to or dated since the last daily tick
    session_interactions: list[str] = Field(default_factory=list)
    jealous_until: dict[str, datetime] = Field(default_factory=dict)
    characters: dict[str, CharacterRecord] = Field(default_factory=dict)
    date_history: list[DatePlan] = Field(default_factory=list)
    # Memory-influence patterns already applied per character (each applies once)
    influences_applied: dict[str, list[str]] = Field(default_factory=dict)
    day: int = 1

    def has_flag(self, flag: str) -> bool:
        return bool(self.flags.get(flag))

    def set_flag(self, flag: str, value: bool = True) -> None:
        self.flags[flag] = value

    def mark_interaction(self, character_id: str) -> None:
        if character_id not in self.session_interactions:
            self.session_interactions.append(character_id)


class DayReport(BaseModel):
    """What the daily tick changed."""
    day: int
    at: datetime
    memories_faded: dict[str, int] = Field(default_factory=dict)
    influence_applied: dict[str, dict[str, float]] = Field(default_factory=dict)
    jealousy_expired: list[str] = Field(default_factory=list)
