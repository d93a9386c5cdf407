"""Date content (locations/activities) and the DatePlan lifecycle records.

Lifecycle: planned -> in_progress -> completed, or planned -> cancelled when
validation fails. A completed plan carries its DateResults and is not mutated again.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from backend.app.models.relationship import StageStatus

DateStatus = Literal["planned", "in_progress", "completed", "cancelled"]
LocationType = Literal["indoor", "outdoor", "special"]
LocationMood = Literal["casual", "romantic", "intimate", "adventurous"]


class DateOutcome(BaseModel):
    """One scripted outcome branch of an activity."""
    affection_delta: int = 0
    tension_delta: int = 0
    message: str = ""


class DateActivity(BaseModel):
    id: str
    name: str
    duration_minutes: int = Field(default=60, ge=0)
    romantic_bonus: int = 0
    intimacy_bonus: int = 0
    required_stats: dict[str, int] = Field(default_factory=dict)  # stat -> minimum value
    dialogue: list[str] = Field(default_factory=list)             # flavor lines shown during the activity
    success: DateOutcome = Field(default_factory=DateOutcome)
    failure: DateOutcome = Field(default_factory=DateOutcome)

    def meets_requirements(self, stats: dict[str, int]) -> bool:
        return all(int(stats.get(stat, 0)) >= minimum for stat, minimum in self.required_stats.items())


class DateLocation(BaseModel):
    id: str
    name: str
    type: LocationType = "indoor"
    required_stage: StageStatus = "acquaintance"
    romantic_value: int = 0
    cost_per_hour: int = Field(default=0, ge=0)
    activity_ids: list[str] = Field(default_factory=list)
    mood: LocationMood = "casual"
    description: str = ""


class ActivityResult(BaseModel):
    """Resolution of a single activity within an executed date."""
    activity_id: str
    name: str
    success: bool
    stat_gated: bool = False       # failed because a required stat was below threshold
    affection_delta: int = 0
    tension_delta: int = 0
    message: str = ""
    memory_id: str | None = None


class DateResults(BaseModel):
    overall_success: bool
    total_affection_gained: int = 0
    total_tension_gained: int = 0
    memories_created: list[str] = Field(default_factory=list)
    activity_results: list[ActivityResult] = Field(default_factory=list)
    relationship_progression: str | None = None


class DatePlan(BaseModel):
    id: str
    character_id: str
    location_id: str
    activity_ids: list[str] = Field(default_factory=list)
    total_duration_minutes: int = 0
    total_cost: int = 0
    planned_at: datetime
    status: DateStatus = "planned"
    cancel_reason: str | None = None
    results: DateResults | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"


class DateSuggestion(BaseModel):
    """A reachable location with the activities the player currently qualifies for."""
    location: DateLocation
    activities: list[DateActivity] = Field(default_factory=list)
