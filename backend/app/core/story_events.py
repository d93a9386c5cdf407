"""Story event selection (meetings, seasonal events, scripted arcs) and choice resolution."""
from __future__ import annotations

import logging
import random
from datetime import date, datetime
from typing import TYPE_CHECKING

from backend.app.constants import MEETING_EVENT_CHANCE, SEASONAL_EVENT_CHANCE, STORY_EVENT_MIN_MEMORY_WEIGHT
from backend.app.core.randomness import Clock, utc_now
from backend.app.models.emotion import EMOTION_FIELDS
from backend.app.models.memory import MemoryContext, MemoryDraft, MemoryType
from backend.app.models.state import PlayerState
from backend.app.models.story import EventResolution, StoryEvent

if TYPE_CHECKING:
    from backend.app.content.repository import ContentRepository
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.memory_store import MemoryStore
    from backend.app.core.relationship import AffectionLedger, RelationshipTracker

logger = logging.getLogger(__name__)

CONDITION_FIELDS = ("calmness", "energy")

_MEMORY_TYPE_BY_KIND: dict[str, MemoryType] = {
    "meeting": "conversation",
    "seasonal": "activity",
    "scripted": "milestone",
}


def season_for_month(month: int) -> str:
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"


def completed_flag(character_id: str, event_id: str) -> str:
    return f"{character_id}_{event_id}_completed"


class StoryEventTrigger:
    def __init__(
        self,
        state: PlayerState,
        content: "ContentRepository",
        ledger: "AffectionLedger",
        emotions: "EmotionalStateStore",
        tracker: "RelationshipTracker",
        memories: "MemoryStore",
        rng: random.Random | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._state = state
        self._content = content
        self._ledger = ledger
        self._emotions = emotions
        self._tracker = tracker
        self._memories = memories
        self._rng = rng or random.Random()
        self._clock = clock

    def current_season(self, today: date | datetime | None = None) -> str:
        return season_for_month((today or self._clock()).month)

    def _personalize(self, character_id: str, event: StoryEvent) -> StoryEvent:
        name = self._content.display_name(character_id)
        return event.model_copy(
            update={
                "title": event.title.replace("{character}", name),
                "description": event.description.replace("{character}", name),
            }
        )

    def meeting_event(self, character_id: str, time_of_day: str, location: str | None = None) -> StoryEvent | None:
        candidates = [
            e for e in self._content.meeting_events(time_of_day)
            if not e.trigger.location or e.trigger.location == location
        ]
        if not candidates:
            return None
        return self._personalize(character_id, self._rng.choice(candidates))

    def seasonal_event(self, character_id: str, season: str) -> StoryEvent | None:
        candidates = self._content.seasonal_events(season)
        if not candidates:
            return None
        return self._personalize(character_id, self._rng.choice(candidates))

    def available_events(self, character_id: str) -> list[StoryEvent]:
        """Arc events the player currently qualifies for, in authored order."""
        affection = self._ledger.get(character_id)
        can_confess = self._tracker.can_confess(character_id)
        out: list[StoryEvent] = []
        for arc in self._content.story_arcs(character_id):
            if affection < arc.required_affection:
                continue
            for event in arc.events:
                if self._state.has_flag(completed_flag(character_id, event.id)):
                    continue
                if event.unlock_condition and not self._state.has_flag(event.unlock_condition):
                    continue
                if event.required_affection is not None and affection < event.required_affection:
                    continue
                if event.trigger.flags and not all(self._state.has_flag(f) for f in event.trigger.flags):
                    continue
                if event.is_confession and not can_confess:
                    continue
                out.append(self._personalize(character_id, event))
        return out

    def check(
        self,
        character_id: str,
        time_of_day: str,
        location: str | None = None,
        today: date | datetime | None = None,
    ) -> StoryEvent | None:
        """At most one event: a chance meeting, else a seasonal event, else the next arc event."""
        if self._rng.random() < MEETING_EVENT_CHANCE:
            event = self.meeting_event(character_id, time_of_day, location)
            if event is not None:
                logger.debug("Meeting event %s for %s", event.id, character_id)
                return event

        if self._rng.random() < SEASONAL_EVENT_CHANCE:
            event = self.seasonal_event(character_id, self.current_season(today))
            if event is not None:
                logger.debug("Seasonal event %s for %s", event.id, character_id)
                return event

        available = self.available_events(character_id)
        if not available:
            return None
        confessions = [e for e in available if e.is_confession]
        return confessions[0] if confessions else available[0]

    def resolve_choice(self, character_id: str, event: StoryEvent, choice_index: int) -> EventResolution | None:
        """Apply one choice of an event. Returns None for an out-of-range index."""
        if not 0 <= choice_index < len(event.choices):
            logger.debug("Choice %s out of range for event %s", choice_index, event.id)
            return None

        choice = event.choices[choice_index]
        outcomes = choice.outcomes
        change = self._tracker.progress(character_id, outcomes.affection, reason=f"event:{event.id}")

        emotion_delta = {k: v for k, v in outcomes.state_change.items() if k in EMOTION_FIELDS}
        condition_delta = {k: v for k, v in outcomes.state_change.items() if k in CONDITION_FIELDS}
        if emotion_delta:
            self._emotions.apply_delta(character_id, emotion_delta, trigger=f"event:{event.id}")
        if condition_delta:
            self._emotions.apply_condition_delta(character_id, condition_delta)

        for flag in outcomes.unlocks:
            self._state.set_flag(flag)
        self._state.set_flag(completed_flag(character_id, event.id))
        self._state.mark_interaction(character_id)

        personalized = self._personalize(character_id, event)
        memory_type: MemoryType = "confession" if event.is_confession else _MEMORY_TYPE_BY_KIND[event.kind]
        memory_id = self._memories.add(
            MemoryDraft(
                character_id=character_id,
                player_id=self._state.player_id,
                type=memory_type,
                title=personalized.title,
                description=f"{personalized.description} - chose \"{choice.text}\"",
                emotional_weight=max(STORY_EVENT_MIN_MEMORY_WEIGHT, outcomes.affection),
                tags=["story", event.kind, *(["romantic"] if event.is_confession else [])],
                participants=[character_id, self._state.player_id],
                context=MemoryContext(
                    player_action=choice.text,
                    relationship_stage=self._tracker.stage(character_id).status,
                    season=self.current_season(),
                ),
            ),
            apply_consequences=False,
        )
        logger.info("Story event %s resolved for %s (choice=%s)", event.id, character_id, choice_index)
        return EventResolution(
            event_id=event.id,
            choice_index=choice_index,
            affection_delta=outcomes.affection,
            message=f"{outcomes.relationship_change} ({outcomes.affection:+d} affection)".strip(),
            memory_id=memory_id,
            unlocked_flags=list(outcomes.unlocks),
            stage_changed_to=change.new_status if change else None,
        )
