"""RelationshipEngine: wires every component around a single PlayerState.

The engine does no I/O. snapshot() returns a JSON-ready dict and
from_snapshot() rebuilds an equivalent engine from it.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Mapping

from backend.app.config import DEFAULT_FUNDS, MAX_MEMORIES_PER_CHARACTER, RNG_SEED
from backend.app.content.repository import ContentRepository
from backend.app.core.date_engine import DateEngine, Wallet
from backend.app.core.dialogue import DialogueSelector
from backend.app.core.dialogue_choices import DialogueChoiceResolver
from backend.app.core.emotional_state import EmotionalStateStore
from backend.app.core.memory_store import MemoryStore
from backend.app.core.randomness import Clock, make_rng, utc_now
from backend.app.core.relationship import AffectionLedger, RelationshipTracker
from backend.app.core.story_events import StoryEventTrigger
from backend.app.models.dates import DatePlan, DateResults
from backend.app.models.dialogue import DialogueContext
from backend.app.models.state import DayReport, PlayerState
from backend.app.models.story import EventResolution, StoryEvent

logger = logging.getLogger(__name__)

DEFAULT_STATS: dict[str, int] = {"charm": 10, "intelligence": 10, "strength": 10}


def new_player_state(player_id: str = "player", funds: int | None = None, stats: Mapping[str, int] | None = None) -> PlayerState:
    return PlayerState(
        player_id=player_id,
        funds=DEFAULT_FUNDS if funds is None else funds,
        stats=dict(stats) if stats is not None else dict(DEFAULT_STATS),
    )


class RelationshipEngine:
    def __init__(
        self,
        content: ContentRepository,
        state: PlayerState | None = None,
        *,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
        wallet: Wallet | None = None,
        max_memories_per_character: int | None = None,
    ) -> None:
        self.content = content
        self.state = state or new_player_state()
        self.clock = clock
        self.rng = rng or make_rng(RNG_SEED, player_id=self.state.player_id)
        cap = MAX_MEMORIES_PER_CHARACTER if max_memories_per_character is None else max_memories_per_character

        self.emotions = EmotionalStateStore(self.state, content.baselines(), clock=clock)
        self.ledger = AffectionLedger(self.state)
        self.memories = MemoryStore(self.emotions, self.ledger, clock=clock, max_per_character=cap)
        self.tracker = RelationshipTracker(self.state, self.ledger, self.emotions, self.memories, clock=clock)
        self.dates = DateEngine(
            self.state,
            content,
            self.tracker,
            self.emotions,
            self.memories,
            wallet=wallet,
            rng=self.rng,
            clock=clock,
        )
        self.dialogue = DialogueSelector(content, self.emotions, self.tracker, self.memories, rng=self.rng)
        self.choices = DialogueChoiceResolver(self.state, self.ledger, self.emotions, self.tracker, self.memories)
        self.story = StoryEventTrigger(
            self.state,
            content,
            self.ledger,
            self.emotions,
            self.tracker,
            self.memories,
            rng=self.rng,
            clock=clock,
        )
        # Planned dates and offered story events awaiting the player, keyed by id
        self.pending_dates: dict[str, DatePlan] = {}
        self.pending_events: dict[tuple[str, str], StoryEvent] = {}
        self._finished_dates: dict[str, DatePlan] = {}

    # -- persistence ----------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return self.state.model_dump(mode="json")

    @classmethod
    def from_snapshot(
        cls,
        data: Mapping[str, Any],
        content: ContentRepository,
        **kwargs: Any,
    ) -> "RelationshipEngine":
        return cls(content, PlayerState.model_validate(data), **kwargs)

    # -- player-facing conveniences -------------------------------------

    def talk(
        self,
        character_id: str,
        category: str,
        subcategory: str | None = None,
        context: DialogueContext | None = None,
    ) -> str:
        """Select a line and count the exchange as a session interaction."""
        self.state.mark_interaction(character_id)
        return self.dialogue.select(character_id, category, subcategory, context)

    def plan_date(self, character_id: str, location_id: str, activity_ids: list[str]) -> DatePlan:
        plan = self.dates.plan_date(character_id, location_id, activity_ids)
        if not plan.is_cancelled:
            self.pending_dates[plan.id] = plan
        return plan

    def execute_planned_date(self, plan_id: str) -> DateResults | None:
        """Execute a plan made through plan_date(); None when the id was never planned here.

        Re-executing a finished plan raises DatePlanStateError.
        """
        plan = self.pending_dates.pop(plan_id, None) or self._finished_dates.get(plan_id)
        if plan is None:
            return None
        try:
            return self.dates.execute_date(plan)
        finally:
            self._finished_dates[plan_id] = plan

    def check_story(self, character_id: str, time_of_day: str, location: str | None = None) -> StoryEvent | None:
        event = self.story.check(character_id, time_of_day, location)
        if event is not None:
            self.pending_events[(character_id, event.id)] = event
        return event

    def find_story_event(self, character_id: str, event_id: str) -> StoryEvent | None:
        """An offered event, or an arc event the player currently qualifies for."""
        event = self.pending_events.get((character_id, event_id))
        if event is not None:
            return event
        return next((e for e in self.story.available_events(character_id) if e.id == event_id), None)

    def resolve_story(self, character_id: str, event: StoryEvent, choice_index: int) -> EventResolution | None:
        resolution = self.story.resolve_choice(character_id, event, choice_index)
        if resolution is not None:
            self.pending_events.pop((character_id, event.id), None)
        return resolution

    def character_summary(self, character_id: str) -> dict[str, Any]:
        stage = self.tracker.stage(character_id)
        mood = self.emotions.mood(character_id)
        return {
            "character_id": character_id,
            "name": self.content.display_name(character_id),
            "affection": self.ledger.get(character_id),
            "stage": stage.status,
            "stage_name": stage.name,
            "romantic_tension": self.tracker.romantic_tension(character_id),
            "can_confess": self.tracker.can_confess(character_id),
            "is_jealous": self.tracker.is_jealous(character_id),
            "mood": mood.current_mood,
            "mood_intensity": mood.intensity,
            "condition": self.emotions.condition(character_id).model_dump(),
            "unlocked_features": self.tracker.unlocked_features(character_id),
            "memory_count": len(self.memories.all(character_id)),
        }

    # -- daily tick -----------------------------------------------------

    def advance_day(self) -> DayReport:
        """Fade memories, apply newly reached memory influences, expire jealousy, reset session interactions."""
        report = DayReport(day=self.state.day + 1, at=self.clock())
        for character_id in list(self.state.characters):
            faded = self.memories.decay(character_id)
            if faded:
                report.memories_faded[character_id] = faded

            applied = self.state.influences_applied.setdefault(character_id, [])
            fresh = [p for p in self.memories.active_influences(character_id) if p not in applied]
            if fresh:
                delta = self.memories.influence_delta(character_id, fresh)
                self.emotions.apply_delta(character_id, delta, trigger="memory_influence")
                applied.extend(fresh)
                report.influence_applied[character_id] = delta

        report.jealousy_expired = self.tracker.expire_jealousy()
        self.state.session_interactions.clear()
        self.state.day = report.day
        logger.info(
            "Advanced to day %s (faded=%s, influenced=%s, jealousy_expired=%s)",
            report.day,
            sum(report.memories_faded.values()),
            len(report.influence_applied),
            report.jealousy_expired,
        )
        return report
