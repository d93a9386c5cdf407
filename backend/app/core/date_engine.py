"""Date planning and execution.

plan_date only validates and prices; it never touches funds. execute_date is
atomic: it debits once up front, resolves every activity in order, and leaves
the plan completed with its results attached.
"""
from __future__ import annotations

import logging
import math
import random
import uuid
from typing import TYPE_CHECKING, Iterable, Protocol

from backend.app.constants import (
    DATE_BASE_SUCCESS,
    DATE_MAX_SUCCESS,
    DATE_MIN_MEMORY_WEIGHT,
    DATE_STATE_SUCCESS_WEIGHT,
    DATE_SUCCESS_AFFECTION_PER_ACTIVITY,
)
from backend.app.core.error_handling import DatePlanStateError
from backend.app.core.randomness import Clock, utc_now
from backend.app.core.relationship import stage_at_least, stage_by_status
from backend.app.models.dates import (
    ActivityResult,
    DateActivity,
    DateLocation,
    DatePlan,
    DateResults,
    DateSuggestion,
)
from backend.app.models.memory import MemoryConsequences, MemoryContext, MemoryDraft
from backend.app.models.state import PlayerState

if TYPE_CHECKING:
    from backend.app.content.repository import ContentRepository
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.memory_store import MemoryStore
    from backend.app.core.relationship import RelationshipTracker

logger = logging.getLogger(__name__)


class Wallet(Protocol):
    def balance(self) -> int: ...

    def debit(self, amount: int) -> None: ...


class PlayerWallet:
    """Wallet backed by PlayerState.funds."""

    def __init__(self, state: PlayerState) -> None:
        self._state = state

    def balance(self) -> int:
        return int(self._state.funds)

    def debit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("debit amount must be non-negative")
        self._state.funds = int(self._state.funds) - int(amount)


def date_cost(location: DateLocation, activities: Iterable[DateActivity]) -> tuple[int, int]:
    """(total minutes, total cost); partial hours are billed as full hours."""
    minutes = sum(a.duration_minutes for a in activities)
    return minutes, math.ceil(minutes / 60) * location.cost_per_hour


class DateEngine:
    def __init__(
        self,
        state: PlayerState,
        content: "ContentRepository",
        tracker: "RelationshipTracker",
        emotions: "EmotionalStateStore",
        memories: "MemoryStore",
        wallet: Wallet | None = None,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._state = state
        self._content = content
        self._tracker = tracker
        self._emotions = emotions
        self._memories = memories
        self._wallet = wallet or PlayerWallet(state)
        self._rng = rng or random.Random()
        self._clock = clock

    # -- helpers --------------------------------------------------------

    def _activities_for(self, location: DateLocation, activity_ids: Iterable[str]) -> list[DateActivity]:
        out: list[DateActivity] = []
        for activity_id in activity_ids:
            activity = self._content.activity(activity_id)
            if activity is None or activity_id not in location.activity_ids:
                logger.debug("Dropping activity %s (not offered at %s)", activity_id, location.id)
                continue
            out.append(activity)
        return out

    def estimate_cost(self, location_id: str, activity_ids: Iterable[str]) -> int:
        location = self._content.location(location_id)
        if location is None:
            return 0
        return date_cost(location, self._activities_for(location, activity_ids))[1]

    def available_locations(self, character_id: str) -> list[DateLocation]:
        stage = self._tracker.stage(character_id)
        return [
            loc for loc in self._content.tables.locations.values()
            if stage_at_least(stage.status, loc.required_stage)
        ]

    def suggestions(self, character_id: str) -> list[DateSuggestion]:
        """Reachable locations paired with the activities the player's stats allow."""
        out: list[DateSuggestion] = []
        for location in self.available_locations(character_id):
            activities = [
                a for a in self._activities_for(location, location.activity_ids)
                if a.meets_requirements(self._state.stats)
            ]
            if activities:
                out.append(DateSuggestion(location=location, activities=activities))
        return out

    def history(self, character_id: str) -> list[DatePlan]:
        return [p for p in self._state.date_history if p.character_id == character_id and p.status == "completed"]

    def success_probability(self, character_id: str) -> float:
        condition = self._emotions.condition(character_id)
        trust = self._emotions.get(character_id).trust
        blend = (condition.calmness + trust + condition.energy) / 3.0
        return min(DATE_MAX_SUCCESS, DATE_BASE_SUCCESS + DATE_STATE_SUCCESS_WEIGHT * blend / 100.0)

    # -- planning -------------------------------------------------------

    def _cancelled(self, plan: DatePlan, reason: str) -> DatePlan:
        logger.info("Date plan %s for %s cancelled: %s", plan.id, plan.character_id, reason)
        plan.status = "cancelled"
        plan.cancel_reason = reason
        return plan

    def plan_date(self, character_id: str, location_id: str, activity_ids: list[str]) -> DatePlan:
        plan = DatePlan(
            id=f"date_{character_id}_{uuid.uuid4().hex[:8]}",
            character_id=character_id,
            location_id=location_id,
            planned_at=self._clock(),
        )
        location = self._content.location(location_id)
        if location is None:
            return self._cancelled(plan, f"Unknown location '{location_id}'.")

        activities = self._activities_for(location, activity_ids)
        if not activities:
            return self._cancelled(plan, f"No valid activities for {location.name}.")

        minutes, cost = date_cost(location, activities)
        plan.activity_ids = [a.id for a in activities]
        plan.total_duration_minutes = minutes
        plan.total_cost = cost

        stage = self._tracker.stage(character_id)
        if not stage_at_least(stage.status, location.required_stage):
            required = stage_by_status(location.required_stage)
            required_name = required.name if required else location.required_stage
            return self._cancelled(
                plan,
                f"Your relationship is not close enough for {location.name} (requires {required_name}).",
            )

        balance = self._wallet.balance()
        if balance < cost:
            return self._cancelled(plan, f"Not enough funds: need {cost}, have {balance}.")

        logger.debug("Planned date %s: %s at %s cost=%s", plan.id, plan.activity_ids, location_id, cost)
        return plan

    # -- execution ------------------------------------------------------

    def _resolve_activity(self, character_id: str, activity: DateActivity) -> tuple[bool, bool]:
        """(success, stat_gated). A missed stat gate is a failure without a roll."""
        if not activity.meets_requirements(self._state.stats):
            return False, True
        probability = self.success_probability(character_id)
        roll = self._rng.random()
        logger.debug("Activity %s roll=%.3f p=%.3f", activity.id, roll, probability)
        return roll < probability, False

    def execute_date(self, plan: DatePlan) -> DateResults:
        if plan.status != "planned":
            raise DatePlanStateError(f"Date plan {plan.id} is {plan.status}, expected planned")

        cid = plan.character_id
        location = self._content.location(plan.location_id)
        if location is None:
            self._cancelled(plan, f"Location '{plan.location_id}' is no longer available.")
            return DateResults(overall_success=False, relationship_progression=self._tracker.stage(cid).name)

        balance = self._wallet.balance()
        if balance < plan.total_cost:
            self._cancelled(plan, f"Not enough funds: need {plan.total_cost}, have {balance}.")
            return DateResults(overall_success=False, relationship_progression=self._tracker.stage(cid).name)

        plan.status = "in_progress"
        self._wallet.debit(plan.total_cost)
        self._state.mark_interaction(cid)

        results: list[ActivityResult] = []
        total_affection = 0
        total_tension = 0
        for activity_id in plan.activity_ids:
            activity = self._content.activity(activity_id)
            if activity is None:
                continue
            success, gated = self._resolve_activity(cid, activity)
            outcome = activity.success if success else activity.failure
            total_affection += outcome.affection_delta
            total_tension += outcome.tension_delta
            self._tracker.progress(cid, outcome.affection_delta, reason=f"date:{activity.id}")

            memory_id = self._memories.add(
                MemoryDraft(
                    character_id=cid,
                    player_id=self._state.player_id,
                    type="date",
                    title=f"{activity.name} at {location.name}",
                    description=outcome.message,
                    location=location.id,
                    emotional_weight=max(DATE_MIN_MEMORY_WEIGHT, outcome.affection_delta),
                    tags=["date", location.mood, activity.id],
                    participants=[cid, self._state.player_id],
                    context=MemoryContext(
                        player_action=activity.name,
                        player_stats=dict(self._state.stats),
                        relationship_stage=self._tracker.stage(cid).status,
                    ),
                    consequences=MemoryConsequences(affection_delta=outcome.affection_delta),
                ),
                apply_consequences=False,
            )
            results.append(
                ActivityResult(
                    activity_id=activity.id,
                    name=activity.name,
                    success=success,
                    stat_gated=gated,
                    affection_delta=outcome.affection_delta,
                    tension_delta=outcome.tension_delta,
                    message=outcome.message,
                    memory_id=memory_id,
                )
            )

        date_results = DateResults(
            overall_success=total_affection > len(plan.activity_ids) * DATE_SUCCESS_AFFECTION_PER_ACTIVITY,
            total_affection_gained=total_affection,
            total_tension_gained=total_tension,
            memories_created=[r.memory_id for r in results if r.memory_id],
            activity_results=results,
            relationship_progression=self._tracker.stage(cid).name,
        )
        plan.status = "completed"
        plan.results = date_results
        self._state.date_history.append(plan.model_copy(deep=True))
        logger.info(
            "Date %s with %s completed: success=%s affection=%+d tension=%+d",
            plan.id,
            cid,
            date_results.overall_success,
            total_affection,
            total_tension,
        )
        return date_results

