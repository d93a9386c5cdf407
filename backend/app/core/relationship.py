"""Relationship stages, the affection ledger, romantic tension and jealousy.

Stage lookup is a pure function of affection. Everything that mutates affection
goes through AffectionLedger (clamped to [0, 100]); RelationshipTracker.progress
layers stage-change handling (milestone memory + flag) on top of the ledger.
"""
from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import TYPE_CHECKING

from backend.app.constants import (
    AFFECTION_MAX,
    AFFECTION_MIN,
    CONFESSION_MIN_TENSION,
    JEALOUSY_DURATION_HOURS,
    JEALOUSY_MIN_AFFECTION,
    JEALOUSY_MIN_PENALTY,
    JEALOUSY_PENALTY_DIVISOR,
    MILESTONE_MEMORY_WEIGHT,
    TENSION_JEALOUSY_FACTOR,
    TENSION_MAX,
    TENSION_RECENT_INTERACTION_FACTOR,
)
from backend.app.core.randomness import Clock, utc_now
from backend.app.models.memory import MemoryContext, MemoryDraft
from backend.app.models.relationship import RelationshipStage, StageChange
from backend.app.models.state import PlayerState

if TYPE_CHECKING:
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.memory_store import MemoryStore

logger = logging.getLogger(__name__)

STAGES: tuple[RelationshipStage, ...] = (
    RelationshipStage(
        name="Stranger",
        status="stranger",
        min_affection=0,
        max_affection=9,
        description="You barely know each other. A first meeting can still leave a spark.",
        unlocked_features=["basic_interaction", "gift_giving"],
        romantic_tension=0,
        intimacy_level=0,
    ),
    RelationshipStage(
        name="Acquaintance",
        status="acquaintance",
        min_affection=10,
        max_affection=24,
        description="You acknowledge each other and chat now and then.",
        unlocked_features=["casual_conversation", "study_together", "walking_together"],
        romantic_tension=10,
        intimacy_level=5,
    ),
    RelationshipStage(
        name="Friend",
        status="friend",
        min_affection=25,
        max_affection=44,
        description="Comfortable friends who enjoy spending time together.",
        unlocked_features=["casual_dates", "personal_stories", "lunch_together"],
        romantic_tension=25,
        intimacy_level=15,
    ),
    RelationshipStage(
        name="Close Friend",
        status="close_friend",
        min_affection=45,
        max_affection=64,
        description="Deep trust and understanding. Something romantic is starting to bloom.",
        unlocked_features=["romantic_dates", "deep_conversations", "hand_holding", "special_gifts"],
        romantic_tension=50,
        intimacy_level=35,
    ),
    RelationshipStage(
        name="Romantic Interest",
        status="romantic_interest",
        min_affection=65,
        max_affection=79,
        description="You both feel something special. A confession is within reach.",
        unlocked_features=["confession", "intimate_dates", "romantic_gestures", "jealousy_events"],
        romantic_tension=75,
        intimacy_level=55,
    ),
    RelationshipStage(
        name="Lover",
        status="lover",
        min_affection=80,
        max_affection=94,
        description="Lovers who have confirmed their feelings and share a deep bond.",
        unlocked_features=["couple_activities", "intimate_moments", "future_planning", "exclusive_dating"],
        romantic_tension=90,
        intimacy_level=80,
    ),
    RelationshipStage(
        name="Soulmate",
        status="soulmate",
        min_affection=95,
        max_affection=100,
        description="Destined partners whose hearts beat as one.",
        unlocked_features=["true_love_events", "engagement", "soulmate_bond", "eternal_promise"],
        romantic_tension=100,
        intimacy_level=100,
    ),
)

STAGE_ORDER: tuple[str, ...] = tuple(stage.status for stage in STAGES)
_BY_STATUS: dict[str, RelationshipStage] = {stage.status: stage for stage in STAGES}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def stage_index(status: str) -> int:
    """Position in the 7-stage order; unknown statuses rank below stranger."""
    try:
        return STAGE_ORDER.index(status)
    except ValueError:
        return -1


def stage_by_status(status: str) -> RelationshipStage | None:
    return _BY_STATUS.get(status)


def resolve_stage(affection: float) -> RelationshipStage:
    """Highest band whose lower edge ``affection`` reaches.

    Fractional values between two integer bands (24.5) belong to the lower one.
    Anything outside 0..100 falls back to the lowest band.
    """
    if not STAGES[0].min_affection <= affection <= STAGES[-1].max_affection:
        return STAGES[0]
    resolved = STAGES[0]
    for stage in STAGES:
        if stage.min_affection > affection:
            break
        resolved = stage
    return resolved


def stage_at_least(current: str, required: str) -> bool:
    return stage_index(current) >= stage_index(required)


def compute_romantic_tension(base: int, *, interacted: bool, jealous: bool) -> int:
    factor = TENSION_RECENT_INTERACTION_FACTOR if interacted else 1.0
    factor *= TENSION_JEALOUSY_FACTOR if jealous else 1.0
    return min(TENSION_MAX, round_half_up(base * factor))


def confession_allowed(stage: RelationshipStage | str, tension: int) -> bool:
    status = stage.status if isinstance(stage, RelationshipStage) else stage
    return status == "romantic_interest" and tension >= CONFESSION_MIN_TENSION


class AffectionLedger:
    """Per-character affection accumulator stored on PlayerState.affection."""

    def __init__(self, state: PlayerState) -> None:
        self._state = state

    def get(self, character_id: str) -> int:
        return int(self._state.affection.get(character_id, AFFECTION_MIN))

    def apply_delta(self, character_id: str, delta: float) -> int:
        current = self.get(character_id)
        updated = max(AFFECTION_MIN, min(AFFECTION_MAX, round_half_up(current + delta)))
        self._state.affection[character_id] = updated
        return updated


class RelationshipTracker:
    def __init__(
        self,
        state: PlayerState,
        ledger: AffectionLedger,
        emotions: "EmotionalStateStore",
        memories: "MemoryStore",
        clock: Clock = utc_now,
    ) -> None:
        self._state = state
        self._ledger = ledger
        self._emotions = emotions
        self._memories = memories
        self._clock = clock

    def stage(self, character_id: str) -> RelationshipStage:
        return resolve_stage(self._ledger.get(character_id))

    def unlocked_features(self, character_id: str) -> list[str]:
        """Features of every band up to and including the current one."""
        current = stage_index(self.stage(character_id).status)
        features: list[str] = []
        for stage in STAGES[: current + 1]:
            features.extend(stage.unlocked_features)
        return features

    def has_feature(self, character_id: str, feature: str) -> bool:
        return feature in self.unlocked_features(character_id)

    def romantic_tension(self, character_id: str) -> int:
        return compute_romantic_tension(
            self.stage(character_id).romantic_tension,
            interacted=character_id in self._state.session_interactions,
            jealous=self.is_jealous(character_id),
        )

    def can_confess(self, character_id: str) -> bool:
        return confession_allowed(self.stage(character_id), self.romantic_tension(character_id))

    def progress(self, character_id: str, delta: float, *, reason: str = "") -> StageChange | None:
        """Apply an affection delta; on a band change record a milestone and return the change."""
        old = self.stage(character_id)
        affection = self._ledger.apply_delta(character_id, delta)
        new = resolve_stage(affection)
        if new.status == old.status:
            return None

        logger.info(
            "Relationship with %s moved %s -> %s (affection=%s, reason=%s)",
            character_id,
            old.status,
            new.status,
            affection,
            reason or "n/a",
        )
        memory_id = self._memories.add(
            MemoryDraft(
                character_id=character_id,
                player_id=self._state.player_id,
                type="milestone",
                title=f"Relationship grew: {new.name}",
                description=f"Your relationship with {character_id} reached a new stage.",
                emotional_weight=MILESTONE_MEMORY_WEIGHT,
                tags=["milestone", new.status],
                context=MemoryContext(relationship_stage=new.status),
            ),
            apply_consequences=False,
        )
        self._state.set_flag(f"{character_id}_stage_{new.status}")
        return StageChange(
            character_id=character_id,
            old_status=old.status,
            new_status=new.status,
            new_name=new.name,
            affection=affection,
            milestone_memory_id=memory_id,
        )

    # -- jealousy -------------------------------------------------------

    def is_jealous(self, character_id: str) -> bool:
        until = self._state.jealous_until.get(character_id)
        return until is not None and until > self._clock()

    def trigger_jealousy(self, target_id: str, other_id: str) -> int:
        """Target sees the player favoring ``other_id``. Returns the affection penalty (0 if below close_friend)."""
        affection = self._ledger.get(target_id)
        if affection < JEALOUSY_MIN_AFFECTION:
            logger.debug("Jealousy skipped for %s (affection=%s)", target_id, affection)
            return 0

        penalty = max(JEALOUSY_MIN_PENALTY, affection // JEALOUSY_PENALTY_DIVISOR)
        self.progress(target_id, -penalty, reason=f"jealous of {other_id}")
        self._emotions.apply_delta(target_id, {"jealousy": penalty}, trigger=f"jealousy:{other_id}")
        self._state.jealous_until[target_id] = self._clock() + timedelta(hours=JEALOUSY_DURATION_HOURS)
        self._state.set_flag(f"{target_id}_jealous")
        logger.info("%s became jealous of %s (penalty=%s)", target_id, other_id, penalty)
        return penalty

    def expire_jealousy(self) -> list[str]:
        now = self._clock()
        expired = [cid for cid, until in self._state.jealous_until.items() if until <= now]
        for cid in expired:
            del self._state.jealous_until[cid]
            self._state.set_flag(f"{cid}_jealous", False)
        return expired
