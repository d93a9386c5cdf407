"""Branching dialogue choices: requirement checks and one-shot outcome application."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from backend.app.models.dialogue import ChoiceResult, DialogueChoice
from backend.app.models.memory import MemoryConsequences, MemoryContext, MemoryDraft
from backend.app.models.state import PlayerState

if TYPE_CHECKING:
    from backend.app.core.emotional_state import EmotionalStateStore
    from backend.app.core.memory_store import MemoryStore
    from backend.app.core.relationship import AffectionLedger, RelationshipTracker

logger = logging.getLogger(__name__)


def missing_requirements(choice: DialogueChoice, state: PlayerState, affection: int) -> list[str]:
    req = choice.requirements
    missing = [
        f"{stat} {minimum}"
        for stat, minimum in req.stats.items()
        if int(state.stats.get(stat, 0)) < minimum
    ]
    if req.affection is not None and affection < req.affection:
        missing.append(f"affection {req.affection}")
    missing.extend(f"flag {flag}" for flag in req.flags if not state.has_flag(flag))
    return missing


class DialogueChoiceResolver:
    def __init__(
        self,
        state: PlayerState,
        ledger: "AffectionLedger",
        emotions: "EmotionalStateStore",
        tracker: "RelationshipTracker",
        memories: "MemoryStore",
    ) -> None:
        self._state = state
        self._ledger = ledger
        self._emotions = emotions
        self._tracker = tracker
        self._memories = memories

    def is_available(self, character_id: str, choice: DialogueChoice) -> bool:
        return not missing_requirements(choice, self._state, self._ledger.get(character_id))

    def available_choices(self, character_id: str, choices: Iterable[DialogueChoice]) -> list[DialogueChoice]:
        return [c for c in choices if self.is_available(character_id, c)]

    def apply_choice(
        self,
        character_id: str,
        choice: DialogueChoice,
        prompt: str = "",
        *,
        title: str = "Conversation",
        location: str = "",
        time_of_day: str = "",
    ) -> ChoiceResult:
        """Apply the choice outcomes once and remember the exchange."""
        missing = missing_requirements(choice, self._state, self._ledger.get(character_id))
        if missing:
            return ChoiceResult(
                choice_id=choice.id,
                applied=False,
                message=f"Requirements not met: {', '.join(missing)}",
            )

        outcomes = choice.outcomes
        change = None
        if outcomes.affection:
            change = self._tracker.progress(character_id, outcomes.affection, reason=f"choice:{choice.id}")
        if outcomes.emotion_changes:
            self._emotions.apply_delta(character_id, outcomes.emotion_changes, trigger=f"choice:{choice.id}")
        for stat, delta in outcomes.stat_changes.items():
            self._state.stats[stat] = int(self._state.stats.get(stat, 0)) + int(delta)
        for flag in [*outcomes.flags, *outcomes.unlocks]:
            self._state.set_flag(flag)
        self._state.mark_interaction(character_id)

        memory_id = self._memories.add(
            MemoryDraft(
                character_id=character_id,
                player_id=self._state.player_id,
                type="conversation",
                title=title,
                description=f'{prompt} - chose "{choice.text}"' if prompt else f'Chose "{choice.text}"',
                location=location,
                time_of_day=time_of_day,
                emotional_weight=outcomes.affection,
                tags=["dialogue"],
                participants=[character_id, self._state.player_id],
                context=MemoryContext(
                    player_action=choice.text,
                    character_reaction=prompt,
                    player_stats=dict(self._state.stats),
                    relationship_stage=self._tracker.stage(character_id).status,
                ),
                consequences=MemoryConsequences(
                    affection_delta=outcomes.affection,
                    trust_delta=outcomes.emotion_changes.get("trust", 0.0),
                    emotion_delta=dict(outcomes.emotion_changes),
                    flags=list(outcomes.flags),
                ),
            ),
            apply_consequences=False,
        )
        logger.debug("Choice %s applied for %s (affection=%+d)", choice.id, character_id, outcomes.affection)
        return ChoiceResult(
            choice_id=choice.id,
            affection_delta=outcomes.affection,
            memory_id=memory_id,
            next_node=outcomes.next_node,
            message=f"{outcomes.affection:+d} affection",
            stage_changed_to=change.new_status if change else None,
        )
