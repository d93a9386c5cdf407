"""Tests for branching dialogue choices: requirement filtering and one-shot outcomes."""
from __future__ import annotations

from backend.app.core.dialogue_choices import missing_requirements
from backend.app.models.dialogue import ChoiceOutcome, ChoiceRequirements, DialogueChoice
from backend.app.models.emotion import EmotionalState


def _choices() -> list[DialogueChoice]:
    return [
        DialogueChoice(id="small_talk", text="Nice weather, huh?", outcomes=ChoiceOutcome(affection=2)),
        DialogueChoice(
            id="quote_poetry",
            text="Recite a poem",
            requirements=ChoiceRequirements(stats={"intelligence": 15}),
            outcomes=ChoiceOutcome(affection=8),
        ),
        DialogueChoice(
            id="ask_secret",
            text="Is something on your mind?",
            requirements=ChoiceRequirements(affection=25, flags=["luna_opened_up"]),
            outcomes=ChoiceOutcome(affection=6, unlocks=["luna_secret_known"]),
        ),
    ]


def test_missing_requirements_lists_every_gap(engine) -> None:
    ask_secret = _choices()[2]
    assert missing_requirements(ask_secret, engine.state, 10) == ["affection 25", "flag luna_opened_up"]


def test_available_choices_filters_by_stats_affection_and_flags(engine) -> None:
    available = engine.choices.available_choices("luna", _choices())
    assert [c.id for c in available] == ["small_talk"]

    engine.state.stats["intelligence"] = 20
    engine.ledger.apply_delta("luna", 30)
    engine.state.set_flag("luna_opened_up")
    available = engine.choices.available_choices("luna", _choices())
    assert [c.id for c in available] == ["small_talk", "quote_poetry", "ask_secret"]


def test_unavailable_choice_is_refused_without_side_effects(engine) -> None:
    result = engine.choices.apply_choice("luna", _choices()[1], prompt="Say something clever")
    assert not result.applied
    assert "intelligence 15" in result.message
    assert engine.ledger.get("luna") == 0
    assert engine.memories.all("luna") == []


def test_apply_choice_applies_outcomes_exactly_once(engine) -> None:
    choice = DialogueChoice(
        id="encourage",
        text="You can do it.",
        outcomes=ChoiceOutcome(
            affection=5,
            emotion_changes={"trust": 6, "hope": 4},
            stat_changes={"charm": 1},
            flags=["encouraged_luna"],
            next_node="luna_smiles",
        ),
    )
    trust_before = engine.emotions.get("luna").trust
    result = engine.choices.apply_choice("luna", choice, prompt="I'm nervous about the exam.")

    assert result.applied
    assert result.affection_delta == 5
    assert result.next_node == "luna_smiles"
    assert engine.ledger.get("luna") == 5
    assert engine.emotions.get("luna").trust == trust_before + 6
    assert engine.state.stats["charm"] == 11
    assert engine.state.has_flag("encouraged_luna")
    assert "luna" in engine.state.session_interactions

    memory = engine.memories.get("luna", result.memory_id)
    assert memory.type == "conversation"
    assert memory.consequences.affection_delta == 5
    assert memory.description == 'I\'m nervous about the exam. - chose "You can do it."'


def test_apply_choice_reports_stage_change(engine) -> None:
    choice = DialogueChoice(id="bold", text="Let's hang out more.", outcomes=ChoiceOutcome(affection=12))
    result = engine.choices.apply_choice("luna", choice)
    assert result.stage_changed_to == "acquaintance"
    assert len(engine.memories.by_type("luna", "milestone")) == 1


def test_unlocks_set_flags(engine) -> None:
    engine.ledger.apply_delta("luna", 30)
    engine.state.set_flag("luna_opened_up")
    result = engine.choices.apply_choice("luna", _choices()[2])
    assert result.applied
    assert engine.state.has_flag("luna_secret_known")


def test_choice_emotions_are_bounded(engine) -> None:
    choice = DialogueChoice(id="x", text="x", outcomes=ChoiceOutcome(emotion_changes={"love": 500}))
    engine.choices.apply_choice("luna", choice)
    assert engine.emotions.get("luna").love == 100
    assert EmotionalState().love == 0
