"""Tests for the per-character emotion store: lazy seeding, clamped deltas and mood side effects."""
from __future__ import annotations

import random

from backend.app.core.emotional_state import EmotionalStateStore
from backend.app.models.emotion import EMOTION_FIELDS, CharacterCondition, EmotionalState
from backend.app.models.state import PlayerState


def _store(clock, baselines=None) -> EmotionalStateStore:
    return EmotionalStateStore(PlayerState(), baselines or {}, clock=clock)


def test_lazy_seed_overlays_baseline_on_global_default(clock) -> None:
    store = _store(clock, {"sakura": {"pride": 70, "happiness": 60, "not_an_emotion": 99}})
    state = store.get("sakura")
    assert state.pride == 70
    assert state.happiness == 60
    # untouched fields keep the global default
    assert state.curiosity == EmotionalState().curiosity


def test_unknown_character_uses_global_default(clock) -> None:
    store = _store(clock)
    assert store.get("nobody") == EmotionalState()


def test_apply_delta_adds_and_clamps(clock) -> None:
    store = _store(clock)
    state = store.apply_delta("x", {"love": 150, "sadness": -500, "trust": 5})
    assert state.love == 100
    assert state.sadness == 0
    assert state.trust == EmotionalState().trust + 5


def test_apply_delta_ignores_unknown_keys(clock) -> None:
    store = _store(clock)
    before = store.get("x")
    after = store.apply_delta("x", {"charisma": 40})
    assert after == before


def test_values_stay_in_bounds_for_random_delta_sequences(clock) -> None:
    store = _store(clock)
    rng = random.Random(99)
    for _ in range(300):
        delta = {rng.choice(EMOTION_FIELDS): rng.uniform(-80, 80) for _ in range(3)}
        state = store.apply_delta("fuzz", delta)
        for name in EMOTION_FIELDS:
            assert 0.0 <= state.value(name) <= 100.0


def test_apply_delta_reclassifies_mood(clock) -> None:
    store = _store(clock)
    store.apply_delta("x", {"anger": 65})
    mood = store.mood("x")
    assert mood.current_mood == "angry"
    assert mood.trigger == "interaction"
    assert len(mood.history) == 1


def test_condition_delta_is_clamped(clock) -> None:
    store = _store(clock)
    condition = store.apply_condition_delta("x", {"calmness": 80, "energy": -90})
    assert condition == CharacterCondition(calmness=100, energy=0)
