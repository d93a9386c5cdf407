"""Tests for stage resolution, affection progression, romantic tension and jealousy."""
from __future__ import annotations

import random
import unittest

import pytest

from backend.app.core.relationship import (
    STAGE_ORDER,
    STAGES,
    AffectionLedger,
    compute_romantic_tension,
    confession_allowed,
    resolve_stage,
    round_half_up,
    stage_at_least,
    stage_index,
)
from backend.app.models.state import PlayerState


class TestStageBands(unittest.TestCase):
    def test_bands_partition_0_to_100(self) -> None:
        for affection in range(0, 101):
            matches = [s for s in STAGES if s.contains(affection)]
            self.assertEqual(len(matches), 1, f"affection {affection} matched {len(matches)} bands")
            self.assertIs(resolve_stage(affection), matches[0])

    def test_bands_are_contiguous_and_ordered(self) -> None:
        self.assertEqual(STAGES[0].min_affection, 0)
        self.assertEqual(STAGES[-1].max_affection, 100)
        for lower, upper in zip(STAGES, STAGES[1:]):
            self.assertEqual(lower.max_affection + 1, upper.min_affection)

    def test_fractional_affection_between_bands_takes_lower_band(self) -> None:
        cases = {
            9.5: "stranger",
            24.5: "acquaintance",
            44.5: "friend",
            64.5: "close_friend",
            79.5: "romantic_interest",
            94.5: "lover",
            99.9: "soulmate",
        }
        for affection, expected in cases.items():
            self.assertEqual(resolve_stage(affection).status, expected, f"affection {affection}")

    def test_any_float_in_range_resolves_to_its_band(self) -> None:
        rng = random.Random(42)
        for _ in range(500):
            affection = rng.uniform(0, 100)
            stage = resolve_stage(affection)
            index = STAGES.index(stage)
            self.assertLessEqual(stage.min_affection, affection)
            if index + 1 < len(STAGES):
                self.assertLess(affection, STAGES[index + 1].min_affection)

    def test_fallback_is_lowest_band(self) -> None:
        self.assertEqual(resolve_stage(-5).status, "stranger")
        self.assertEqual(resolve_stage(250).status, "stranger")

    def test_stage_order(self) -> None:
        self.assertEqual(
            STAGE_ORDER,
            ("stranger", "acquaintance", "friend", "close_friend", "romantic_interest", "lover", "soulmate"),
        )
        self.assertTrue(stage_at_least("close_friend", "friend"))
        self.assertFalse(stage_at_least("friend", "close_friend"))
        self.assertEqual(stage_index("unknown"), -1)


@pytest.mark.parametrize(
    ("status", "tension", "expected"),
    [
        ("romantic_interest", 69, False),
        ("romantic_interest", 70, True),
        ("romantic_interest", 71, True),
        ("lover", 100, False),
        ("close_friend", 90, False),
        ("soulmate", 100, False),
        ("stranger", 70, False),
    ],
)
def test_confession_gate(status: str, tension: int, expected: bool) -> None:
    assert confession_allowed(status, tension) is expected


def test_tension_factors_and_cap() -> None:
    assert compute_romantic_tension(50, interacted=False, jealous=False) == 50
    assert compute_romantic_tension(50, interacted=True, jealous=False) == 60
    assert compute_romantic_tension(50, interacted=False, jealous=True) == 40
    assert compute_romantic_tension(75, interacted=True, jealous=True) == 72
    assert compute_romantic_tension(90, interacted=True, jealous=False) == 100


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-2.5) == -2


def test_ledger_clamps() -> None:
    ledger = AffectionLedger(PlayerState())
    assert ledger.apply_delta("rin", 150) == 100
    assert ledger.apply_delta("rin", -500) == 0


def test_fresh_character_is_stranger_then_acquaintance(engine) -> None:
    assert engine.tracker.stage("hana").status == "stranger"
    engine.ledger.apply_delta("hana", 15)
    assert engine.tracker.stage("hana").status == "acquaintance"


def test_progress_records_milestone_on_stage_change(engine) -> None:
    change = engine.tracker.progress("hana", 12, reason="test")
    assert change is not None
    assert (change.old_status, change.new_status) == ("stranger", "acquaintance")
    assert change.is_upgrade
    milestone = engine.memories.get("hana", change.milestone_memory_id)
    assert milestone.type == "milestone"
    assert milestone.emotional_weight == 10
    assert engine.state.has_flag("hana_stage_acquaintance")
    # milestone memories carry no consequences of their own
    assert engine.ledger.get("hana") == 12


def test_progress_within_band_returns_none(engine) -> None:
    engine.tracker.progress("hana", 12)
    assert engine.tracker.progress("hana", 2) is None
    assert len(engine.memories.by_type("hana", "milestone")) == 1


def test_progress_downgrade(engine) -> None:
    engine.tracker.progress("hana", 30)
    change = engine.tracker.progress("hana", -10)
    assert change.new_status == "acquaintance"
    assert not change.is_upgrade


def test_unlocked_features_are_cumulative(engine) -> None:
    engine.ledger.apply_delta("rin", 30)
    features = engine.tracker.unlocked_features("rin")
    assert "basic_interaction" in features
    assert "casual_dates" in features
    assert not engine.tracker.has_feature("rin", "confession")


def test_romantic_tension_uses_session_interactions(engine) -> None:
    engine.ledger.apply_delta("luna", 65)
    assert engine.tracker.romantic_tension("luna") == 75
    assert engine.tracker.can_confess("luna")
    engine.state.mark_interaction("luna")
    assert engine.tracker.romantic_tension("luna") == 90


def test_close_friend_cannot_confess_even_with_interaction(engine) -> None:
    engine.ledger.apply_delta("luna", 60)
    engine.state.mark_interaction("luna")
    assert engine.tracker.romantic_tension("luna") == 60
    assert not engine.tracker.can_confess("luna")


def test_jealousy_requires_close_friend(engine) -> None:
    engine.ledger.apply_delta("akane", 44)
    assert engine.tracker.trigger_jealousy("akane", "rin") == 0
    assert engine.ledger.get("akane") == 44
    assert not engine.tracker.is_jealous("akane")


def test_jealousy_penalty_and_expiry(engine, clock) -> None:
    engine.ledger.apply_delta("akane", 70)
    jealousy_before = engine.emotions.get("akane").jealousy
    penalty = engine.tracker.trigger_jealousy("akane", "rin")
    assert penalty == 7
    assert engine.ledger.get("akane") == 63
    assert engine.emotions.get("akane").jealousy == jealousy_before + 7
    assert engine.tracker.is_jealous("akane")
    assert engine.state.has_flag("akane_jealous")

    # jealousy dampens tension: close_friend 50 * 0.8
    assert engine.tracker.romantic_tension("akane") == 40

    clock.advance(hours=23)
    assert engine.tracker.is_jealous("akane")
    clock.advance(hours=2)
    assert not engine.tracker.is_jealous("akane")
    assert engine.tracker.expire_jealousy() == ["akane"]
    assert not engine.state.has_flag("akane_jealous")


def test_jealousy_minimum_penalty(engine) -> None:
    engine.ledger.apply_delta("akane", 45)
    assert engine.tracker.trigger_jealousy("akane", "rin") == 5
    assert engine.ledger.get("akane") == 40
