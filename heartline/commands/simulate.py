"""``heartline simulate`` — seeded, scripted play-through of one relationship.

Each simulated day the player greets the character, pays a compliment, takes
any story event that fires (first choice), goes on a date every few days when
one is affordable, and then the daily tick runs. The same seed always prints
the same play-through.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone


def register(subparsers) -> None:
    p = subparsers.add_parser("simulate", help="Run a seeded scripted play-through")
    p.add_argument("--character", default="sakura", help="Character id (default: sakura)")
    p.add_argument("--days", type=int, default=14, help="Days to simulate (default: 14)")
    p.add_argument("--seed", type=int, default=7, help="Random seed (default: 7)")
    p.add_argument("--funds", type=int, default=None, help="Starting funds (default: HEARTLINE_DEFAULT_FUNDS)")
    p.add_argument("--date-every", type=int, default=3, help="Go on a date every N days (default: 3)")
    p.add_argument("--json", action="store_true", help="Print the final state snapshot as JSON")
    p.set_defaults(func=run)


class SimulatedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def _compliment():
    from backend.app.models.dialogue import ChoiceOutcome, DialogueChoice

    return DialogueChoice(
        id="compliment",
        text="You look great today.",
        outcomes=ChoiceOutcome(affection=3, emotion_changes={"happiness": 4, "shyness": 2}),
    )


def _go_on_date(engine, character_id: str) -> str | None:
    for suggestion in engine.dates.suggestions(character_id):
        activity_ids = [suggestion.activities[0].id]
        if engine.dates.estimate_cost(suggestion.location.id, activity_ids) > engine.state.funds:
            continue
        plan = engine.plan_date(character_id, suggestion.location.id, activity_ids)
        if plan.is_cancelled:
            continue
        results = engine.execute_planned_date(plan.id)
        outcome = "success" if results.overall_success else "flop"
        return f"date at {suggestion.location.name} ({outcome}, {results.total_affection_gained:+d})"
    return None


def run(args) -> int:
    from backend.app.config import log_level
    from backend.app.content.repository import ContentRepository
    from backend.app.core.engine import RelationshipEngine, new_player_state
    from backend.app.core.randomness import make_rng
    from backend.app.models.dialogue import DialogueContext

    logging.basicConfig(level=max(log_level(), logging.WARNING))

    content = ContentRepository()
    cid = args.character
    if cid not in content.tables.characters:
        print(f"ERROR: unknown character '{cid}' (known: {', '.join(sorted(content.tables.characters))})")
        return 1

    clock = SimulatedClock(datetime(2024, 4, 1, 8, 0, tzinfo=timezone.utc))
    engine = RelationshipEngine(
        content,
        new_player_state("simulator", funds=args.funds),
        rng=make_rng(args.seed, player_id="simulator"),
        clock=clock,
    )
    compliment = _compliment()
    name = content.display_name(cid)
    print(f"Simulating {args.days} day(s) with {name} (seed={args.seed})")

    for day in range(1, args.days + 1):
        events: list[str] = []
        line = engine.talk(cid, "greeting", "morning", DialogueContext(time_of_day="morning"))
        result = engine.choices.apply_choice(cid, compliment, prompt="How do I look?", time_of_day="morning")
        if result.stage_changed_to:
            events.append(f"stage -> {result.stage_changed_to}")

        clock.advance(hours=6)
        event = engine.check_story(cid, "afternoon")
        if event is not None and event.choices:
            resolution = engine.resolve_story(cid, event, 0)
            if resolution is not None:
                events.append(f"event '{event.title}' ({resolution.affection_delta:+d})")

        if args.date_every > 0 and day % args.date_every == 0:
            summary = _go_on_date(engine, cid)
            if summary:
                events.append(summary)

        summary = engine.character_summary(cid)
        print(
            f"Day {day:>3}: affection={summary['affection']:>3} stage={summary['stage_name']:<17} "
            f"mood={summary['mood']:<11} funds={engine.state.funds:>4}  {line}"
        )
        for item in events:
            print(f"         * {item}")

        clock.advance(hours=18)
        engine.advance_day()

    if args.json:
        print(json.dumps(engine.snapshot(), indent=2))
    return 0
