"""``heartline stages`` — print the relationship stage bands."""
from __future__ import annotations

import json


def register(subparsers) -> None:
    p = subparsers.add_parser("stages", help="Show relationship stage bands and unlocked features")
    p.add_argument("--json", action="store_true", help="Print as JSON")
    p.set_defaults(func=run)


def run(args) -> int:
    from backend.app.core.relationship import STAGES

    if args.json:
        print(json.dumps([s.model_dump() for s in STAGES], indent=2))
        return 0

    print(f"{'Stage':<20} {'Affection':<10} {'Tension':<8} {'Intimacy':<9} Features")
    print("-" * 78)
    for stage in STAGES:
        band = f"{stage.min_affection}-{stage.max_affection}"
        features = ", ".join(stage.unlocked_features)
        print(f"{stage.name:<20} {band:<10} {stage.romantic_tension:<8} {stage.intimacy_level:<9} {features}")
    return 0
