"""``heartline content`` — load and validate the YAML content tables.

Exits 1 when any row fails validation or a location references an unknown
activity. ``--strict`` stops at the first invalid row with the full error.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError


def register(subparsers) -> None:
    p = subparsers.add_parser("content", help="Validate content tables (characters, dates, dialogues, story)")
    p.add_argument("--dir", default=None, help="Content directory (default: HEARTLINE_CONTENT_DIR or data/content)")
    p.add_argument("--override-dir", default=None, help="Directory deep-merged over --dir")
    p.add_argument("--strict", action="store_true", help="Raise on the first invalid row")
    p.set_defaults(func=run)


def run(args) -> int:
    from backend.app.content.repository import ContentRepository

    logging.basicConfig(level=logging.WARNING)
    repo = ContentRepository(args.dir, args.override_dir, strict=args.strict)
    if not repo.content_dir.is_dir():
        print(f"ERROR: content directory not found: {repo.content_dir}")
        return 1

    try:
        tables = repo.tables
    except ValidationError as e:
        print(f"ERROR: invalid content row:\n{e}")
        return 1

    print(f"Content directory: {repo.content_dir}")
    print(f"  characters:      {len(tables.characters)}")
    print(f"  locations:       {len(tables.locations)}")
    print(f"  activities:      {len(tables.activities)}")
    print(f"  dialogue sets:   {len(tables.dialogues)}")
    print(f"  meeting events:  {sum(len(v) for v in tables.meeting_events.values())}")
    print(f"  seasonal events: {sum(len(v) for v in tables.seasonal_events.values())}")
    print(f"  story arcs:      {sum(len(v) for v in tables.arcs.values())}")

    if tables.problems:
        print(f"\n{len(tables.problems)} problem(s):")
        for problem in tables.problems:
            print(f"  - {problem}")
        return 1
    print("\nOK")
    return 0
