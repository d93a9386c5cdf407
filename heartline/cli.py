"""Heartline – unified CLI dispatcher.

All subcommands live in ``heartline/commands/*.py`` and expose a
``register(subparsers)`` function that adds themselves to argparse.
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def _load_dotenv() -> None:
    """Load .env file into os.environ (simple key=value parser, never overrides)."""
    env_file = Path.cwd() / ".env"
    if not env_file.exists():
        return
    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if not key:
            continue
        os.environ.setdefault(key, value)


def main(argv: list[str] | None = None) -> None:
    # Engine config is read from the environment at import time
    _load_dotenv()

    parser = argparse.ArgumentParser(
        prog="heartline",
        description="Heartline — relationship simulation engine CLI",
    )
    sub = parser.add_subparsers(dest="command")

    from heartline.commands.registry import register_all

    register_all(sub)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    # Each command stores a ``func`` on the namespace
    rc = args.func(args)
    sys.exit(rc or 0)
