"""Command registry for the heartline CLI.

Keeps command discovery/wiring in one module so the CLI entrypoint stays thin.
"""
from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Iterable

COMMAND_MODULES: tuple[str, ...] = (
    "serve",
    "simulate",
    "content",
    "stages",
    "doctor",
)


def iter_command_modules() -> Iterable[ModuleType]:
    """Yield command modules in stable registration order."""
    for name in COMMAND_MODULES:
        yield import_module(f"heartline.commands.{name}")


def register_all(subparsers) -> None:
    for module in iter_command_modules():
        module.register(subparsers)
