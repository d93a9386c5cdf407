"""YAML content-table loading with base + override stacking.

A table ``<name>`` is read from ``<dir>/<name>.yaml`` (or ``.yml``) plus any
fragments in ``<dir>/<name>/*.yaml``; the override directory, when set, is
deep-merged on top. Lists of dicts that all carry an ``id`` merge per id, and an
override item with ``disabled: true`` removes the base item.
"""
from __future__ import annotations

import copy
import logging
import re
from pathlib import Path
from typing import Any, Iterator

import yaml

logger = logging.getLogger(__name__)

TABLE_NAMES: tuple[str, ...] = ("characters", "dates", "dialogues", "story")
_YAML_SUFFIXES = (".yaml", ".yml")


def normalize_key(value: str) -> str:
    """Lowercase snake key: "Late Night!" -> "late_night"."""
    return re.sub(r"[^a-z0-9]+", "_", (value or "").strip().lower()).strip("_")


def _keyed(items: list[Any]) -> bool:
    return all(isinstance(item, dict) and item.get("id") for item in items)


def deep_merge(base: Any, patch: Any) -> Any:
    """Overlay ``patch`` on ``base`` without mutating either.

    Mappings merge key by key, id-keyed lists merge per id, anything else is replaced.
    """
    if isinstance(base, dict) and isinstance(patch, dict):
        merged = copy.deepcopy(base)
        for key, value in patch.items():
            merged[key] = deep_merge(merged[key], value) if key in merged else copy.deepcopy(value)
        return merged
    if isinstance(base, list) and isinstance(patch, list) and _keyed(base + patch):
        return merge_list_by_id(base, patch)
    return copy.deepcopy(patch)


def merge_list_by_id(base: list[dict[str, Any]], patch: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # dicts keep insertion order: patched items stay in place, new ones append
    by_id: dict[str, dict[str, Any]] = {}
    for item in [*base, *patch]:
        if not isinstance(item, dict):
            continue
        item_id = str(item.get("id") or "")
        if item.get("disabled") is True:
            by_id.pop(item_id, None)
        elif item_id in by_id:
            by_id[item_id] = deep_merge(by_id[item_id], item)
        else:
            by_id[item_id] = copy.deepcopy(item)
    return list(by_id.values())


def _table_files(dir_path: Path, name: str) -> Iterator[Path]:
    """The table's main file(s) first, then its fragment directory in name order."""
    for suffix in _YAML_SUFFIXES:
        main = dir_path / f"{name}{suffix}"
        if main.is_file():
            yield main
    fragments = dir_path / name
    if fragments.is_dir():
        yield from sorted(p for p in fragments.iterdir() if p.is_file() and p.suffix in _YAML_SUFFIXES)


def _read_section(dir_path: Path, name: str) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for path in _table_files(dir_path, name):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            merged = deep_merge(merged, data)
        elif data is not None:
            logger.warning("Content file %s is not a mapping; ignored", path)
    return merged


def load_table(name: str, content_dir: Path, override_dir: Path | None = None) -> dict[str, Any]:
    """Load one content table, stacking the override directory over the base directory."""
    table = _read_section(content_dir, name)
    if not table:
        logger.warning("Content table '%s' missing or empty under %s", name, content_dir)
    if override_dir is not None and override_dir.exists():
        patch = _read_section(override_dir, name)
        if patch:
            logger.info("Applying content override for '%s' from %s", name, override_dir)
            table = deep_merge(table, patch)
    return table
