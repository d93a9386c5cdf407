"""Typed, cached access to the YAML content tables: characters, date locations and
activities, dialogue lines and story events.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from backend.app.config import STRICT_CONTENT, resolve_content_dir, resolve_content_override_dir
from backend.app.content.loader import TABLE_NAMES, load_table, normalize_key
from backend.app.models.character import CharacterProfile
from backend.app.models.dates import DateActivity, DateLocation
from backend.app.models.story import StoryArc, StoryEvent

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class ContentTables:
    """Typed view over the four YAML tables."""
    characters: dict[str, CharacterProfile] = field(default_factory=dict)
    locations: dict[str, DateLocation] = field(default_factory=dict)
    activities: dict[str, DateActivity] = field(default_factory=dict)
    dialogues: dict[str, dict[str, Any]] = field(default_factory=dict)
    weather_lines: dict[str, dict[str, str]] = field(default_factory=dict)
    meeting_events: dict[str, list[StoryEvent]] = field(default_factory=dict)
    seasonal_events: dict[str, list[StoryEvent]] = field(default_factory=dict)
    arcs: dict[str, list[StoryArc]] = field(default_factory=dict)
    problems: list[str] = field(default_factory=list)


class ContentRepository:
    """App-lifetime, read-only content repository.

    Tables load lazily on first access and are cached. Invalid rows are logged and
    skipped (or raise when HEARTLINE_STRICT_CONTENT is on); missing tables leave the
    corresponding lookups empty so callers fall back to placeholders / no event.
    """

    def __init__(
        self,
        content_dir: str | Path | None = None,
        override_dir: str | Path | None = None,
        *,
        strict: bool | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._content_dir = resolve_content_dir(content_dir)
        self._override_dir = Path(override_dir).resolve() if override_dir else resolve_content_override_dir()
        self._strict = STRICT_CONTENT if strict is None else strict
        self._tables: ContentTables | None = None

    @property
    def content_dir(self) -> Path:
        return self._content_dir

    @property
    def tables(self) -> ContentTables:
        with self._lock:
            if self._tables is None:
                self._tables = self._load()
            return self._tables

    def reload(self) -> ContentTables:
        with self._lock:
            self._tables = None
            return self.tables

    # -- loading --------------------------------------------------------

    def _validate_rows(self, rows: Any, model: type[M], section: str, problems: list[str]) -> list[M]:
        out: list[M] = []
        if rows is None:
            return out
        if not isinstance(rows, list):
            problems.append(f"{section}: expected a list, got {type(rows).__name__}")
            logger.warning("Content section %s is not a list; skipped", section)
            return out
        for row in rows:
            try:
                out.append(model.model_validate(row))
            except ValidationError as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                problems.append(f"{section}[{row_id}]: {e.error_count()} validation error(s)")
                if self._strict:
                    raise
                logger.warning("Failed to validate %s row %s: %s", section, row_id, e)
        return out

    def _validate_grouped(
        self,
        groups: Any,
        model: type[M],
        section: str,
        problems: list[str],
        key_fn: Callable[[str], str] = normalize_key,
    ) -> dict[str, list[M]]:
        out: dict[str, list[M]] = {}
        if not isinstance(groups, dict):
            return out
        for key, rows in groups.items():
            out[key_fn(str(key))] = self._validate_rows(rows, model, f"{section}.{key}", problems)
        return out

    def _load(self) -> ContentTables:
        raw = {name: load_table(name, self._content_dir, self._override_dir) for name in TABLE_NAMES}
        problems: list[str] = []
        tables = ContentTables(problems=problems)

        characters = self._validate_rows(raw["characters"].get("characters"), CharacterProfile, "characters", problems)
        tables.characters = {c.id: c for c in characters}

        dates = raw["dates"]
        tables.locations = {
            loc.id: loc for loc in self._validate_rows(dates.get("locations"), DateLocation, "locations", problems)
        }
        tables.activities = {
            act.id: act for act in self._validate_rows(dates.get("activities"), DateActivity, "activities", problems)
        }
        for loc in tables.locations.values():
            missing = [a for a in loc.activity_ids if a not in tables.activities]
            if missing:
                problems.append(f"locations[{loc.id}]: unknown activities {missing}")
                logger.warning("Location %s references unknown activities %s", loc.id, missing)

        dialogues = raw["dialogues"]
        tables.dialogues = {str(k): v for k, v in (dialogues.get("dialogues") or {}).items() if isinstance(v, dict)}
        tables.weather_lines = {
            str(weather): {str(cid): str(line) for cid, line in lines.items()}
            for weather, lines in (dialogues.get("weather") or {}).items()
            if isinstance(lines, dict)
        }

        story = raw["story"]
        meeting = self._validate_grouped(story.get("meeting_events"), StoryEvent, "meeting_events", problems)
        tables.meeting_events = {
            k: [e.model_copy(update={"kind": "meeting"}) for e in events] for k, events in meeting.items()
        }
        seasonal = self._validate_grouped(story.get("seasonal_events"), StoryEvent, "seasonal_events", problems)
        tables.seasonal_events = {
            k: [e.model_copy(update={"kind": "seasonal"}) for e in events] for k, events in seasonal.items()
        }
        tables.arcs = self._validate_grouped(story.get("arcs"), StoryArc, "arcs", problems, key_fn=str)

        logger.info(
            "Loaded content from %s: %d characters, %d locations, %d activities, %d arcs (%d problems)",
            self._content_dir,
            len(tables.characters),
            len(tables.locations),
            len(tables.activities),
            sum(len(v) for v in tables.arcs.values()),
            len(problems),
        )
        return tables

    # -- lookups --------------------------------------------------------

    def display_name(self, character_id: str) -> str:
        profile = self.tables.characters.get(character_id)
        return profile.name if profile else character_id

    def baselines(self) -> dict[str, dict[str, float]]:
        return {cid: dict(profile.baseline) for cid, profile in self.tables.characters.items()}

    def location(self, location_id: str) -> DateLocation | None:
        return self.tables.locations.get(location_id)

    def activity(self, activity_id: str) -> DateActivity | None:
        return self.tables.activities.get(activity_id)

    def dialogue_lines(self, character_id: str, category: str, subcategory: str | None = None) -> list[str]:
        """Lines for (character, category[, subcategory]); [] when any level is missing."""
        node: Any = self.tables.dialogues.get(character_id, {}).get(category)
        if subcategory is not None:
            node = node.get(subcategory) if isinstance(node, dict) else None
        if not isinstance(node, list):
            return []
        return [str(line) for line in node if line]

    def weather_line(self, weather: str, character_id: str) -> str | None:
        return self.tables.weather_lines.get(weather, {}).get(character_id)

    def meeting_events(self, time_of_day: str) -> list[StoryEvent]:
        return list(self.tables.meeting_events.get(normalize_key(time_of_day), []))

    def seasonal_events(self, season: str) -> list[StoryEvent]:
        return list(self.tables.seasonal_events.get(normalize_key(season), []))

    def story_arcs(self, character_id: str) -> list[StoryArc]:
        return list(self.tables.arcs.get(character_id, []))

    def problems(self) -> list[str]:
        return list(self.tables.problems)
