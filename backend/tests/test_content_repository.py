from __future__ import annotations

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from backend.app.content.loader import deep_merge, load_table, merge_list_by_id, normalize_key
from backend.app.content.repository import ContentRepository


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_bundled_content_loads_cleanly(content) -> None:
    tables = content.tables
    assert content.problems() == []
    assert len(tables.characters) == 9
    assert len(tables.locations) == 7
    assert len(tables.activities) == 21
    assert content.display_name("mystery") == "???"
    assert content.baselines()["sakura"]["pride"] == 70


def test_dialogue_lookups_degrade_to_empty(content) -> None:
    assert content.dialogue_lines("sakura", "greeting", "morning")
    assert content.dialogue_lines("sakura", "compliment")
    # a subcategory on a flat list, or a category used without its subcategory, yields nothing
    assert content.dialogue_lines("sakura", "compliment", "extra") == []
    assert content.dialogue_lines("sakura", "greeting") == []
    assert content.dialogue_lines("nobody", "greeting", "morning") == []
    assert content.weather_line("rainy", "sakura")
    assert content.weather_line("foggy", "sakura") is None


def test_event_lookups_normalize_keys(content) -> None:
    assert [e.id for e in content.meeting_events("Evening")] == ["evening_rooftop_encounter"]
    assert [e.id for e in content.seasonal_events("WINTER")] == ["winter_snow"]
    assert content.meeting_events("afternoon") == []
    assert [a.id for a in content.story_arcs("sakura")] == ["sakura_rivals", "sakura_heart"]
    assert content.story_arcs("nobody") == []


def test_missing_directory_yields_empty_tables() -> None:
    with tempfile.TemporaryDirectory() as td:
        repo = ContentRepository(Path(td) / "absent")
        assert repo.tables.characters == {}
        assert repo.location("school_cafe") is None
        assert repo.dialogue_lines("sakura", "greeting", "morning") == []
        assert repo.display_name("sakura") == "sakura"


def test_override_directory_patches_and_disables_by_id() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(
            root / "base" / "dates.yaml",
            """
locations:
  - id: cafe
    name: Cafe
    required_stage: acquaintance
    cost_per_hour: 10
    activity_ids: [chat, cake]
activities:
  - id: chat
    name: Chat
  - id: cake
    name: Cake
""",
        )
        _write(
            root / "override" / "dates.yaml",
            """
locations:
  - id: cafe
    cost_per_hour: 12
    activity_ids: [chat]
activities:
  - id: cake
    disabled: true
  - id: tea
    name: Tea
""",
        )
        repo = ContentRepository(root / "base", root / "override")
        cafe = repo.location("cafe")
        assert cafe.name == "Cafe"
        assert cafe.cost_per_hour == 12
        assert cafe.activity_ids == ["chat"]
        assert sorted(repo.tables.activities) == ["chat", "tea"]
        assert repo.problems() == []


def test_override_dir_defaults_from_config() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(root / "base" / "characters.yaml", "characters:\n  - id: rin\n    name: Rin\n")
        _write(root / "override" / "characters.yaml", "characters:\n  - id: rin\n    name: Rin-chan\n")
        with patch("backend.app.content.repository.resolve_content_override_dir", return_value=root / "override"):
            repo = ContentRepository(root / "base")
        assert repo.display_name("rin") == "Rin-chan"


def test_fragment_files_are_merged() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(root / "characters.yaml", "characters:\n  - id: rin\n    name: Rin\n")
        _write(root / "characters" / "extra.yaml", "characters:\n  - id: mei\n    name: Mei\n")
        table = load_table("characters", root)
        assert [c["id"] for c in table["characters"]] == ["rin", "mei"]


def test_invalid_rows_are_skipped_and_reported() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(
            root / "dates.yaml",
            """
locations:
  - id: cafe
    name: Cafe
    required_stage: best_friends_forever
  - id: park
    name: Park
    activity_ids: [picnic]
activities: []
""",
        )
        repo = ContentRepository(root)
        assert list(repo.tables.locations) == ["park"]
        problems = repo.problems()
        assert any(p.startswith("locations[cafe]") for p in problems)
        assert any("unknown activities" in p for p in problems)


def test_strict_mode_raises_on_invalid_rows() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(root / "characters.yaml", "characters:\n  - id: rin\n")
        repo = ContentRepository(root, strict=True)
        with pytest.raises(ValidationError):
            repo.tables


def test_reload_picks_up_changes() -> None:
    with tempfile.TemporaryDirectory() as td:
        root = Path(td)
        _write(root / "characters.yaml", "characters:\n  - id: rin\n    name: Rin\n")
        repo = ContentRepository(root)
        assert repo.display_name("rin") == "Rin"
        _write(root / "characters.yaml", "characters:\n  - id: rin\n    name: Rin Hoshino\n")
        assert repo.display_name("rin") == "Rin"
        repo.reload()
        assert repo.display_name("rin") == "Rin Hoshino"


def test_merge_helpers() -> None:
    assert deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}}) == {"a": {"b": 1, "c": 3}}
    assert deep_merge({"tags": ["x"]}, {"tags": ["y"]}) == {"tags": ["y"]}
    merged = merge_list_by_id([{"id": "a", "v": 1}, {"id": "b"}], [{"id": "a", "v": 2}, {"id": "b", "disabled": True}])
    assert merged == [{"id": "a", "v": 2}]
    assert normalize_key("  Late Night! ") == "late_night"
