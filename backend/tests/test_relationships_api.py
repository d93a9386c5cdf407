"""HTTP-level tests for the /v1/sessions router."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app.api.relationships import get_registry
from backend.app.core.sessions import SessionRegistry
from backend.main import app


@pytest.fixture
def registry(content, clock) -> SessionRegistry:
    return SessionRegistry(content, clock=clock)


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def session_id(client) -> str:
    resp = client.post("/v1/sessions", json={"player_id": "p1", "funds": 200, "seed": 11})
    assert resp.status_code == 200
    return resp.json()["session_id"]


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_session_defaults(client) -> None:
    body = client.post("/v1/sessions", json={}).json()
    assert body["player_id"] == "player"
    assert body["stats"] == {"charm": 10, "intelligence": 10, "strength": 10}


def test_unknown_session_is_404_with_structured_body(client) -> None:
    resp = client.get("/v1/sessions/nope/state")
    assert resp.status_code == 404
    body = resp.json()
    assert body["error_code"] == "SESSION_NOT_FOUND"
    assert body["details"]["path"] == "/v1/sessions/nope/state"
    assert body["details"]["status_code"] == 404
    assert body["operation"] == "state"


def test_router_http_errors_share_the_structured_body(client, session_id) -> None:
    base = f"/v1/sessions/{session_id}/characters/luna/memories"
    resp = client.post(f"{base}/mem_nope/recall")
    assert resp.status_code == 404
    body = resp.json()
    assert body["error_code"] == "MEMORIES_HTTP_404"
    assert body["message"] == "Memory 'mem_nope' not found"
    assert body["details"] == {"status_code": 404, "path": f"{base}/mem_nope/recall"}

    bad = client.put("/v1/sessions/copy-9/state", json={"funds": "lots"})
    assert bad.status_code == 422
    assert bad.json()["error_code"] == "STATE_HTTP_422"
    assert bad.json()["details"]["status_code"] == 422


def test_state_export_restore_and_delete(client, session_id) -> None:
    client.post(f"/v1/sessions/{session_id}/characters/hana/affection", json={"delta": 20})
    snapshot = client.get(f"/v1/sessions/{session_id}/state").json()
    assert snapshot["affection"] == {"hana": 20}

    restored = client.put("/v1/sessions/copy-1/state", json=snapshot)
    assert restored.status_code == 200
    assert restored.json()["player_id"] == "p1"
    assert client.get("/v1/sessions/copy-1/state").json() == snapshot

    assert client.put("/v1/sessions/copy-2/state", json={"funds": "lots"}).status_code == 422

    assert client.delete(f"/v1/sessions/{session_id}").status_code == 200
    assert client.delete(f"/v1/sessions/{session_id}").status_code == 404


def test_emotions_and_mood(client, session_id) -> None:
    resp = client.post(
        f"/v1/sessions/{session_id}/characters/rin/emotions",
        json={"delta": {"anger": 90, "bogus": 5}},
    )
    body = resp.json()
    assert body["emotional_state"]["anger"] == 100
    assert body["mood"]["current_mood"] == "angry"
    assert client.get(f"/v1/sessions/{session_id}/characters/rin/emotions").json() == body


def test_affection_progression_reports_stage_change(client, session_id) -> None:
    body = client.post(f"/v1/sessions/{session_id}/characters/yuki/affection", json={"delta": 15}).json()
    assert body == {"character_id": "yuki", "affection": 15, "stage": "acquaintance", "stage_changed_to": "acquaintance"}
    summary = client.get(f"/v1/sessions/{session_id}/characters/yuki").json()
    assert summary["stage_name"] == "Acquaintance"
    assert summary["memory_count"] == 1


def test_jealousy(client, session_id) -> None:
    client.post(f"/v1/sessions/{session_id}/characters/akane/affection", json={"delta": 50})
    body = client.post(
        f"/v1/sessions/{session_id}/characters/akane/jealousy",
        json={"other_character_id": "rin"},
    ).json()
    assert body["penalty"] == 5
    assert body["is_jealous"] is True
    assert body["affection"] == 45


def test_memory_endpoints(client, session_id) -> None:
    base = f"/v1/sessions/{session_id}/characters/luna/memories"
    first = client.post(base, json={"title": "Star chart", "emotional_weight": 20, "tags": ["romantic"]}).json()
    client.post(base, json={"title": "Quarrel", "type": "conflict", "emotional_weight": -30})

    recent = client.get(base, params={"limit": 1}).json()
    assert [m["title"] for m in recent] == ["Quarrel"]
    strongest = client.get(base, params={"order": "strongest"}).json()
    assert [m["title"] for m in strongest] == ["Quarrel", "Star chart"]
    conflicts = client.get(base, params={"type": "conflict"}).json()
    assert [m["title"] for m in conflicts] == ["Quarrel"]
    assert client.get(base, params={"type": "not_a_type"}).status_code == 422

    recalled = client.post(f"{base}/{first['memory_id']}/recall").json()
    assert recalled["recall_count"] == 2
    assert client.post(f"{base}/mem_nope/recall").status_code == 404

    patterns = client.get(f"{base}/patterns").json()
    assert patterns["positive_memories"] == 1
    assert patterns["conflict_memories"] == 1


def test_date_flow(client, session_id) -> None:
    prefix = f"/v1/sessions/{session_id}"
    client.post(f"{prefix}/characters/hana/affection", json={"delta": 30})

    locations = client.get(f"{prefix}/characters/hana/dates/locations").json()
    assert "school_cafe" in [loc["id"] for loc in locations]
    suggestions = client.get(f"{prefix}/characters/hana/dates/suggestions").json()
    assert suggestions

    refused = client.post(f"{prefix}/characters/hana/dates", json={"location_id": "city_park", "activity_ids": ["picnic"]})
    assert refused.json()["status"] == "cancelled"

    plan = client.post(
        f"{prefix}/characters/hana/dates",
        json={"location_id": "school_cafe", "activity_ids": ["coffee_chat"]},
    ).json()
    assert plan["status"] == "planned"
    assert plan["total_cost"] == 15

    results = client.post(f"{prefix}/dates/{plan['id']}/execute")
    assert results.status_code == 200
    assert len(results.json()["activity_results"]) == 1

    again = client.post(f"{prefix}/dates/{plan['id']}/execute")
    assert again.status_code == 409
    assert again.json()["error_code"] == "DATE_PLAN_STATE"
    assert client.post(f"{prefix}/dates/date_unknown/execute").status_code == 404

    history = client.get(f"{prefix}/characters/hana/dates/history").json()
    assert [p["id"] for p in history] == [plan["id"]]
    assert client.get(f"{prefix}/state").json()["funds"] == 185


def test_dialogue(client, session_id) -> None:
    body = client.post(
        f"/v1/sessions/{session_id}/characters/sakura/dialogue",
        json={"category": "greeting", "subcategory": "morning", "context": {"weather": "sunny"}},
    ).json()
    assert body["line"].endswith("Perfect weather for outdoor training!")
    assert body["tone"] == "in an even tone"

    missing = client.post(f"/v1/sessions/{session_id}/characters/mystery/dialogue", json={"category": "greeting"})
    assert missing.json()["line"] == "..."


def test_story_resolve(client, session_id) -> None:
    prefix = f"/v1/sessions/{session_id}/characters/sakura"
    client.post(f"{prefix}/affection", json={"delta": 10})

    resp = client.post(f"{prefix}/story/sakura_sparring_match/resolve", json={"choice_index": 9})
    assert resp.status_code == 422
    assert client.post(f"{prefix}/story/sakura_confession/resolve", json={"choice_index": 0}).status_code == 404

    body = client.post(f"{prefix}/story/sakura_sparring_match/resolve", json={"choice_index": 0}).json()
    assert body["unlocked_flags"] == ["sakura_respects_you"]
    assert client.post(f"{prefix}/story/sakura_sparring_match/resolve", json={"choice_index": 0}).status_code == 404


def test_story_check_returns_event_or_null(client, session_id) -> None:
    body = client.post(f"/v1/sessions/{session_id}/characters/sakura/story/check", json={"time_of_day": "morning"}).json()
    assert body["event"] is None or body["event"]["id"]


def test_advance_day(client, session_id, clock) -> None:
    client.post(f"/v1/sessions/{session_id}/characters/yuki/memories", json={"title": "Library", "emotional_weight": 20})
    clock.advance(days=5)
    report = client.post(f"/v1/sessions/{session_id}/advance-day").json()
    assert report["day"] == 2
    assert report["memories_faded"] == {"yuki": 1}
    memories = client.get(f"/v1/sessions/{session_id}/characters/yuki/memories").json()
    assert memories[0]["fade_level"] == 90
