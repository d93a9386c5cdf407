"""
FastAPI endpoints exposing the relationship engine per play session.
Sessions live in an in-process SessionRegistry; state can be exported and restored as JSON.
"""
from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from backend.app.content.repository import ContentRepository
from backend.app.core.sessions import SessionRegistry
from backend.app.models.dates import DateLocation, DatePlan, DateResults, DateSuggestion
from backend.app.models.dialogue import DialogueContext
from backend.app.models.emotion import EmotionalState, MoodState
from backend.app.models.memory import Memory, MemoryConsequences, MemoryContext, MemoryDraft, MemoryPatterns, MemoryType
from backend.app.models.state import DayReport
from backend.app.models.story import EventResolution, StoryEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/sessions", tags=["sessions"])

_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    """App-lifetime registry over the default content directory (overridable in tests)."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry(ContentRepository())
    return _registry


# -- request / response models ------------------------------------------------


class CreateSessionRequest(BaseModel):
    player_id: str = "player"
    funds: Optional[int] = None
    stats: Optional[dict[str, int]] = None
    seed: Optional[int] = None


class CreateSessionResponse(BaseModel):
    session_id: str
    player_id: str
    funds: int
    stats: dict[str, int]


class EmotionDeltaRequest(BaseModel):
    delta: dict[str, float] = Field(default_factory=dict)
    trigger: str = "interaction"


class EmotionsResponse(BaseModel):
    character_id: str
    emotional_state: EmotionalState
    mood: MoodState


class AffectionRequest(BaseModel):
    delta: int
    reason: str = ""


class AffectionResponse(BaseModel):
    character_id: str
    affection: int
    stage: str
    stage_changed_to: Optional[str] = None


class JealousyRequest(BaseModel):
    other_character_id: str


class JealousyResponse(BaseModel):
    character_id: str
    penalty: int
    is_jealous: bool
    affection: int


class AddMemoryRequest(BaseModel):
    type: MemoryType = "conversation"
    title: str
    description: str = ""
    location: str = ""
    time_of_day: str = ""
    emotional_weight: float = 0.0
    tags: list[str] = Field(default_factory=list)
    context: MemoryContext = Field(default_factory=MemoryContext)
    consequences: MemoryConsequences = Field(default_factory=MemoryConsequences)


class AddMemoryResponse(BaseModel):
    memory_id: str


class PlanDateRequest(BaseModel):
    location_id: str
    activity_ids: list[str] = Field(default_factory=list)


class DialogueRequest(BaseModel):
    category: str
    subcategory: Optional[str] = None
    context: DialogueContext = Field(default_factory=DialogueContext)


class DialogueResponse(BaseModel):
    character_id: str
    line: str
    tone: str


class StoryCheckRequest(BaseModel):
    time_of_day: str = "morning"
    location: Optional[str] = None


class StoryCheckResponse(BaseModel):
    event: Optional[StoryEvent] = None


class ResolveEventRequest(BaseModel):
    choice_index: int


# -- sessions -------------------------------------------------------------------


@router.post("", response_model=CreateSessionResponse)
def create_session(body: CreateSessionRequest, registry: SessionRegistry = Depends(get_registry)):
    """Start a new play session with its own PlayerState and random source."""
    session_id, engine = registry.create(
        player_id=body.player_id,
        funds=body.funds,
        stats=body.stats,
        seed=body.seed,
    )
    return CreateSessionResponse(
        session_id=session_id,
        player_id=engine.state.player_id,
        funds=engine.state.funds,
        stats=dict(engine.state.stats),
    )


@router.get("/{session_id}/state")
def export_state(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    """Full PlayerState snapshot (JSON) for persistence by the caller."""
    with registry.session(session_id) as engine:
        return engine.snapshot()


@router.put("/{session_id}/state")
def restore_state(
    session_id: str,
    snapshot: dict[str, Any],
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    try:
        engine = registry.restore(session_id, snapshot)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid state snapshot: {e.error_count()} error(s)")
    return {"session_id": session_id, "player_id": engine.state.player_id, "day": engine.state.day}


@router.delete("/{session_id}")
def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    registry.delete(session_id)
    return {"deleted": session_id}


@router.post("/{session_id}/advance-day", response_model=DayReport)
def advance_day(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Daily tick: fade memories, apply memory influences, expire jealousy."""
    with registry.session(session_id) as engine:
        return engine.advance_day()


# -- characters -----------------------------------------------------------------


@router.get("/{session_id}/characters/{character_id}")
def character_summary(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        return engine.character_summary(character_id)


@router.get("/{session_id}/characters/{character_id}/emotions", response_model=EmotionsResponse)
def get_emotions(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        return EmotionsResponse(
            character_id=character_id,
            emotional_state=engine.emotions.get(character_id),
            mood=engine.emotions.mood(character_id),
        )


@router.post("/{session_id}/characters/{character_id}/emotions", response_model=EmotionsResponse)
def apply_emotions(
    session_id: str,
    character_id: str,
    body: EmotionDeltaRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        state = engine.emotions.apply_delta(character_id, body.delta, trigger=body.trigger)
        return EmotionsResponse(character_id=character_id, emotional_state=state, mood=engine.emotions.mood(character_id))


@router.post("/{session_id}/characters/{character_id}/affection", response_model=AffectionResponse)
def apply_affection(
    session_id: str,
    character_id: str,
    body: AffectionRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        change = engine.tracker.progress(character_id, body.delta, reason=body.reason or "api")
        return AffectionResponse(
            character_id=character_id,
            affection=engine.ledger.get(character_id),
            stage=engine.tracker.stage(character_id).status,
            stage_changed_to=change.new_status if change else None,
        )


@router.post("/{session_id}/characters/{character_id}/jealousy", response_model=JealousyResponse)
def trigger_jealousy(
    session_id: str,
    character_id: str,
    body: JealousyRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        penalty = engine.tracker.trigger_jealousy(character_id, body.other_character_id)
        return JealousyResponse(
            character_id=character_id,
            penalty=penalty,
            is_jealous=engine.tracker.is_jealous(character_id),
            affection=engine.ledger.get(character_id),
        )


# -- memories -------------------------------------------------------------------


@router.get("/{session_id}/characters/{character_id}/memories", response_model=list[Memory])
def list_memories(
    session_id: str,
    character_id: str,
    order: Literal["recent", "strongest"] = "recent",
    limit: int = Query(default=5, ge=1, le=100),
    memory_type: Optional[MemoryType] = Query(default=None, alias="type"),
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        if memory_type is not None:
            return engine.memories.by_type(character_id, memory_type)[:limit]
        if order == "strongest":
            return engine.memories.strongest(character_id, limit)
        return engine.memories.recent(character_id, limit)


@router.post("/{session_id}/characters/{character_id}/memories", response_model=AddMemoryResponse)
def add_memory(
    session_id: str,
    character_id: str,
    body: AddMemoryRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        draft = MemoryDraft(
            character_id=character_id,
            player_id=engine.state.player_id,
            participants=[character_id, engine.state.player_id],
            **body.model_dump(),
        )
        return AddMemoryResponse(memory_id=engine.memories.add(draft))


@router.post("/{session_id}/characters/{character_id}/memories/{memory_id}/recall", response_model=Memory)
def recall_memory(
    session_id: str,
    character_id: str,
    memory_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        memory = engine.memories.recall(character_id, memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail=f"Memory '{memory_id}' not found")
    return memory


@router.get("/{session_id}/characters/{character_id}/memories/patterns", response_model=MemoryPatterns)
def memory_patterns(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        return engine.memories.analyze_patterns(character_id)


# -- dates ----------------------------------------------------------------------


@router.get("/{session_id}/characters/{character_id}/dates/locations", response_model=list[DateLocation])
def date_locations(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Locations the current relationship stage allows."""
    with registry.session(session_id) as engine:
        return engine.dates.available_locations(character_id)


@router.get("/{session_id}/characters/{character_id}/dates/suggestions", response_model=list[DateSuggestion])
def date_suggestions(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        return engine.dates.suggestions(character_id)


@router.get("/{session_id}/characters/{character_id}/dates/history", response_model=list[DatePlan])
def date_history(session_id: str, character_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        return engine.dates.history(character_id)


@router.post("/{session_id}/characters/{character_id}/dates", response_model=DatePlan)
def plan_date(
    session_id: str,
    character_id: str,
    body: PlanDateRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Validate and price a date. Refusals come back as a cancelled plan with a reason."""
    with registry.session(session_id) as engine:
        return engine.plan_date(character_id, body.location_id, body.activity_ids)


@router.post("/{session_id}/dates/{plan_id}/execute", response_model=DateResults)
def execute_date(session_id: str, plan_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.session(session_id) as engine:
        results = engine.execute_planned_date(plan_id)
    if results is None:
        raise HTTPException(status_code=404, detail=f"Date plan '{plan_id}' not found")
    return results


# -- dialogue & story -------------------------------------------------------------


@router.post("/{session_id}/characters/{character_id}/dialogue", response_model=DialogueResponse)
def dialogue(
    session_id: str,
    character_id: str,
    body: DialogueRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        line = engine.talk(character_id, body.category, body.subcategory, body.context)
        return DialogueResponse(character_id=character_id, line=line, tone=engine.dialogue.describe_tone(character_id))


@router.post("/{session_id}/characters/{character_id}/story/check", response_model=StoryCheckResponse)
def check_story(
    session_id: str,
    character_id: str,
    body: StoryCheckRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        event = engine.check_story(character_id, body.time_of_day, body.location)
    return StoryCheckResponse(event=event)


@router.post(
    "/{session_id}/characters/{character_id}/story/{event_id}/resolve",
    response_model=EventResolution,
)
def resolve_story(
    session_id: str,
    character_id: str,
    event_id: str,
    body: ResolveEventRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    with registry.session(session_id) as engine:
        event = engine.find_story_event(character_id, event_id)
        if event is None:
            raise HTTPException(status_code=404, detail=f"Story event '{event_id}' is not available")
        resolution = engine.resolve_story(character_id, event, body.choice_index)
    if resolution is None:
        raise HTTPException(status_code=422, detail=f"Choice {body.choice_index} is out of range for '{event_id}'")
    return resolution
