"""Static character profile rows from characters.yaml."""
from __future__ import annotations

from pydantic import BaseModel, Field


class CharacterProfile(BaseModel):
    id: str
    name: str
    description: str = ""
    # Partial emotion vector overlaid on the global default at first access
    baseline: dict[str, float] = Field(default_factory=dict)
