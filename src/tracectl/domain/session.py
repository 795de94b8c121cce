"""Saved exploration sessions.

A session is a named snapshot of an explorer state, stored per
(notation kind, model id). ``state`` holds the JSON-safe form produced
by :func:`tracectl.services.sessions.serialize_state`. It is opaque at
this level: a stored value that is not even JSON is kept as raw text so
that loading the session reports it as corrupt.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TraceSession(BaseModel):
    """``{name, savedAt, seedId, expandDepth, state}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    saved_at: str = Field(alias="savedAt")
    seed_id: str | None = Field(default=None, alias="seedId")
    expand_depth: int = Field(default=1, alias="expandDepth", ge=0)
    state: Any = Field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Wire form with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
