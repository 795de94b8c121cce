"""Read-only model dataset consumed by the explorer.

A dataset is a snapshot of one model: its elements (graph nodes) and
relationships (graph edges). The explorer never mutates it.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Element(BaseModel):
    """A model element — one node in the dataset."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    type: str = ""
    layer: str | None = None
    documentation: str | None = None
    attrs: dict[str, Any] = Field(default_factory=dict)


class Relationship(BaseModel):
    """A model relationship between two elements."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: str = ""
    source_id: str = Field(
        validation_alias=AliasChoices("source_id", "sourceElementId", "source"),
    )
    target_id: str = Field(
        validation_alias=AliasChoices("target_id", "targetElementId", "target"),
    )
    name: str | None = None
    documentation: str | None = None
    attrs: dict[str, Any] = Field(default_factory=dict)


class Dataset(BaseModel):
    """Elements and relationships of one model, keyed by id.

    Accepts either mappings keyed by id or plain lists for ``elements``
    and ``relationships``; lists are keyed by each item's ``id``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = "model"
    kind: str = "generic"
    name: str = ""
    elements: dict[str, Element] = Field(default_factory=dict)
    relationships: dict[str, Relationship] = Field(default_factory=dict)

    @field_validator("elements", "relationships", mode="before")
    @classmethod
    def _key_by_id(cls, value: Any) -> Any:
        if isinstance(value, list):
            keyed: dict[str, Any] = {}
            for item in value:
                item_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
                if item_id is not None:
                    keyed[str(item_id)] = item
            return keyed
        return value

    def element(self, element_id: str) -> Element | None:
        """Look up an element by id."""
        return self.elements.get(element_id)

    def relationship(self, relationship_id: str) -> Relationship | None:
        """Look up a relationship by id."""
        return self.relationships.get(relationship_id)

    def resolved_relationships(self) -> list[Relationship]:
        """Relationships whose endpoints both exist, sorted by id."""
        return [
            rel
            for rel_id, rel in sorted(self.relationships.items())
            if rel.source_id in self.elements and rel.target_id in self.elements
        ]
