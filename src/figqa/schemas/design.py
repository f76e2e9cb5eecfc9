"""Pydantic models for design trees and the reduced blueprint."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoundingBox(BaseModel):
    """Absolute bounding box of a design node."""

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


class DesignNode(BaseModel):
    """A node of the Figma document tree, as returned by the files API.

    Only the fields the pipeline reads are modelled; everything else is ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    name: str = ""
    type: str = ""  # FRAME, GROUP, TEXT, RECTANGLE, ELLIPSE, IMAGE, COMPONENT, INSTANCE, ...
    absolute_bounding_box: BoundingBox | None = Field(default=None, alias="absoluteBoundingBox")
    characters: str = ""
    children: list[DesignNode] = []

    @field_validator("id", "name", "type", "characters", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: float
    height: float


class BlueprintNode(BaseModel):
    """One node of the reduced design summary."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    type: str = ""
    dimensions: Dimensions | None = None
    text: str | None = None
    children: list[BlueprintNode] | None = None

    def depth(self) -> int:
        """Depth of this subtree; a leaf has depth 0."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def max_breadth(self) -> int:
        """Largest sibling count anywhere in this subtree."""
        if not self.children:
            return 0
        return max(len(self.children), *(child.max_breadth() for child in self.children))


class Blueprint(BlueprintNode):
    """Depth- and breadth-bounded summary of a design tree, sized for a prompt."""

    def to_prompt_json(self) -> str:
        return json.dumps(self.model_dump(exclude_none=True), indent=2, ensure_ascii=False)
