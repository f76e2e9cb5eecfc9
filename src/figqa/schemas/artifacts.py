"""Pydantic models for the artifacts each stage produces."""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from figqa.schemas.stage import Stage

T = TypeVar("T")

# "1. ", "2) ", "- ", "* ", "Step 3: "
_STEP_PREFIX = re.compile(r"^\s*(?:[-*•]\s+|\d+[.)]\s+|step\s*\d+\s*[:.)-]\s*)+", re.IGNORECASE)


def _coerce_text(v: object) -> object:
    if v is None:
        return ""
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, bool):
        return str(v).lower()
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, list):
        return " ".join(str(_coerce_text(item)) for item in v if item not in (None, "")).strip()
    if isinstance(v, dict):
        return json.dumps(v, ensure_ascii=False)
    return str(v)


def _coerce_optional_text(v: object) -> object:
    if v is None:
        return None
    if isinstance(v, list):
        return "; ".join(str(_coerce_text(item)) for item in v if item not in (None, ""))
    return _coerce_text(v)


def _step_text(item: object) -> str:
    if isinstance(item, dict):
        for key in ("action", "step", "description", "text"):
            if item.get(key):
                return str(_coerce_text(item[key]))
        return json.dumps(item, ensure_ascii=False)
    return str(_coerce_text(item))


def coerce_steps(v: object) -> list[str]:
    """Turn whatever the model sent as ``steps`` into a list of non-empty strings."""
    if v is None:
        return []
    if isinstance(v, str):
        raw = v.splitlines()
    elif isinstance(v, (list, tuple)):
        raw = [_step_text(item) for item in v]
    elif isinstance(v, dict):
        raw = [_step_text(item) for item in v.values()]
    else:
        raw = [str(v)]

    steps = []
    for line in raw:
        text = _STEP_PREFIX.sub("", line).strip()
        if text:
            steps.append(text)
    return steps


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TestCase(BaseModel):
    """A single test case derived from one or more requirements."""

    __test__ = False  # not a pytest class

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("", validation_alias=AliasChoices("id", "test_case_id", "testCaseId", "tc_id"))
    title: str = Field("", validation_alias=AliasChoices("title", "name", "summary"))
    description: str = ""
    steps: list[str] = []
    expected_result: str = Field(
        "",
        validation_alias=AliasChoices(
            "expected_result", "expectedResult", "expected", "expected_results", "expectedOutcome",
        ),
    )
    priority: Priority = Priority.MEDIUM

    @field_validator("id", "title", "description", "expected_result", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> object:
        return _coerce_text(v)

    @field_validator("steps", mode="before")
    @classmethod
    def coerce_steps(cls, v: object) -> object:
        return coerce_steps(v)

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: object) -> object:
        if isinstance(v, Priority):
            return v
        text = str(_coerce_text(v)).lower()
        for p in Priority:
            if text.startswith(p.value.lower()):
                return p
        if text in ("p0", "p1", "critical"):
            return Priority.HIGH
        if text in ("p3", "p4", "trivial", "minor"):
            return Priority.LOW
        return Priority.MEDIUM


class TestScenario(BaseModel):
    """An end-to-end user journey stitched together from several test cases."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("", validation_alias=AliasChoices("id", "scenario_id", "scenarioId"))
    name: str = Field("", validation_alias=AliasChoices("name", "title", "scenario_name", "scenarioName"))
    description: str = ""
    preconditions: str | None = None
    steps: list[str] = []
    expected_outcome: str = Field(
        "",
        validation_alias=AliasChoices(
            "expected_outcome", "expectedOutcome", "expected_result", "expectedResult", "expected",
        ),
    )
    test_data: str | None = Field(None, validation_alias=AliasChoices("test_data", "testData"))

    @field_validator("id", "name", "description", "expected_outcome", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> object:
        return _coerce_text(v)

    @field_validator("preconditions", "test_data", mode="before")
    @classmethod
    def coerce_optional(cls, v: object) -> object:
        return _coerce_optional_text(v)

    @field_validator("steps", mode="before")
    @classmethod
    def coerce_steps(cls, v: object) -> object:
        return coerce_steps(v)


class GeneratedArtifact(BaseModel):
    """Raw generated text (application code, test code, report) tagged with its origin."""

    stage: Stage
    content: str
    generation: int = 1


class Parsed(BaseModel, Generic[T]):
    """Outcome of a tiered parse: the items plus which tier produced them.

    ``degraded`` is set when anything but the first tier was used, so callers
    can surface that the model ignored the requested format.
    """

    items: list[T]
    tier: str
    degraded: bool = False
