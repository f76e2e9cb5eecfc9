"""Test-case and test-scenario parsing, normalization and fixed fallbacks.

Tiers, first non-empty wins:

1. ``json_array``      first JSON array of objects anywhere in the text
2. ``fenced_json``     a ```json block holding an object or wrapped array
3. ``labelled_blocks`` "Test Case ID:" / "Scenario ID:" delimited prose
4. ``fallback``        synthesized from the upstream artifacts

Every item is normalized afterwards, whichever tier produced it.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Iterable, Sequence

from pydantic import ValidationError

from figqa.parsing.extract import (
    Extracted,
    JsonArray,
    LabelledBlocks,
    find_fenced_json,
    find_json_array,
    find_labelled_blocks,
)
from figqa.parsing.requirements import FALLBACK_REQUIREMENT
from figqa.schemas.artifacts import Parsed, Priority, TestCase, TestScenario

logger = logging.getLogger(__name__)

DEFAULT_STEPS = [
    "Navigate to the relevant page",
    "Perform the required action",
    "Verify the response",
]
DEFAULT_EXPECTED_RESULT = "The feature works as specified in the requirement"
DEFAULT_EXPECTED_OUTCOME = "All tests pass successfully"
FALLBACK_PRECONDITIONS = "User is logged in and has necessary permissions"

TEST_CASE_HEADER = "Test Case ID"
SCENARIO_HEADER = "Scenario ID"

TEST_CASE_LABELS = {
    "id": ["Test Case ID", "ID"],
    "title": ["Test Case Title", "Title", "Name"],
    "description": ["Description", "Objective"],
    "steps": ["Test Steps", "Steps"],
    "expected_result": ["Expected Result", "Expected Results", "Expected Outcome"],
    "priority": ["Priority"],
}

SCENARIO_LABELS = {
    "id": ["Scenario ID", "ID"],
    "name": ["Scenario Name", "Scenario Title", "Name", "Title"],
    "description": ["Description"],
    "preconditions": ["Preconditions", "Pre-conditions", "Precondition"],
    "steps": ["Test Steps", "Steps"],
    "expected_outcome": ["Expected Outcome", "Expected Result", "Expected Results"],
    "test_data": ["Test Data"],
}


# ----------------------------------------------------------------------
# Normalization
# ----------------------------------------------------------------------


def _validate(items: Iterable[Any], model: type) -> list[Any]:
    valid = []
    for item in items:
        if isinstance(item, model):
            valid.append(item)
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping unusable %s item: %s", model.__name__, exc.errors()[0].get("msg", exc))
    return valid


def _assign_ids(ids: list[str], prefix: str) -> list[str]:
    """Keep first-seen ids; give blanks and duplicates fresh ``PREFIX-NNN`` ids.

    Fresh ids skip every id already present in the batch so nothing collides.
    """
    reserved = {i for i in ids if i}
    seen: set[str] = set()
    counter = 0
    result = []
    for current in ids:
        if not current or current in seen:
            while True:
                counter += 1
                candidate = f"{prefix}-{counter:03d}"
                if candidate not in reserved and candidate not in seen:
                    break
            current = candidate
        seen.add(current)
        result.append(current)
    return result


def normalize_test_cases(items: Iterable[Any]) -> list[TestCase]:
    """Validate and fill defaults so every case has an id, title, steps and expected result.

    Idempotent: normalizing an already normalized list returns an equal list.
    """
    cases = _validate(items, TestCase)
    ids = _assign_ids([c.id for c in cases], "TC")
    return [
        c.model_copy(
            update={
                "id": cid,
                "title": c.title or f"Test case {cid}",
                "steps": list(c.steps) or list(DEFAULT_STEPS),
                "expected_result": c.expected_result or DEFAULT_EXPECTED_RESULT,
            }
        )
        for c, cid in zip(cases, ids)
    ]


def normalize_test_scenarios(items: Iterable[Any]) -> list[TestScenario]:
    """Same contract as ``normalize_test_cases`` for scenarios."""
    scenarios = _validate(items, TestScenario)
    ids = _assign_ids([s.id for s in scenarios], "TS")
    return [
        s.model_copy(
            update={
                "id": sid,
                "name": s.name or f"Scenario {sid}",
                "steps": list(s.steps) or list(DEFAULT_STEPS),
                "expected_outcome": s.expected_outcome or DEFAULT_EXPECTED_OUTCOME,
            }
        )
        for s, sid in zip(scenarios, ids)
    ]


# ----------------------------------------------------------------------
# Fixed fallbacks
# ----------------------------------------------------------------------


def _priority_for(index: int, total: int) -> Priority:
    position = index / total
    if position < 0.3:
        return Priority.HIGH
    if position < 0.7:
        return Priority.MEDIUM
    return Priority.LOW


def fallback_test_cases(requirements: Sequence[str]) -> list[TestCase]:
    """One generic test case per requirement, quoting the requirement verbatim."""
    requirements = list(requirements) or [FALLBACK_REQUIREMENT]
    cases = []
    for i, req in enumerate(requirements):
        title = req if len(req) <= 40 else req[:40].rstrip() + "..."
        cases.append(
            TestCase(
                id=f"TC-{i + 1:03d}",
                title=f"Test: {title}",
                description=f"Verify requirement: {req}",
                steps=list(DEFAULT_STEPS),
                expected_result=f"The system successfully implements: {req}",
                priority=_priority_for(i, len(requirements)),
            )
        )
    return cases


def fallback_test_scenarios(test_cases: Sequence[TestCase]) -> list[TestScenario]:
    """Group test cases into about five scenarios, keeping their steps in order."""
    if not test_cases:
        return [
            TestScenario(
                id="TS-001",
                name="Basic Scenario 1",
                description="Tests the core functionality of the application",
                preconditions=FALLBACK_PRECONDITIONS,
                steps=list(DEFAULT_STEPS),
                expected_outcome=DEFAULT_EXPECTED_OUTCOME,
                test_data="N/A",
            )
        ]

    size = math.ceil(len(test_cases) / 5)
    scenarios = []
    for k, start in enumerate(range(0, len(test_cases), size), 1):
        batch = test_cases[start:start + size]
        steps = [step for case in batch for step in case.steps] or list(DEFAULT_STEPS)
        scenarios.append(
            TestScenario(
                id=f"TS-{k:03d}",
                name=f"Basic Scenario {k}",
                description=f"Tests functionality from test cases {batch[0].id} to {batch[-1].id}",
                preconditions=FALLBACK_PRECONDITIONS,
                steps=steps,
                expected_outcome=DEFAULT_EXPECTED_OUTCOME,
                test_data="N/A",
            )
        )
    return scenarios


# ----------------------------------------------------------------------
# Tiered parse
# ----------------------------------------------------------------------


def _records(found: Extracted | None) -> list[dict[str, Any]]:
    if isinstance(found, JsonArray):
        return found.items
    if isinstance(found, LabelledBlocks):
        return list(found.blocks)
    return []


def _parse(
    text: str,
    header: str,
    labels: dict[str, list[str]],
    normalize: Callable[[Iterable[Any]], list[Any]],
    what: str,
) -> tuple[list[Any], str] | None:
    tiers: list[tuple[str, Callable[[], Extracted | None]]] = [
        ("json_array", lambda: find_json_array(text)),
        ("fenced_json", lambda: find_fenced_json(text)),
        ("labelled_blocks", lambda: find_labelled_blocks(text, header, labels)),
    ]
    for tier, attempt in tiers:
        items = normalize(_records(attempt()))
        if items:
            if tier != "json_array":
                logger.info("%s fell back to tier '%s' (%d items)", what, tier, len(items))
            return items, tier
    return None


def parse_test_cases(text: str | None, requirements: Sequence[str]) -> Parsed[TestCase]:
    """Parse test cases, falling back to one synthesized case per requirement."""
    found = _parse(text or "", TEST_CASE_HEADER, TEST_CASE_LABELS, normalize_test_cases, "Test cases")
    if found:
        items, tier = found
        return Parsed[TestCase](items=items, tier=tier, degraded=tier != "json_array")

    logger.warning("No test cases could be extracted, synthesizing %d from requirements", len(requirements))
    return Parsed[TestCase](
        items=normalize_test_cases(fallback_test_cases(requirements)), tier="fallback", degraded=True,
    )


def parse_test_scenarios(text: str | None, test_cases: Sequence[TestCase]) -> Parsed[TestScenario]:
    """Parse scenarios, falling back to batches of the given test cases."""
    found = _parse(text or "", SCENARIO_HEADER, SCENARIO_LABELS, normalize_test_scenarios, "Test scenarios")
    if found:
        items, tier = found
        return Parsed[TestScenario](items=items, tier=tier, degraded=tier != "json_array")

    logger.warning("No test scenarios could be extracted, grouping %d test cases", len(test_cases))
    return Parsed[TestScenario](
        items=normalize_test_scenarios(fallback_test_scenarios(test_cases)), tier="fallback", degraded=True,
    )
