"""Tests for test-case / test-scenario parsing and normalization."""

from __future__ import annotations

import json

import pytest

from figqa.parsing.records import (
    DEFAULT_EXPECTED_OUTCOME,
    DEFAULT_EXPECTED_RESULT,
    DEFAULT_STEPS,
    fallback_test_cases,
    fallback_test_scenarios,
    normalize_test_cases,
    normalize_test_scenarios,
    parse_test_cases,
    parse_test_scenarios,
)
from figqa.schemas.artifacts import Priority, TestCase

REQUIREMENTS = ["Allow login.", "Show dashboard.", "Validate form inputs before submission."]


class TestParseTestCases:
    def test_json_array_with_trailing_prose(self) -> None:
        text = '[{"id":"TC-1","steps":["a"],"expectedResult":"ok"}] some trailing text'
        parsed = parse_test_cases(text, REQUIREMENTS)

        assert parsed.tier == "json_array"
        assert parsed.degraded is False
        assert len(parsed.items) == 1
        tc = parsed.items[0]
        assert tc.id == "TC-1"
        assert tc.steps == ["a"]
        assert tc.expected_result == "ok"
        assert tc.priority is Priority.MEDIUM

    def test_json_array_precedence_over_prose_and_labels(self) -> None:
        text = (
            "Here are the cases.\n"
            "Test Case ID: TC-900\nSteps: ignored\n\n"
            '[{"id": "TC-001", "title": "Login"}, {"id": "TC-002", "title": "Logout"}]\n'
            "Note: [see above] for details."
        )
        parsed = parse_test_cases(text, REQUIREMENTS)
        assert parsed.tier == "json_array"
        assert [tc.id for tc in parsed.items] == ["TC-001", "TC-002"]

    def test_skips_arrays_without_objects(self) -> None:
        text = 'Priorities are ["High", "Low"].\n[{"id": "TC-7", "title": "Real"}]'
        parsed = parse_test_cases(text, REQUIREMENTS)
        assert [tc.id for tc in parsed.items] == ["TC-7"]

    def test_brackets_inside_strings(self) -> None:
        text = '[{"id": "TC-1", "steps": ["Click [Submit]", "See ] bracket"]}]'
        parsed = parse_test_cases(text, REQUIREMENTS)
        assert parsed.items[0].steps == ["Click [Submit]", "See ] bracket"]

    def test_array_nested_in_object_found_by_scan(self) -> None:
        payload = {"test_cases": [{"testCaseId": "TC-5", "name": "Wrapped", "expected": "works"}]}
        text = f"Sure!\n```json\n{json.dumps(payload)}\n```"
        parsed = parse_test_cases(text, REQUIREMENTS)

        assert parsed.tier == "json_array"
        tc = parsed.items[0]
        assert (tc.id, tc.title, tc.expected_result) == ("TC-5", "Wrapped", "works")

    def test_trailing_comma_falls_back_instead_of_using_nested_list(self) -> None:
        text = (
            '[{"id": "TC-001", "title": "Login", "steps": ["Open the page"], '
            '"expected_result": "Dashboard", "test_data": [{"user": "x"}]},]'
        )
        parsed = parse_test_cases(text, REQUIREMENTS)

        assert parsed.tier == "fallback"
        assert parsed.degraded is True
        assert len(parsed.items) == len(REQUIREMENTS)

    def test_fenced_json_single_object(self) -> None:
        text = '```json\n{"id": "TC-9", "title": "Only one", "priority": "high"}\n```'
        parsed = parse_test_cases(text, REQUIREMENTS)
        assert parsed.tier == "fenced_json"
        assert parsed.items[0].priority is Priority.HIGH

    def test_labelled_blocks(self) -> None:
        text = (
            "**Test Case ID:** TC-101\n"
            "**Title:** Successful login\n"
            "**Steps:**\n"
            "1. Open the login page\n"
            "2. Enter valid credentials\n"
            "**Expected Result:** User sees the dashboard\n"
            "**Priority:** High\n"
            "\n"
            "Test Case ID: TC-102\n"
            "Title: Wrong password\n"
            "Steps: Enter a wrong password\n"
            "Expected Result: An error is shown\n"
        )
        parsed = parse_test_cases(text, REQUIREMENTS)

        assert parsed.tier == "labelled_blocks"
        first, second = parsed.items
        assert first.id == "TC-101"
        assert first.title == "Successful login"
        assert first.steps == ["Open the login page", "Enter valid credentials"]
        assert first.expected_result == "User sees the dashboard"
        assert first.priority is Priority.HIGH
        assert second.steps == ["Enter a wrong password"]
        assert second.priority is Priority.MEDIUM

    @pytest.mark.parametrize("text", ["", "No structure here at all.", "[1, 2, 3]", "```json\nnot json\n```", None])
    def test_fallback_one_case_per_requirement(self, text) -> None:
        parsed = parse_test_cases(text, REQUIREMENTS)

        assert parsed.tier == "fallback"
        assert parsed.degraded is True
        assert len(parsed.items) == len(REQUIREMENTS)
        for req, tc in zip(REQUIREMENTS, parsed.items):
            assert req in tc.expected_result

    def test_fallback_ids_and_priorities(self) -> None:
        cases = fallback_test_cases([f"Requirement number {i}" for i in range(10)])
        assert [c.id for c in cases][:3] == ["TC-001", "TC-002", "TC-003"]
        assert [c.priority for c in cases] == [Priority.HIGH] * 3 + [Priority.MEDIUM] * 4 + [Priority.LOW] * 3
        assert cases[0].steps == DEFAULT_STEPS

    def test_fallback_title_truncated(self) -> None:
        req = "The system shall display a very long requirement sentence for testing"
        tc = fallback_test_cases([req])[0]
        assert tc.title == f"Test: {req[:40].rstrip()}..."
        assert tc.expected_result == f"The system successfully implements: {req}"


class TestNormalizeTestCases:
    def test_duplicate_and_missing_ids_made_unique(self) -> None:
        cases = normalize_test_cases([{"id": "TC-001"}, {"id": "TC-001"}, {}, {"id": "TC-002"}, {"id": ""}])
        ids = [c.id for c in cases]
        assert len(set(ids)) == len(ids)
        assert ids[0] == "TC-001"
        assert ids[3] == "TC-002"
        assert "TC-001" not in ids[1:]

    def test_defaults_filled(self) -> None:
        tc = normalize_test_cases([{"id": "X"}])[0]
        assert tc.steps == DEFAULT_STEPS
        assert tc.expected_result == DEFAULT_EXPECTED_RESULT
        assert tc.title == "Test case X"
        assert tc.priority is Priority.MEDIUM

    def test_idempotent(self) -> None:
        raw = [
            {"id": "TC-1", "steps": "1. Open\n2. Click", "expectedResult": "ok", "priority": "LOW"},
            {"id": "TC-1", "title": "dup", "steps": [{"action": "- Step 1: Go"}]},
            {"steps": None},
        ]
        once = normalize_test_cases(raw)
        twice = normalize_test_cases(once)
        assert once == twice
        assert normalize_test_cases([c.model_dump() for c in once]) == once

    def test_non_object_items_skipped(self) -> None:
        assert normalize_test_cases([]) == []
        cases = normalize_test_cases([TestCase(id="TC-3"), "junk", 42, {"id": 4, "steps": 7}])
        assert [c.id for c in cases] == ["TC-3", "4"]
        assert cases[1].steps == ["7"]


class TestParseTestScenarios:
    def test_fenced_json_scenarios(self) -> None:
        text = (
            "```json\n"
            '[{"scenarioId": "TS-001", "title": "Checkout", "expectedOutcome": "Order placed",'
            ' "testData": ["card 4242", "qty 1"], "preconditions": null}]\n'
            "```"
        )
        parsed = parse_test_scenarios(text, [])
        # A fenced array is still the first JSON array in the text.
        assert parsed.tier == "json_array"
        ts = parsed.items[0]
        assert ts.id == "TS-001"
        assert ts.name == "Checkout"
        assert ts.expected_outcome == "Order placed"
        assert ts.test_data == "card 4242; qty 1"
        assert ts.preconditions is None

    def test_labelled_scenarios(self) -> None:
        text = (
            "Scenario ID: TS-010\n"
            "Scenario Name: Sign up\n"
            "Preconditions: No account exists\n"
            "Steps:\n- Open sign-up\n- Submit form\n"
            "Expected Outcome: Account created\n"
            "Test Data: new@example.com\n"
        )
        parsed = parse_test_scenarios(text, [])
        assert parsed.tier == "labelled_blocks"
        ts = parsed.items[0]
        assert (ts.id, ts.name, ts.preconditions, ts.test_data) == (
            "TS-010", "Sign up", "No account exists", "new@example.com",
        )
        assert ts.steps == ["Open sign-up", "Submit form"]

    def test_fallback_groups_test_cases(self) -> None:
        cases = fallback_test_cases([f"Requirement {i} is long enough" for i in range(12)])
        parsed = parse_test_scenarios("nothing useful", cases)

        assert parsed.tier == "fallback"
        # ceil(12 / 5) = 3 cases per scenario
        assert len(parsed.items) == 4
        first = parsed.items[0]
        assert first.id == "TS-001"
        assert first.name == "Basic Scenario 1"
        assert first.description == "Tests functionality from test cases TC-001 to TC-003"
        assert first.expected_outcome == DEFAULT_EXPECTED_OUTCOME
        assert first.test_data == "N/A"
        assert len(first.steps) == 3 * len(DEFAULT_STEPS)

    def test_fallback_without_test_cases(self) -> None:
        scenarios = fallback_test_scenarios([])
        assert len(scenarios) == 1
        assert scenarios[0].steps == DEFAULT_STEPS


class TestNormalizeTestScenarios:
    def test_unique_ids_and_defaults(self) -> None:
        scenarios = normalize_test_scenarios([{"id": "TS-002"}, {}, {"id": "TS-002"}])
        ids = [s.id for s in scenarios]
        assert ids == ["TS-002", "TS-001", "TS-003"]
        assert scenarios[1].name == "Scenario TS-001"
        assert scenarios[1].expected_outcome == DEFAULT_EXPECTED_OUTCOME

    def test_idempotent(self) -> None:
        once = normalize_test_scenarios([{"name": "A", "steps": "* one\n* two"}, {"id": "S"}])
        assert normalize_test_scenarios(once) == once
