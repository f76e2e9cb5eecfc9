"""Prompt builder: one template per stage, selected by ``Stage``."""

from __future__ import annotations

from typing import Callable

from figqa.agents.application import prompts as application
from figqa.agents.automated_testing import prompts as automated_testing
from figqa.agents.requirements import prompts as requirements
from figqa.agents.test_cases import prompts as test_cases
from figqa.agents.test_report import prompts as test_report
from figqa.agents.test_scenarios import prompts as test_scenarios
from figqa.schemas.pipeline import StageInputs
from figqa.schemas.stage import Stage

_BUILDERS: dict[Stage, Callable[[StageInputs], str]] = {
    Stage.REQUIREMENTS: requirements.build_prompt,
    Stage.APPLICATION: application.build_prompt,
    Stage.TEST_CASES: test_cases.build_prompt,
    Stage.TEST_SCENARIOS: test_scenarios.build_prompt,
    Stage.AUTOMATED_TESTING: automated_testing.build_prompt,
    Stage.REPORT: test_report.build_prompt,
}


def build_prompt(stage: Stage, inputs: StageInputs) -> str:
    """Return the prompt text for ``stage``. Pure: no I/O."""
    return _BUILDERS[stage](inputs)
