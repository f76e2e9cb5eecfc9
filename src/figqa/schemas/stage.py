"""The six pipeline stages, in execution order."""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    REQUIREMENTS = "requirements"
    APPLICATION = "application"
    TEST_CASES = "test_cases"
    TEST_SCENARIOS = "test_scenarios"
    AUTOMATED_TESTING = "automated_testing"
    REPORT = "report"

    @property
    def ordinal(self) -> int:
        """1-based position in the pipeline."""
        return STAGE_ORDER.index(self) + 1

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_ordinal(cls, ordinal: int) -> Stage:
        if not 1 <= ordinal <= len(STAGE_ORDER):
            raise ValueError(f"No stage with ordinal {ordinal}")
        return STAGE_ORDER[ordinal - 1]

    def later(self) -> list[Stage]:
        """Stages whose inputs derive (directly or not) from this one."""
        return STAGE_ORDER[self.ordinal:]


STAGE_ORDER: list[Stage] = list(Stage)

_LABELS = {
    Stage.REQUIREMENTS: "Requirements",
    Stage.APPLICATION: "Application",
    Stage.TEST_CASES: "Test Cases",
    Stage.TEST_SCENARIOS: "Test Scenarios",
    Stage.AUTOMATED_TESTING: "Automated Tests",
    Stage.REPORT: "Test Report",
}
