"""Test Scenarios stage: test cases and application code in, scenarios out."""

from __future__ import annotations

from figqa.agents.base import BaseStageAgent
from figqa.parsing.records import parse_test_scenarios
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage


class TestScenariosAgent(BaseStageAgent):
    __test__ = False

    stage = Stage.TEST_SCENARIOS
    requires = ("test_cases", "application_code")

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        parsed = parse_test_scenarios(raw_text, inputs.test_cases)
        return StageResult(
            stage=self.stage,
            raw_text=raw_text,
            tier=parsed.tier,
            degraded=parsed.degraded,
            test_scenarios=parsed.items,
        )
