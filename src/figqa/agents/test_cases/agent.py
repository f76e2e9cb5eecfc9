"""Test Cases stage: requirements in, normalized test cases out."""

from __future__ import annotations

from figqa.agents.base import BaseStageAgent
from figqa.parsing.records import parse_test_cases
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage


class TestCasesAgent(BaseStageAgent):
    """Falls back to one synthesized case per requirement when nothing parses."""

    __test__ = False

    stage = Stage.TEST_CASES
    requires = ("requirements", "application_code")

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        parsed = parse_test_cases(raw_text, inputs.requirements)
        return StageResult(
            stage=self.stage,
            raw_text=raw_text,
            tier=parsed.tier,
            degraded=parsed.degraded,
            test_cases=parsed.items,
        )
