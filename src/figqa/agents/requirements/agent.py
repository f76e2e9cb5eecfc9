"""Requirements stage: design blueprint in, requirement list out."""

from __future__ import annotations

from figqa.agents.base import BaseStageAgent
from figqa.parsing.requirements import parse_requirements
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage


class RequirementsAgent(BaseStageAgent):
    stage = Stage.REQUIREMENTS
    requires = ("blueprint",)

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        parsed = parse_requirements(raw_text)
        return StageResult(
            stage=self.stage,
            raw_text=raw_text,
            tier=parsed.tier,
            degraded=parsed.degraded,
            requirements=parsed.items,
        )
