"""Application stage: blueprint and requirements in, application code out."""

from __future__ import annotations

from figqa.agents.base import BaseStageAgent
from figqa.parsing.code import parse_code
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage


class ApplicationAgent(BaseStageAgent):
    stage = Stage.APPLICATION
    requires = ("blueprint", "requirements")

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        parsed = parse_code(raw_text)
        return StageResult(stage=self.stage, raw_text=raw_text, tier=parsed.tier, code=parsed.items[0])
