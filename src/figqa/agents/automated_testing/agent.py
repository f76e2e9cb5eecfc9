"""Automated Testing stage: scenarios in, test code and a simulated run out."""

from __future__ import annotations

import logging

from figqa.agents.base import BaseStageAgent
from figqa.parsing.code import parse_code
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage
from figqa.shared.static_analyzer import analyze, detect_framework

logger = logging.getLogger(__name__)


class AutomatedTestingAgent(BaseStageAgent):
    """Generates test code, then statically analyzes it against the application.

    No test is executed; ``test_results`` is a simulated summary.
    """

    stage = Stage.AUTOMATED_TESTING
    requires = ("test_scenarios", "application_code")

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        parsed = parse_code(raw_text)
        code = parsed.items[0]
        if not code.strip():
            return StageResult(stage=self.stage, raw_text=raw_text, tier=parsed.tier)

        framework = detect_framework(code)
        if framework == "unknown":
            framework = inputs.framework
        summary = analyze(code, inputs.application_code, framework=framework)
        if summary.missing_selectors:
            logger.info("Selectors not found in the application: %s", ", ".join(summary.missing_selectors))
        return StageResult(
            stage=self.stage,
            raw_text=raw_text,
            tier=parsed.tier,
            code=code,
            test_results=summary,
        )
