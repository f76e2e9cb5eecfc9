"""Pipeline state and the per-stage input/output models."""

from __future__ import annotations

from pydantic import BaseModel

from figqa.schemas.artifacts import GeneratedArtifact, TestCase, TestScenario
from figqa.schemas.design import Blueprint
from figqa.schemas.results import TestRunSummary
from figqa.schemas.stage import Stage


class StageInputs(BaseModel):
    """Everything a stage's prompt may draw from."""

    blueprint: Blueprint | None = None
    requirements: list[str] = []
    application_code: str = ""
    test_cases: list[TestCase] = []
    test_scenarios: list[TestScenario] = []
    test_results: TestRunSummary | None = None
    framework: str = "cypress"


class StageResult(BaseModel):
    """Parsed output of one stage run, before it is stored on the state."""

    stage: Stage
    raw_text: str
    tier: str
    degraded: bool = False
    requirements: list[str] = []
    code: str = ""
    test_cases: list[TestCase] = []
    test_scenarios: list[TestScenario] = []
    test_results: TestRunSummary | None = None

    def has_artifact(self) -> bool:
        """True when the run produced something worth storing on the state."""
        if self.stage is Stage.REQUIREMENTS:
            return bool(self.requirements)
        if self.stage is Stage.TEST_CASES:
            return bool(self.test_cases)
        if self.stage is Stage.TEST_SCENARIOS:
            return bool(self.test_scenarios)
        if self.stage is Stage.AUTOMATED_TESTING:
            return self.test_results is not None
        return bool(self.code.strip())


class StageError(BaseModel):
    """Last error recorded against a stage."""

    error_type: str
    message: str
    retryable: bool = True


class ExtractionInfo(BaseModel):
    """Which parsing tier produced a stage's stored artifact."""

    tier: str
    degraded: bool = False
    generation: int = 1


class PipelineState(BaseModel):
    """Tracks the artifacts flowing through the pipeline for one design."""

    source: str = ""
    blueprint: Blueprint | None = None
    requirements: list[str] = []
    application_code: GeneratedArtifact | None = None
    test_cases: list[TestCase] = []
    test_scenarios: list[TestScenario] = []
    test_code: GeneratedArtifact | None = None
    test_results: TestRunSummary | None = None
    report: GeneratedArtifact | None = None
    framework: str = "cypress"

    current_stage: int = 1
    complete: bool = False
    errors: dict[Stage, StageError] = {}
    extraction: dict[Stage, ExtractionInfo] = {}
    # Stages whose artifact was derived from an upstream artifact that has since been regenerated.
    stale: list[Stage] = []

    def inputs(self) -> StageInputs:
        return StageInputs(
            blueprint=self.blueprint,
            requirements=self.requirements,
            application_code=self.application_code.content if self.application_code else "",
            test_cases=self.test_cases,
            test_scenarios=self.test_scenarios,
            test_results=self.test_results,
            framework=self.framework,
        )

    def has_artifact(self, stage: Stage) -> bool:
        """True when the stage's artifact is present and non-empty."""
        if stage is Stage.REQUIREMENTS:
            return bool(self.requirements)
        if stage is Stage.APPLICATION:
            return bool(self.application_code and self.application_code.content.strip())
        if stage is Stage.TEST_CASES:
            return bool(self.test_cases)
        if stage is Stage.TEST_SCENARIOS:
            return bool(self.test_scenarios)
        if stage is Stage.AUTOMATED_TESTING:
            return self.test_results is not None
        return bool(self.report and self.report.content.strip())
