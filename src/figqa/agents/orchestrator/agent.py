"""Pipeline orchestrator: drives the six stages over one PipelineState."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from figqa.agents.application.agent import ApplicationAgent
from figqa.agents.automated_testing.agent import AutomatedTestingAgent
from figqa.agents.base import BaseStageAgent, TextGenerator
from figqa.agents.requirements.agent import RequirementsAgent
from figqa.agents.test_cases.agent import TestCasesAgent
from figqa.agents.test_report.agent import TestReportAgent
from figqa.agents.test_scenarios.agent import TestScenariosAgent
from figqa.output.files import write_outputs
from figqa.schemas.artifacts import GeneratedArtifact
from figqa.schemas.config import PipelineConfig
from figqa.schemas.design import Blueprint
from figqa.schemas.pipeline import ExtractionInfo, PipelineState, StageError, StageResult
from figqa.schemas.stage import STAGE_ORDER, Stage
from figqa.shared.blueprint import reduce_blueprint
from figqa.shared.errors import GenerationError, InputPreconditionUnmet, PipelineError
from figqa.shared.figma_client import FigmaClient
from figqa.shared.llm_client import TokensCallback
from figqa.shared.progress import PipelineProgress

logger = logging.getLogger(__name__)

AGENTS: dict[Stage, type[BaseStageAgent]] = {
    Stage.REQUIREMENTS: RequirementsAgent,
    Stage.APPLICATION: ApplicationAgent,
    Stage.TEST_CASES: TestCasesAgent,
    Stage.TEST_SCENARIOS: TestScenariosAgent,
    Stage.AUTOMATED_TESTING: AutomatedTestingAgent,
    Stage.REPORT: TestReportAgent,
}


class PipelineOrchestrator:
    """Owns the pipeline state and runs stages against it.

    Pipeline flow:
        Requirements → Application → Test Cases → Test Scenarios
        → Automated Testing → Report

    Stage N+1 can only start once stage N's artifact exists. Any stage can
    be re-run ("regenerated"); the newest request per stage wins and a
    superseded response is dropped when it arrives. Later artifacts are
    kept on regeneration but flagged in ``state.stale``.
    """

    def __init__(
        self,
        client: TextGenerator,
        config: PipelineConfig,
        stage_clients: dict[Stage, TextGenerator] | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.stage_clients = stage_clients or {}
        self.state = PipelineState(framework=config.framework)
        self._generation: dict[Stage, int] = {stage: 0 for stage in Stage}

    # ------------------------------------------------------------------
    # Design source
    # ------------------------------------------------------------------

    def load_design(self, document: Any, source: str = "") -> Blueprint:
        """Start a fresh pipeline from a design tree."""
        blueprint = reduce_blueprint(
            document,
            max_depth=self.config.blueprint.max_depth,
            max_children=self.config.blueprint.max_children,
        )
        self.state = PipelineState(source=source, blueprint=blueprint, framework=self.config.framework)
        self._generation = {stage: 0 for stage in Stage}
        logger.info("Loaded design '%s' from %s", blueprint.name or "unnamed", source or "memory")
        return blueprint

    async def fetch_design(self, figma_token: str = "") -> Blueprint:
        """Load the design from ``design_file`` if set, else fetch ``figma_url``."""
        if self.config.design_file:
            document = json.loads(Path(self.config.design_file).read_text(encoding="utf-8"))
            return self.load_design(document, source=self.config.design_file)

        async with FigmaClient(figma_token, timeout=self.config.timeout_seconds) as figma:
            document = await figma.get_document(self.config.figma_url)
        return self.load_design(document, source=self.config.figma_url)

    def restore(self, state: PipelineState) -> None:
        """Continue from a saved state; counters resume from the stored generations."""
        self.state = state
        self._generation = {stage: 0 for stage in Stage}
        for stage, info in state.extraction.items():
            self._generation[stage] = info.generation

    # ------------------------------------------------------------------
    # Stage operations
    # ------------------------------------------------------------------

    def agent_for(self, stage: Stage) -> BaseStageAgent:
        client = self.stage_clients.get(stage, self.client)
        return AGENTS[stage](client, self.config.settings_for(stage))

    async def run_stage(self, stage: Stage, *, on_tokens: TokensCallback | None = None) -> StageResult | None:
        """Start (or regenerate) one stage and store its artifact.

        Raises ``InputPreconditionUnmet`` without touching the state when an
        upstream artifact is missing. Generation errors are recorded against
        the stage and re-raised. Returns None when a newer request for the
        same stage superseded this one while it was in flight.
        """
        agent = self.agent_for(stage)
        inputs = self.state.inputs()
        missing = agent.missing_inputs(inputs)
        if missing:
            raise InputPreconditionUnmet(stage, missing)

        self._generation[stage] += 1
        generation = self._generation[stage]
        logger.info("Starting stage %s (generation %d)", stage.label, generation)

        try:
            result = await agent.run(inputs, on_tokens=on_tokens)
        except PipelineError as exc:
            if generation != self._generation[stage]:
                logger.info("Discarding failed superseded %s response (generation %d): %s", stage.label, generation, exc)
                return None
            self.state.errors[stage] = StageError(
                error_type=type(exc).__name__,
                message=str(exc),
                retryable=getattr(exc, "retryable", False),
            )
            logger.error("Stage %s failed: %s", stage.label, exc)
            raise

        if generation != self._generation[stage]:
            logger.info(
                "Discarding superseded %s response (generation %d, current %d)",
                stage.label, generation, self._generation[stage],
            )
            return None

        self._apply(stage, result, generation)
        return result

    async def advance(self, *, on_tokens: TokensCallback | None = None) -> StageResult | None:
        """Run the stage the pipeline is currently waiting on."""
        if self.state.complete:
            logger.info("Pipeline already complete")
            return None
        return await self.run_stage(Stage.from_ordinal(self.state.current_stage), on_tokens=on_tokens)

    def _apply(self, stage: Stage, result: StageResult, generation: int) -> None:
        state = self.state
        # An empty reply leaves the previous artifact, its extraction info and the stale list alone.
        if not result.has_artifact():
            state.errors[stage] = StageError(
                error_type="EmptyResponse",
                message=f"{stage.label} stage returned no usable content",
                retryable=True,
            )
            logger.warning("Stage %s produced an empty artifact; not advancing", stage.label)
            return

        if stage is Stage.REQUIREMENTS:
            state.requirements = result.requirements
        elif stage is Stage.APPLICATION:
            state.application_code = GeneratedArtifact(stage=stage, content=result.code, generation=generation)
        elif stage is Stage.TEST_CASES:
            state.test_cases = result.test_cases
        elif stage is Stage.TEST_SCENARIOS:
            state.test_scenarios = result.test_scenarios
        elif stage is Stage.AUTOMATED_TESTING:
            state.test_code = GeneratedArtifact(stage=stage, content=result.code, generation=generation)
            state.test_results = result.test_results
        else:
            state.report = GeneratedArtifact(stage=stage, content=result.code, generation=generation)

        state.extraction[stage] = ExtractionInfo(tier=result.tier, degraded=result.degraded, generation=generation)
        if stage in state.stale:
            state.stale.remove(stage)

        # Regenerating a stage the pipeline already moved past leaves later artifacts stale.
        if state.current_stage > stage.ordinal:
            for later in stage.later():
                if state.has_artifact(later) and later not in state.stale:
                    state.stale.append(later)
            if state.stale:
                logger.info("Artifacts now stale: %s", ", ".join(s.label for s in state.stale))

        state.errors.pop(stage, None)
        state.current_stage = min(max(state.current_stage, stage.ordinal + 1), len(STAGE_ORDER))
        if stage is Stage.REPORT:
            state.complete = True
        logger.info(
            "Stage %s done (tier: %s%s)", stage.label, result.tier, ", degraded" if result.degraded else "",
        )

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    async def run(self, progress: PipelineProgress | None = None, until: Stage | None = None) -> PipelineState:
        """Run every pending stage in order, up to and including ``until``.

        Stages whose artifact is already present and fresh are skipped, so a
        restored pipeline resumes where it stopped. Stops at the first stage
        that fails; the error is on ``state.errors``.
        """
        last = until or Stage.REPORT
        for stage in STAGE_ORDER[: last.ordinal]:
            if self._is_done(stage):
                continue
            if not await self._run_tracked(stage, progress):
                break
        return self.state

    def _is_done(self, stage: Stage) -> bool:
        state = self.state
        if stage in state.stale or stage in state.errors:
            return False
        if stage is Stage.REPORT:
            return state.complete
        return stage.ordinal < state.current_stage

    async def _run_tracked(self, stage: Stage, progress: PipelineProgress | None) -> bool:
        name = stage.label
        on_tokens: TokensCallback | None = None
        if progress:
            progress.print_phase(f"Stage {stage.ordinal}/{len(STAGE_ORDER)}: {name}")
            progress.start_stage(name)

            def on_tokens(inp: int, out: int) -> None:
                progress.record_tokens(name, inp, out)

        try:
            result = await self.run_stage(stage, on_tokens=on_tokens)
        except GenerationError as exc:
            logger.exception("%s failed", name)
            if progress:
                progress.fail_stage(name, str(exc))
            return False

        if result is None or stage in self.state.errors:
            if progress:
                error = self.state.errors.get(stage)
                progress.fail_stage(name, error.message if error else "superseded")
            return False

        if progress:
            progress.finish_stage(name, note=f"fallback: {result.tier}" if result.degraded else "")
            progress.log_event(name, self._summary(stage))
        return True

    def _summary(self, stage: Stage) -> str:
        state = self.state
        if stage is Stage.REQUIREMENTS:
            return f"{len(state.requirements)} requirements"
        if stage is Stage.TEST_CASES:
            return f"{len(state.test_cases)} test cases"
        if stage is Stage.TEST_SCENARIOS:
            return f"{len(state.test_scenarios)} test scenarios"
        if stage is Stage.AUTOMATED_TESTING and state.test_results:
            r = state.test_results
            return f"{r.passed}/{r.total} simulated tests passed, {len(r.missing_selectors)} missing selectors"
        artifact = state.application_code if stage is Stage.APPLICATION else state.report
        return f"{len(artifact.content) if artifact else 0:,} characters"

    def write_outputs(self) -> Path:
        """Write every artifact to ``config.output_directory``."""
        return write_outputs(self.state, Path(self.config.output_directory))
