"""Base stage agent ABC: defines the pattern every stage follows."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Protocol

from figqa.agents.prompts import build_prompt
from figqa.schemas.config import StageSettings
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage
from figqa.shared.llm_client import TokensCallback

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything with the ``GenerationClient.generate`` signature (the dry-run client included)."""

    async def generate(
        self,
        prompt: str,
        *,
        creativity: float = ...,
        max_output_length: int = ...,
        on_tokens: TokensCallback | None = None,
    ) -> str: ...


class BaseStageAgent(ABC):
    """Abstract base class for the six pipeline stages.

    Subclasses set:
    - ``stage``: which pipeline stage this agent runs
    - ``requires``: the ``StageInputs`` fields that must be non-empty

    and implement:
    - ``parse_output(raw_text, inputs)``: never raises; degraded tiers are flagged
    """

    stage: Stage
    requires: tuple[str, ...] = ()

    def __init__(self, client: TextGenerator, settings: StageSettings | None = None) -> None:
        self.client = client
        self.settings = settings or StageSettings()

    @property
    def name(self) -> str:
        """Human-readable name for progress display."""
        return self.stage.label

    def build_prompt(self, inputs: StageInputs) -> str:
        """Return the prompt text for this stage."""
        return build_prompt(self.stage, inputs)

    @abstractmethod
    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        """Parse the generated text into this stage's artifact."""

    def missing_inputs(self, inputs: StageInputs) -> list[str]:
        """Names of required inputs that are absent or empty."""
        missing = []
        for field in self.requires:
            value = getattr(inputs, field)
            if isinstance(value, str):
                value = value.strip()
            if not value:
                missing.append(field)
        return missing

    async def run(self, inputs: StageInputs, *, on_tokens: TokensCallback | None = None) -> StageResult:
        """Build the prompt, make one generation call, parse the reply.

        Generation errors propagate unchanged.
        """
        prompt = self.build_prompt(inputs)
        raw = await self.client.generate(
            prompt,
            creativity=self.settings.creativity,
            max_output_length=self.settings.max_output_length,
            on_tokens=on_tokens,
        )
        logger.debug("Stage %s raw output:\n%s", self.name, raw[:500])

        result = self.parse_output(raw, inputs)
        if result.degraded:
            logger.warning("Stage %s output did not match the requested format (tier: %s)", self.name, result.tier)
        return result
