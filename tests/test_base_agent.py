"""Tests for the BaseStageAgent ABC contract."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from figqa.agents.base import BaseStageAgent
from figqa.agents.prompts import build_prompt
from figqa.agents.test_cases import prompts as test_cases_prompts
from figqa.schemas.config import StageSettings
from figqa.schemas.design import Blueprint
from figqa.schemas.pipeline import StageInputs, StageResult
from figqa.schemas.stage import Stage
from figqa.shared.errors import RateLimited
from figqa.shared.llm_client import GenerationClient


class SampleAgent(BaseStageAgent):
    """Concrete test implementation of BaseStageAgent."""

    stage = Stage.APPLICATION
    requires = ("blueprint", "requirements", "application_code")

    def build_prompt(self, inputs: StageInputs) -> str:
        return f"Build {len(inputs.requirements)} things"

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        degraded = raw_text.startswith("?")
        return StageResult(stage=self.stage, raw_text=raw_text, tier="raw", degraded=degraded, code=raw_text)


def _mock_openai_response(content: str) -> SimpleNamespace:
    """Build a fake OpenAI response with the given text content."""
    message = SimpleNamespace(content=content)
    choice = SimpleNamespace(message=message, finish_reason="stop")
    return SimpleNamespace(choices=[choice], usage=None)


class TestMissingInputs:
    def test_reports_empty_fields(self) -> None:
        agent = SampleAgent(AsyncMock())
        assert agent.missing_inputs(StageInputs(application_code="  \n")) == [
            "blueprint", "requirements", "application_code",
        ]

    def test_nothing_missing(self) -> None:
        agent = SampleAgent(AsyncMock())
        inputs = StageInputs(blueprint=Blueprint(name="x"), requirements=["r"], application_code="code")
        assert agent.missing_inputs(inputs) == []


class TestRun:
    @pytest.mark.asyncio
    async def test_passes_stage_settings(self) -> None:
        client = AsyncMock()
        client.generate = AsyncMock(return_value="<App />")
        agent = SampleAgent(client, StageSettings(creativity=0.3, max_output_length=512))

        result = await agent.run(StageInputs(requirements=["a", "b"]))

        assert result.code == "<App />"
        client.generate.assert_awaited_once()
        args, kwargs = client.generate.call_args
        assert args == ("Build 2 things",)
        assert kwargs["creativity"] == 0.3
        assert kwargs["max_output_length"] == 512

    @pytest.mark.asyncio
    async def test_default_settings(self) -> None:
        client = AsyncMock()
        client.generate = AsyncMock(return_value="ok")
        agent = SampleAgent(client)

        await agent.run(StageInputs())
        assert client.generate.call_args.kwargs["creativity"] == StageSettings().creativity

    @pytest.mark.asyncio
    async def test_through_generation_client(self, mock_generation_client: GenerationClient) -> None:
        mock_generation_client._client.chat.completions.create = AsyncMock(
            return_value=_mock_openai_response("const App = () => null;")
        )
        agent = SampleAgent(mock_generation_client)

        result = await agent.run(StageInputs())
        assert result.code == "const App = () => null;"
        assert result.stage is Stage.APPLICATION

    @pytest.mark.asyncio
    async def test_degraded_output_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        client = AsyncMock()
        client.generate = AsyncMock(return_value="? unstructured")
        agent = SampleAgent(client)

        with caplog.at_level(logging.WARNING, logger="figqa.agents.base"):
            result = await agent.run(StageInputs())

        assert result.degraded is True
        assert "did not match the requested format" in caplog.text

    @pytest.mark.asyncio
    async def test_generation_errors_propagate(self) -> None:
        client = AsyncMock()
        client.generate = AsyncMock(side_effect=RateLimited("quota"))
        with pytest.raises(RateLimited):
            await SampleAgent(client).run(StageInputs())

    def test_name_is_stage_label(self) -> None:
        assert SampleAgent(AsyncMock()).name == "Application"


class PlainAgent(BaseStageAgent):
    """Only parses; prompt building comes from the base class."""

    stage = Stage.TEST_CASES

    def parse_output(self, raw_text: str, inputs: StageInputs) -> StageResult:
        return StageResult(stage=self.stage, raw_text=raw_text, tier="raw")


class TestBuildPrompt:
    def test_default_uses_stage_template(self) -> None:
        inputs = StageInputs(requirements=["Allow login."])
        assert PlainAgent(AsyncMock()).build_prompt(inputs) == build_prompt(Stage.TEST_CASES, inputs)

    @pytest.mark.asyncio
    async def test_run_sends_stage_template(self) -> None:
        client = AsyncMock()
        client.generate = AsyncMock(return_value="")
        inputs = StageInputs(requirements=["Allow login."])

        await PlainAgent(client).run(inputs)

        prompt = client.generate.call_args.args[0]
        assert prompt.startswith(test_cases_prompts.ROLE)
        assert "1. Allow login." in prompt
