"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from figqa.schemas.config import PipelineConfig
from figqa.shared.llm_client import GenerationClient


@pytest.fixture
def design_document() -> dict:
    """A small Figma-style document tree."""
    return {
        "name": "Login Page",
        "type": "CANVAS",
        "children": [
            {
                "name": "Login Form",
                "type": "FRAME",
                "absoluteBoundingBox": {"x": 0, "y": 0, "width": 400, "height": 320},
                "children": [
                    {"name": "Title", "type": "TEXT", "characters": "Welcome back"},
                    {"name": "Submit", "type": "RECTANGLE"},
                ],
            },
        ],
    }


@pytest.fixture
def design_file(tmp_path: Path, design_document: dict) -> Path:
    path = tmp_path / "design.json"
    path.write_text(json.dumps(design_document))
    return path


@pytest.fixture
def tmp_config(tmp_path: Path, design_file: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        """\
design_file: "{design}"
output_directory: "{out}"
""".format(design=str(design_file), out=str(tmp_path / "output"))
    )
    return cfg


@pytest.fixture
def pipeline_config(design_file: Path, tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(design_file=str(design_file), output_directory=str(tmp_path / "output"))


@pytest.fixture
def mock_generation_client() -> GenerationClient:
    """Return a GenerationClient with a mocked OpenAI SDK underneath."""
    client = GenerationClient.__new__(GenerationClient)
    client._client = AsyncMock()
    client.model = "test-model"
    return client
