"""Write pipeline artifacts to an output directory and read the state back."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from figqa.output.markdown import render_markdown_report
from figqa.schemas.pipeline import PipelineState

logger = logging.getLogger(__name__)

STATE_FILE = "state.json"
REPORT_FILE = "test-report.md"

_JS_FRAMEWORKS = ("cypress", "playwright", "selenium")


def automation_file_name(state: PipelineState) -> str:
    framework = state.test_results.framework if state.test_results else state.framework
    return "tests.py" if framework not in _JS_FRAMEWORKS else "tests.js"


def write_outputs(state: PipelineState, out_dir: Path) -> Path:
    """Write every artifact present on ``state``; returns the report path.

    ``state.json`` is always written so a later run can resume from it.
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    (out_dir / STATE_FILE).write_text(state.model_dump_json(indent=2), encoding="utf-8")

    if state.blueprint:
        (out_dir / "blueprint.json").write_text(state.blueprint.to_prompt_json(), encoding="utf-8")
    if state.requirements:
        lines = [f"{i}. {req}" for i, req in enumerate(state.requirements, 1)]
        (out_dir / "requirements.md").write_text("# Requirements\n\n" + "\n".join(lines) + "\n", encoding="utf-8")
    if state.application_code:
        (out_dir / "application.txt").write_text(state.application_code.content, encoding="utf-8")
    if state.test_cases:
        data = [tc.model_dump(mode="json") for tc in state.test_cases]
        (out_dir / "test-cases.json").write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    if state.test_scenarios:
        data = [ts.model_dump(mode="json") for ts in state.test_scenarios]
        (out_dir / "test-scenarios.json").write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    if state.test_code:
        (out_dir / automation_file_name(state)).write_text(state.test_code.content, encoding="utf-8")
    if state.test_results:
        (out_dir / "test-results.json").write_text(state.test_results.model_dump_json(indent=2), encoding="utf-8")

    report_path = out_dir / REPORT_FILE
    report_path.write_text(render_markdown_report(state), encoding="utf-8")
    logger.info("Wrote outputs to %s", out_dir)
    return report_path


def load_state(out_dir: Path) -> PipelineState:
    """Read ``state.json`` from a previous run.

    Raises FileNotFoundError if the directory holds no saved state.
    """
    path = out_dir / STATE_FILE
    if not path.is_file():
        raise FileNotFoundError(f"No saved pipeline state at {path}")
    return PipelineState.model_validate_json(path.read_text(encoding="utf-8"))
