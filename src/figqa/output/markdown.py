"""Markdown report builder: renders PipelineState to a test report document."""

from __future__ import annotations

from datetime import datetime

from figqa.schemas.pipeline import PipelineState
from figqa.schemas.results import TestRunSummary
from figqa.schemas.stage import STAGE_ORDER

_STATUS_ICON = {
    "certified": "🟢",
    "conditionally-certified": "🟡",
    "needs-improvement": "🟠",
    "not-certified": "🔴",
}


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def next_steps(results: TestRunSummary) -> list[str]:
    env = "production" if results.passed == results.total else "testing"
    steps = [
        f"Deploy the application to the {env} environment",
        "Consider adding more test coverage for edge cases",
        "Run performance tests to ensure optimal user experience",
    ]
    if results.failed:
        steps.append(f"Fix the {results.failed} failing tests before proceeding to production")
    return steps


def render_markdown_report(state: PipelineState, *, generated_at: str = "") -> str:
    """Render the pipeline's artifacts and simulated results into Markdown."""
    sections: list[str] = []
    title = state.blueprint.name if state.blueprint and state.blueprint.name else state.source or "Design"
    sections.append(f"# Test Report: {title}\n")
    sections.append(f"*Generated: {generated_at or datetime.now().isoformat(timespec='seconds')}*\n")

    # Pipeline status
    sections.append("## Pipeline Status\n")
    sections.append("| Stage | Status | Parsing |")
    sections.append("|-------|--------|---------|")
    for stage in STAGE_ORDER:
        info = state.extraction.get(stage)
        if stage in state.errors:
            status = f"❌ {state.errors[stage].error_type}"
        elif stage in state.stale:
            status = "⚠️ stale"
        elif state.has_artifact(stage):
            status = "✅ done"
        else:
            status = "pending"
        parsing = "-"
        if info:
            parsing = f"{info.tier} (fallback)" if info.degraded else info.tier
        sections.append(f"| {stage.label} | {status} | {parsing} |")
    sections.append("")

    results = state.test_results
    if results:
        cert = results.certification()
        icon = _STATUS_ICON.get(cert.status, "⚪")
        sections.append("## Results Summary\n")
        sections.append(
            "> These results come from static analysis of the generated test code. "
            "No test was executed.\n"
        )
        sections.append(f"- **Framework:** {results.framework}")
        sections.append(f"- **Total tests:** {results.total}")
        sections.append(f"- **Passed:** {results.passed}")
        sections.append(f"- **Failed:** {results.failed}")
        sections.append(f"- **Pass rate:** {results.pass_rate:.0%}")
        sections.append(f"- **Certification:** {icon} {cert.status}: {cert.message}")
        sections.append("")

        if results.failure_details:
            sections.append("## Failed Tests\n")
            sections.append("| Test | Name | Error |")
            sections.append("|------|------|-------|")
            for d in results.failure_details:
                sections.append(f"| {d.test_id} | {_cell(d.test_name)} | {_cell(d.error)} |")
            sections.append("")

            sections.append("## Recommendations\n")
            for d in results.failure_details:
                sections.append(f"- {d.recommendation}")
            sections.append("")

        if results.missing_selectors:
            sections.append("## Missing Selectors\n")
            for sel in results.missing_selectors:
                sections.append(f"- `{sel}`")
            sections.append("")

        sections.append("## Next Steps\n")
        for step in next_steps(results):
            sections.append(f"- {step}")
        sections.append("")

    # Traceability
    if state.requirements:
        sections.append("## Requirements\n")
        for i, req in enumerate(state.requirements, 1):
            sections.append(f"{i}. {req}")
        sections.append("")

    if state.test_cases:
        sections.append("## Test Cases\n")
        sections.append("| ID | Title | Priority | Expected Result |")
        sections.append("|----|-------|----------|-----------------|")
        for tc in state.test_cases:
            sections.append(
                f"| {tc.id} | {_cell(tc.title)} | {tc.priority.value} | {_cell(tc.expected_result)} |"
            )
        sections.append("")

    if state.test_scenarios:
        sections.append("## Test Scenarios\n")
        for ts in state.test_scenarios:
            sections.append(f"### {ts.id}: {ts.name}\n")
            if ts.description:
                sections.append(f"{ts.description}\n")
            if ts.preconditions:
                sections.append(f"*Preconditions: {ts.preconditions}*\n")
            for i, step in enumerate(ts.steps, 1):
                sections.append(f"{i}. {step}")
            sections.append(f"\n**Expected outcome:** {ts.expected_outcome}\n")

    if state.report and state.report.content.strip():
        sections.append("## Generated Report\n")
        sections.append(state.report.content.strip() + "\n")

    return "\n".join(sections)
