"""Prompt for the Test Report stage."""

from figqa.schemas.pipeline import StageInputs
from figqa.shared.text import to_json

ROLE = "You are an expert QA manager preparing a final test report for stakeholders."

INSTRUCTIONS = """\
Your task is to analyze the test results below and write the test report. \
The results come from static analysis of the generated tests, not from a real \
test run; say so in the report.

Include these sections:
1. Executive summary, with the pass rate and an overall assessment
2. Critical issues, as a prioritized list of failed tests
3. Recommendations for fixing each issue
4. Readiness assessment: is the application ready for deployment?
5. Next steps before release

## Output Format
Markdown suitable for technical and non-technical readers. No code fences \
around the whole report.
"""


def build_prompt(inputs: StageInputs) -> str:
    results = to_json(inputs.test_results) if inputs.test_results else "{}"
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS,
        f"## Test Results\n```json\n{results}\n```",
    ])
