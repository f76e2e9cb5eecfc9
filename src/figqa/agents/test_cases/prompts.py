"""Prompt for the Test Cases stage."""

from figqa.schemas.pipeline import StageInputs
from figqa.shared.text import format_numbered

ROLE = "You are an expert QA specialist."

INSTRUCTIONS = """\
Your task is to write test cases for a web application from its functional \
requirements. Write 8-12 test cases covering happy paths, edge cases and \
error scenarios. Every requirement must be covered by at least one test case.

## Output Format
Respond with a single JSON array and nothing else. Each element is an object:

- `id`: unique test case ID in TC-XXX format
- `title`: short descriptive title
- `steps`: array of strings, one action per step
- `expected_result`: what happens when the test passes
- `priority`: "High", "Medium" or "Low"

Example:
[
  {
    "id": "TC-001",
    "title": "Successful login",
    "steps": ["Navigate to login page", "Enter valid credentials", "Click login button"],
    "expected_result": "User is logged in and redirected to the dashboard",
    "priority": "High"
  }
]
"""


def build_prompt(inputs: StageInputs) -> str:
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS,
        f"## Functional Requirements\n{format_numbered(inputs.requirements)}",
    ])
