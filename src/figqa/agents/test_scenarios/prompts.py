"""Prompt for the Test Scenarios stage."""

from figqa.schemas.pipeline import StageInputs
from figqa.shared.text import excerpt, fenced, to_json

ROLE = "You are an expert QA engineer specializing in test scenario design."

INSTRUCTIONS = """\
Your task is to combine test cases into end-to-end test scenarios for the \
application below. Write 5-8 scenarios. Each scenario should:
1. Exercise a complete user journey or workflow
2. Chain the steps of related test cases together
3. State clear preconditions and an expected outcome

## Output Format
Respond with a single JSON array and nothing else. Each element is an object:

- `id`: unique scenario ID in TS-XXX format
- `name`: descriptive scenario name
- `description`: brief overview of what the scenario covers
- `preconditions`: setup required before running the scenario
- `steps`: array of strings
- `expected_outcome`: final result when the scenario passes
- `test_data`: test data needed, if any
"""


def build_prompt(inputs: StageInputs) -> str:
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS,
        f"## Test Cases\n```json\n{to_json(inputs.test_cases)}\n```",
        f"## Application Code (excerpt)\n{fenced(excerpt(inputs.application_code))}",
    ])
