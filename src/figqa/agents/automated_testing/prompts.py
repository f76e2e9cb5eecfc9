"""Prompt for the Automated Testing stage."""

from figqa.schemas.pipeline import StageInputs
from figqa.shared.text import excerpt, fenced, to_json

ROLE = "You are an expert test automation engineer."

_FRAMEWORK_NOTES = {
    "cypress": "Use Cypress with `describe` / `it` blocks and `cy.get(...)` selectors.",
    "playwright": "Use Playwright Test (`@playwright/test`) with `test(...)` blocks and `page.locator(...)` selectors.",
    "selenium": "Use Selenium WebDriver for JavaScript with `it(...)` blocks and `By.css(...)` selectors.",
}

INSTRUCTIONS = """\
Your task is to turn test scenarios into automated {framework} tests for the \
application below. {notes}

Include:
1. All imports and setup
2. Page objects or helper functions as needed
3. Assertions for every expected outcome
4. One test per scenario, named after the scenario

Only use selectors (ids, class names, attributes) that exist in the \
application code.

## Output Format
Return ONLY the test code, in a single fenced code block.
"""


def build_prompt(inputs: StageInputs) -> str:
    framework = inputs.framework
    notes = _FRAMEWORK_NOTES.get(framework, "")
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS.format(framework=framework.capitalize(), notes=notes).rstrip(),
        f"## Test Scenarios\n```json\n{to_json(inputs.test_scenarios)}\n```",
        f"## Application Code (excerpt)\n{fenced(excerpt(inputs.application_code))}",
    ])
