"""Prompt for the Application stage."""

from figqa.schemas.pipeline import StageInputs
from figqa.shared.text import format_numbered

ROLE = "You are an expert full-stack developer who builds web applications from designs."

INSTRUCTIONS = """\
Your task is to write the code for a complete application from a Figma design \
blueprint and its functional requirements.

Generate a working React frontend and any backend code it needs, including \
markup, styling and JavaScript. Use a modern, responsive implementation with:
1. A clear component structure
2. Styling (plain CSS or a framework like Tailwind)
3. State management
4. API endpoints, if needed
5. Data models

Give every interactive element a stable `id` or `className` so automated tests \
can select it.

## Output Format
Return ONLY the code, in a single fenced code block, with no explanation \
before or after it. The code must be complete and ready to run.
"""


def build_prompt(inputs: StageInputs) -> str:
    blueprint = inputs.blueprint.to_prompt_json() if inputs.blueprint else "{}"
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS,
        f"## Design Blueprint\n```json\n{blueprint}\n```",
        f"## Functional Requirements\n{format_numbered(inputs.requirements)}",
    ])
