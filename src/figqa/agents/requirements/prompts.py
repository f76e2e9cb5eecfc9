"""Prompt for the Requirements stage."""

from figqa.schemas.pipeline import StageInputs

ROLE = "You are an expert product manager and software architect."

INSTRUCTIONS = """\
Your task is to analyze a Figma design blueprint and write the functional \
requirements for a web application built from this design.

Even if the design is simple or looks like a learning exercise, extrapolate \
what a real, working application based on it would need.

Focus on:
1. Core functionality implied by the design elements
2. User interactions and flows (clicks, form submissions, navigation)
3. Data management (saving, loading, validating input)
4. Integration points with backend systems
5. Authentication and authorization needs

## Output Format
A numbered list of requirements, one per line. Prefix each requirement with \
"REQ-" and its number, followed by a clear description. No other text.

Examples of good requirements:
REQ-1: The system shall allow users to log in using their email and password.
REQ-2: The system shall display a dashboard showing summary statistics of user activity.
REQ-3: The system shall validate all form inputs before submission.

If the design lacks detail, make reasonable assumptions about what a complete \
application would need. Be creative but practical.
"""


def build_prompt(inputs: StageInputs) -> str:
    blueprint = inputs.blueprint.to_prompt_json() if inputs.blueprint else "{}"
    return "\n\n".join([
        ROLE,
        INSTRUCTIONS,
        f"## Design Blueprint\n```json\n{blueprint}\n```",
    ])
