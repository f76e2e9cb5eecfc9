"""Code-artifact parser for application code, test code and report text."""

from __future__ import annotations

from figqa.parsing.extract import find_code
from figqa.schemas.artifacts import Parsed


def parse_code(text: str | None) -> Parsed[str]:
    """Strip one surrounding code fence if present; never raises.

    The single item is the code text, possibly empty.
    """
    found = find_code(text or "")
    return Parsed[str](items=[found.text], tier="fenced" if found.fenced else "raw")
