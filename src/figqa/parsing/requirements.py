"""Requirements parser: labelled list → filtered lines → sentences → fixed fallback."""

from __future__ import annotations

import logging
import re

from figqa.schemas.artifacts import Parsed

logger = logging.getLogger(__name__)

FALLBACK_REQUIREMENT = "The system should implement all functionality visible in the design."

MIN_LINE_LENGTH = 15
MIN_SENTENCE_LENGTH = 20

_LABEL = r"(?:REQ-\d+|Requirement[ \t]+\d+|\d+\.)"
_LABEL_START = rf"^[ \t]*(?:[-*•][ \t]*)?(?:\*\*)?[ \t]*{_LABEL}"
_LABELLED = re.compile(
    _LABEL_START
    + r"(?:\*\*)?[ \t]*[:.)\-]?[ \t]*(?:\*\*)?[ \t]*"
    + r"(.+?)"
    # An item ends at a blank line, the next label or an unindented line of prose.
    + rf"(?=\n[ \t]*\n|\n{_LABEL_START[1:]}|\n\S|\Z)",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)
_BULLET = re.compile(r"^(?:[-*•]\s+)+")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace("**", "")).strip()


def _labelled(text: str) -> list[str]:
    items = [_clean(m.group(1)) for m in _LABELLED.finditer(text)]
    return [item for item in items if item]


def _lines(text: str) -> list[str]:
    kept = []
    for line in text.splitlines():
        line = _BULLET.sub("", line.strip()).strip()
        if not line or line.startswith("#") or line.endswith(":"):
            continue
        if len(line) > MIN_LINE_LENGTH:
            kept.append(_clean(line))
    return kept


def _sentences(text: str) -> list[str]:
    return [s for s in (_clean(part) for part in _SENTENCE_END.split(text)) if len(s) > MIN_SENTENCE_LENGTH]


_TIERS = (("labelled", _labelled), ("lines", _lines), ("sentences", _sentences))


def parse_requirements(text: str | None) -> Parsed[str]:
    """Extract a non-empty list of requirement strings from model output.

    Tiers run in order and the first non-empty result wins. Whatever the
    input, at least one requirement comes back.
    """
    text = text or ""
    for i, (tier, extract) in enumerate(_TIERS):
        items = extract(text)
        if items:
            if i:
                logger.info("Requirements fell back to tier '%s' (%d items)", tier, len(items))
            return Parsed[str](items=items, tier=tier, degraded=i > 0)

    logger.warning("No requirements could be extracted, using the fixed fallback")
    return Parsed[str](items=[FALLBACK_REQUIREMENT], tier="fallback", degraded=True)
