"""Low-level extraction over raw model text.

Each helper turns the model's freeform output into one of a closed set of
intermediate shapes (``RawText``, ``JsonArray``, ``LabelledBlocks``) or
returns None. The per-artifact parsers chain these as fallback tiers.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class RawText(BaseModel):
    kind: Literal["raw_text"] = "raw_text"
    text: str
    fenced: bool = False


class JsonArray(BaseModel):
    kind: Literal["json_array"] = "json_array"
    items: list[dict[str, Any]]


class LabelledBlocks(BaseModel):
    kind: Literal["labelled_blocks"] = "labelled_blocks"
    blocks: list[dict[str, str]]


Extracted = Union[RawText, JsonArray, LabelledBlocks]

_decoder = json.JSONDecoder()

_FENCED_JSON = re.compile(r"```[ \t]*json[ \t]*\n(.*?)```", re.DOTALL | re.IGNORECASE)
_LEADING_FENCE = re.compile(r"\A\s*```[\w.+#-]*[ \t]*(?:\n|\Z)")
_TRAILING_FENCE = re.compile(r"(?:\A|\n)[ \t]*```[ \t]*\s*\Z")

# Optional bullet and bold markers around a "Label:" at line start
_LABEL_LINE = r"^[ \t]*(?:[-*•][ \t]*)?(?:\*\*|__)?[ \t]*({labels})[ \t]*(?:\*\*|__)?[ \t]*:[ \t]*(?:\*\*|__)?[ \t]*(.*)$"


def _dict_items(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return []


def _bracket_span_end(text: str, start: int) -> int | None:
    """Index just past the ``]`` closing the ``[`` at ``start``, or None if it never closes."""
    depth = 0
    in_string = escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def find_json_array(text: str) -> JsonArray | None:
    """Return the first JSON array in ``text`` that contains at least one object.

    A real decode is attempted at every ``[`` so nested brackets and brackets
    inside strings are handled, and anything after the array is ignored.
    When the decode fails, arrays nested inside the malformed one are skipped
    so an item's own list is never mistaken for the record list.
    """
    start = text.find("[")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            end = _bracket_span_end(text, start)
            logger.debug("Malformed JSON array at offset %d, skipping its contents", start)
            start = text.find("[", end if end is not None else start + 1)
            continue
        items = _dict_items(value)
        if items:
            return JsonArray(items=items)
        start = text.find("[", start + 1)
    return None


def find_fenced_json(text: str) -> JsonArray | None:
    """Parse the first ```json fenced block that yields objects.

    The block may hold an array, an object wrapping an array under some key,
    or a single object (treated as a one-element array).
    """
    for match in _FENCED_JSON.finditer(text):
        body = match.group(1).strip()
        try:
            value, _ = _decoder.raw_decode(body)
        except json.JSONDecodeError:
            logger.debug("Fenced json block did not parse, skipping")
            continue

        items = _dict_items(value)
        if not items and isinstance(value, dict):
            for inner in value.values():
                items = _dict_items(inner)
                if items:
                    break
            else:
                items = [value]
        if items:
            return JsonArray(items=items)
    return None


def split_blocks(text: str, header: str) -> list[str]:
    """Split ``text`` into chunks that each start at a ``header:`` line.

    Text before the first header is dropped.
    """
    pattern = re.compile(_LABEL_LINE.format(labels=re.escape(header)), re.MULTILINE | re.IGNORECASE)
    starts = [m.start() for m in pattern.finditer(text)]
    return [text[a:b] for a, b in zip(starts, starts[1:] + [len(text)])]


def scan_labels(block: str, labels: dict[str, list[str]]) -> dict[str, str]:
    """Map each canonical field to the text captured under its label.

    ``labels`` maps a field name to the label spellings that introduce it.
    A field's value is the rest of its label line plus every following line
    up to the next recognised label; lines are kept so step lists survive.
    """
    spellings = {alias.lower(): field for field, aliases in labels.items() for alias in aliases}
    alternation = "|".join(re.escape(a) for a in sorted(spellings, key=len, reverse=True))
    pattern = re.compile(_LABEL_LINE.format(labels=alternation), re.IGNORECASE)

    captured: dict[str, list[str]] = {}
    current: str | None = None
    for line in block.splitlines():
        m = pattern.match(line)
        if m:
            current = spellings[re.sub(r"\s+", " ", m.group(1)).lower()]
            captured.setdefault(current, [])
            if m.group(2).strip():
                captured[current].append(m.group(2).strip().strip("*_").strip())
        elif current is not None and line.strip():
            captured[current].append(line.strip())

    return {field: "\n".join(lines) for field, lines in captured.items() if lines}


def find_labelled_blocks(text: str, header: str, labels: dict[str, list[str]]) -> LabelledBlocks | None:
    blocks = [scan_labels(chunk, labels) for chunk in split_blocks(text, header)]
    blocks = [block for block in blocks if block]
    return LabelledBlocks(blocks=blocks) if blocks else None


def strip_code_fence(text: str) -> tuple[str, bool]:
    """Remove one leading ```lang line and one trailing ``` line, if present.

    Returns the text and whether a fence was removed.
    """
    stripped = False
    body = text
    m = _LEADING_FENCE.match(body)
    if m:
        body = body[m.end():]
        stripped = True
    m = _TRAILING_FENCE.search(body)
    if m:
        body = body[: m.start()]
        stripped = True
    return (body.strip("\n") if stripped else body), stripped


def find_code(text: str) -> RawText:
    body, fenced = strip_code_fence(text)
    return RawText(text=body, fenced=fenced)
