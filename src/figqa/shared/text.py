"""Formatting helpers shared by the stage prompt templates."""

from __future__ import annotations

import json
from typing import Any, Iterable

from pydantic import BaseModel

CODE_EXCERPT_LIMIT = 15_000  # characters


def excerpt(text: str, limit: int = CODE_EXCERPT_LIMIT) -> str:
    """Return ``text`` unchanged if short enough, else a head + tail excerpt.

    Both halves are cut on line boundaries and joined by a
    ``[truncated N characters]`` marker line. The result stays within
    ``limit`` characters apart from the marker itself.
    """
    if len(text) <= limit:
        return text

    half = limit // 2
    head = text[:half]
    if "\n" in head:
        head = head[: head.rfind("\n")]
    tail = text[len(text) - half :]
    if "\n" in tail:
        tail = tail[tail.find("\n") + 1 :]

    omitted = len(text) - len(head) - len(tail)
    return f"{head}\n[truncated {omitted} characters]\n{tail}"


def format_numbered(items: Iterable[str]) -> str:
    lines = [f"{i}. {item}" for i, item in enumerate(items, 1)]
    return "\n".join(lines) if lines else "(none)"


def to_json(items: Iterable[BaseModel] | BaseModel | Any) -> str:
    """Serialize models (or a list of them) as indented JSON for a prompt."""
    if isinstance(items, BaseModel):
        data: Any = items.model_dump(mode="json", exclude_none=True)
    elif isinstance(items, (list, tuple)):
        data = [
            item.model_dump(mode="json", exclude_none=True) if isinstance(item, BaseModel) else item
            for item in items
        ]
    else:
        data = items
    return json.dumps(data, indent=2, ensure_ascii=False)


def fenced(text: str, lang: str = "") -> str:
    return f"```{lang}\n{text}\n```"
