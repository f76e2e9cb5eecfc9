"""Reduce a Figma document tree to a prompt-sized blueprint.

Works on the raw JSON mapping rather than a validated ``DesignNode`` so a
pathologically deep or wide file is never walked past the limits.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from figqa.schemas.design import Blueprint, BlueprintNode, DesignNode, Dimensions

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_CHILDREN = 20


def _label(node: Mapping[str, Any], key: str) -> str:
    value = node.get(key)
    return value if isinstance(value, str) else ""


def _dimensions(node: Mapping[str, Any]) -> Dimensions | None:
    box = node.get("absoluteBoundingBox")
    if not isinstance(box, Mapping):
        return None
    try:
        return Dimensions(width=float(box.get("width") or 0), height=float(box.get("height") or 0))
    except (TypeError, ValueError):
        return None


def _text(node: Mapping[str, Any]) -> str | None:
    if _label(node, "type") != "TEXT":
        return None
    chars = node.get("characters")
    if isinstance(chars, str) and chars.strip():
        return chars
    return None


def _reduce(node: Mapping[str, Any], depth: int, max_depth: int, max_children: int) -> dict[str, Any]:
    name, type_ = _label(node, "name"), _label(node, "type")
    if depth >= max_depth:
        return {"name": name, "type": type_}

    reduced: dict[str, Any] = {"name": name, "type": type_}
    if (dims := _dimensions(node)) is not None:
        reduced["dimensions"] = dims
    if (text := _text(node)) is not None:
        reduced["text"] = text

    children = node.get("children")
    if isinstance(children, list):
        kept = [child for child in children if isinstance(child, Mapping)][:max_children]
        if kept:
            reduced["children"] = [
                BlueprintNode(**_reduce(child, depth + 1, max_depth, max_children)) for child in kept
            ]
    return reduced


def reduce_blueprint(
    root: Mapping[str, Any] | DesignNode | Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_children: int = DEFAULT_MAX_CHILDREN,
) -> Blueprint:
    """Copy name/type/dimensions/text from ``root`` down to ``max_depth`` levels.

    Accepts a node mapping, a ``DesignNode`` or a whole files-API response
    (``{"document": ...}``). At most ``max_children`` children are kept per
    node; nodes at ``max_depth`` become ``{name, type}`` stubs. Never raises
    on malformed input.
    """
    if isinstance(root, DesignNode):
        root = root.model_dump(by_alias=True)
    if isinstance(root, Mapping) and "type" not in root and isinstance(root.get("document"), Mapping):
        root = root["document"]
    if not isinstance(root, Mapping):
        logger.warning("Design root is %s, not a mapping; using an empty blueprint", type(root).__name__)
        return Blueprint()

    blueprint = Blueprint(**_reduce(root, 0, max(max_depth, 0), max(max_children, 1)))
    logger.debug(
        "Reduced design '%s' to depth %d, widest level %d",
        blueprint.name, blueprint.depth(), blueprint.max_breadth(),
    )
    return blueprint
