"""
Hierarchy renderers: compact text for LLM context, depth-bounded flattening,
and JSON output.

All renderers are read-only projections of a parsed forest.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator

from batdroid.hierarchy import Element
from batdroid.search import short_resource_id

DEFAULT_COMPACT_DEPTH = 15
DEFAULT_FLAT_DEPTH = 20

# Maximum compact output size used by the MCP server. Kept well under typical
# MCP host limits (~100K) to leave room for other context.
MAX_OUTPUT_CHARS = 40_000

# ---------------------------------------------------------------------------
# Class names
# ---------------------------------------------------------------------------

_PLATFORM_PREFIXES = ("android.widget.", "android.view.", "android.webkit.")


def shorten_class_name(cls: str) -> str:
    """Strip well-known Android package prefixes from a class name.

    ``android.widget.TextView`` -> ``TextView``;
    ``androidx.recyclerview.widget.RecyclerView`` -> ``RecyclerView``.
    Other names are returned unchanged.
    """
    for prefix in _PLATFORM_PREFIXES:
        if cls.startswith(prefix):
            return cls[len(prefix) :]
    if cls.startswith("androidx."):
        return cls.rsplit(".", 1)[-1]
    return cls


def count_nodes(forest: list[Element]) -> int:
    """Count total nodes in a forest."""
    total = 0
    stack = list(forest)
    while stack:
        element = stack.pop()
        total += 1
        stack.extend(element.children)
    return total


# ---------------------------------------------------------------------------
# Compact text serializer
# ---------------------------------------------------------------------------


def format_line(element: Element) -> str:
    """Format a single element as a compact one-liner (no indentation)."""
    parts = [shorten_class_name(element.class_name)]

    if element.text:
        parts.append(f'"{element.text}"')

    b = element.bounds
    parts.append(f"[{b.x},{b.y} {b.width}x{b.height}]")

    if element.resource_id:
        parts.append(f"id:{short_resource_id(element.resource_id)}")
    if element.content_desc:
        parts.append(f'desc:"{element.content_desc}"')
    if element.clickable:
        parts.append("[clickable]")
    if element.scrollable:
        parts.append("[scrollable]")

    return " ".join(parts)


def _walk(forest: list[Element], max_depth: int) -> Iterator[tuple[Element, int]]:
    """Yield ``(element, depth)`` in pre-order, skipping subtrees past ``max_depth``."""
    stack = [(element, 0) for element in reversed(forest)]
    while stack:
        element, depth = stack.pop()
        if depth > max_depth:
            continue
        yield element, depth
        stack.extend((child, depth + 1) for child in reversed(element.children))


def serialize_compact(
    forest: list[Element],
    *,
    max_depth: int = DEFAULT_COMPACT_DEPTH,
    max_chars: int = 0,
) -> str:
    """Serialize a forest to indented compact text, one line per element.

    Args:
        forest: Parsed top-level elements.
        max_depth: Deepest level emitted (roots are depth 0). Deeper
                   elements and their subtrees are left out.
        max_chars: Hard character limit; 0 disables it. When exceeded the
                   output is cut at the last whole line and a note appended.
    """
    output = "\n".join(
        f"{'  ' * depth}{format_line(element)}" for element, depth in _walk(forest, max_depth)
    )

    if max_chars > 0 and len(output) > max_chars:
        truncated = output[:max_chars]
        last_nl = truncated.rfind("\n")
        if last_nl > 0:
            truncated = truncated[:last_nl]
        truncated += (
            "\n\n# OUTPUT TRUNCATED — exceeded character limit.\n"
            "# Lower max_depth or use find_elements to locate specific elements."
        )
        return truncated

    return output


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


@dataclass
class FlatElement(Element):
    """An element detached from its subtree, tagged with its tree depth."""

    depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["depth"] = self.depth
        return data


def _flat_copy(element: Element, depth: int) -> FlatElement:
    return FlatElement(
        resource_id=element.resource_id,
        text=element.text,
        content_desc=element.content_desc,
        class_name=element.class_name,
        package=element.package,
        bounds=element.bounds,
        clickable=element.clickable,
        enabled=element.enabled,
        scrollable=element.scrollable,
        depth=depth,
    )


def flatten_hierarchy(
    forest: list[Element],
    *,
    max_depth: int = DEFAULT_FLAT_DEPTH,
) -> list[FlatElement]:
    """Linearize a forest in pre-order, recording each element's depth.

    Ancestry survives only as emission order plus depth: an element's
    parent is the nearest preceding record one level shallower.
    """
    return [_flat_copy(element, depth) for element, depth in _walk(forest, max_depth)]


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _encode_json(root: Any, indent: int | None) -> str:
    """Encode like ``json.dumps(root, indent=indent, ensure_ascii=False)``.

    ``json`` recurses once per nesting level, which real dumps can exceed;
    containers are expanded here with an explicit stack and only scalars
    and keys go through :func:`json.dumps`.
    """
    item_sep = "," if indent is not None else ", "
    out: list[str] = []
    # (is_raw, payload, level)
    stack: list[tuple[bool, Any, int]] = [(False, root, 0)]
    while stack:
        is_raw, value, level = stack.pop()
        if is_raw:
            out.append(value)
            continue
        if isinstance(value, (dict, list)) and value:
            if indent is None:
                inner = outer = ""
            else:
                inner = "\n" + " " * (indent * (level + 1))
                outer = "\n" + " " * (indent * level)
            is_dict = isinstance(value, dict)
            pieces: list[tuple[bool, Any, int]] = [(True, "{" if is_dict else "[", level)]
            items = value.items() if is_dict else enumerate(value)
            for i, (key, item) in enumerate(items):
                prefix = inner if i == 0 else item_sep + inner
                if is_dict:
                    prefix += json.dumps(key, ensure_ascii=False) + ": "
                pieces.append((True, prefix, level))
                pieces.append((False, item, level + 1))
            pieces.append((True, outer + ("}" if is_dict else "]"), level))
            stack.extend(reversed(pieces))
        else:
            out.append(json.dumps(value, ensure_ascii=False))
    return "".join(out)


def serialize_json(elements: list[Element], *, indent: int | None = 2) -> str:
    """Serialize elements (nested or flattened) to JSON.

    Output matches ``json.dumps`` with the same ``indent`` and works for
    trees of any depth.
    """
    return _encode_json([e.to_dict() for e in elements], indent)
