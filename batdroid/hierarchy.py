"""UIAutomator hierarchy capture and parsing.

Turns the text emitted by ``uiautomator dump`` into a forest of typed
:class:`Element` nodes.  The dump grammar is flat and predictable (only
``node`` tags, no text content, no CDATA), so a single regex scan with an
explicit stack of open nodes is enough -- no XML library is involved.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from batdroid._base import CommandRunner

logger = logging.getLogger(__name__)

DUMP_COMMAND = ["exec-out", "uiautomator", "dump", "/dev/tty"]
DUMP_TIMEOUT = 10.0

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned screen rectangle.

    Width and height come straight from ``right - left`` and
    ``bottom - top`` and are never clamped, so an inverted source rectangle
    yields negative values.
    """

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class Element:
    """One accessibility node from a dump.

    Absent string attributes are ``""`` and absent flags are ``False``.
    A node owns its children; there is no parent reference.
    """

    resource_id: str = ""
    text: str = ""
    content_desc: str = ""
    class_name: str = ""
    package: str = ""
    bounds: Bounds = field(default_factory=Bounds)
    clickable: bool = False
    enabled: bool = False
    scrollable: bool = False
    children: list[Element] = field(default_factory=list)

    def _node_dict(self) -> dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "text": self.text,
            "content_desc": self.content_desc,
            "class": self.class_name,
            "package": self.package,
            "bounds": self.bounds.to_dict(),
            "clickable": self.clickable,
            "enabled": self.enabled,
            "scrollable": self.scrollable,
            "children": [],
        }

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict of this node and its whole subtree."""
        root = self._node_dict()
        # Explicit stack: dumps can nest deeper than the recursion limit.
        stack = [(self, root)]
        while stack:
            element, data = stack.pop()
            for child in element.children:
                child_data = child._node_dict()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return root


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

_BOUNDS_RE = re.compile(r"\[(\d+),(\d+)\]\[(\d+),(\d+)\]")


def parse_bounds(text: str) -> Bounds:
    """Parse a UIAutomator bounds string ``"[left,top][right,bottom]"``.

    Returns the zero rectangle when the string does not match; a bad bounds
    attribute must not abort the parse of the whole dump.
    """
    match = _BOUNDS_RE.search(text)
    if not match:
        return Bounds()
    left, top, right, bottom = (int(g) for g in match.groups())
    return Bounds(x=left, y=top, width=right - left, height=bottom - top)


def element_center(element: Element) -> tuple[int, int]:
    """Return the (x, y) midpoint of an element's bounds.

    Halves round upward (``2.5 -> 3``), not to even.
    """
    b = element.bounds
    return (
        math.floor(b.x + b.width / 2 + 0.5),
        math.floor(b.y + b.height / 2 + 0.5),
    )


# ---------------------------------------------------------------------------
# Structural parser
# ---------------------------------------------------------------------------

# Opening/self-closing node tag (group 1 = raw attributes) or a closing tag.
_TAG_RE = re.compile(r"<node\s+([^>]*?)\s*/?>|</node>")
_ATTR_RE = re.compile(r'([\w:.-]+)="([^"]*)"')


def _parse_attrs(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for name, value in _ATTR_RE.findall(raw):
        attrs.setdefault(name, value)
    return attrs


def _build_element(raw_attrs: str) -> Element:
    attrs = _parse_attrs(raw_attrs)
    return Element(
        resource_id=attrs.get("resource-id", ""),
        text=attrs.get("text", ""),
        content_desc=attrs.get("content-desc", ""),
        class_name=attrs.get("class", ""),
        package=attrs.get("package", ""),
        bounds=parse_bounds(attrs.get("bounds", "")),
        clickable=attrs.get("clickable") == "true",
        enabled=attrs.get("enabled") == "true",
        scrollable=attrs.get("scrollable") == "true",
    )


def parse_hierarchy(xml: str) -> list[Element]:
    """Parse a UIAutomator dump into a forest of top-level elements.

    Lenient: a stray ``</node>`` is ignored, and a
    node that is never closed keeps adopting the nodes that follow it.
    """
    roots: list[Element] = []
    stack: list[Element] = []

    for match in _TAG_RE.finditer(xml):
        token = match.group(0)

        if token == "</node>":
            if stack:
                stack.pop()
            else:
                logger.debug("ignoring unmatched </node> at offset %d", match.start())
            continue

        element = _build_element(match.group(1))
        if stack:
            stack[-1].children.append(element)
        else:
            roots.append(element)

        if not token.endswith("/>"):
            stack.append(element)

    if stack:
        logger.debug("%d node(s) left unterminated at end of dump", len(stack))
    return roots


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------

# uiautomator appends "UI hierchary dumped to: /dev/tty" (sic) after the XML.
_TRAILER_RE = re.compile(r"UI hier(?:arch?y|chary) dumped to:.*$", re.IGNORECASE)


class DumpError(RuntimeError):
    """The dump command succeeded but did not return a hierarchy."""


def clean_dump(output: str) -> str:
    """Strip the trailing confirmation line and surrounding whitespace."""
    return _TRAILER_RE.sub("", output, count=1).strip()


def get_ui_hierarchy(runner: CommandRunner, *, timeout: float = DUMP_TIMEOUT) -> list[Element]:
    """Dump the device's current UI and parse it.

    Every call re-dumps; nothing is cached between calls.

    Args:
        runner: Command runner bound to the target device.
        timeout: Seconds to allow the dump command.

    Raises:
        CommandError: If the dump command itself fails or times out.
        DumpError: If the output does not contain a ``<hierarchy`` element.
    """
    xml = clean_dump(runner.run(DUMP_COMMAND, timeout=timeout))
    if "<hierarchy" not in xml:
        raise DumpError(f"UIAutomator dump returned unexpected output: {xml[:200]}")
    return parse_hierarchy(xml)
