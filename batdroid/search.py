"""Selector matching over parsed hierarchies.

A selector is a partial filter on ``resource_id``, ``text`` and
``content_desc``.  Unset fields are wildcards; set fields must all hold.
Matching is exact -- no case folding, no trimming -- except that a
resource id may be given in its short form (the part after the last ``/``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from batdroid.hierarchy import Element


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Selector:
    """Fields to match; ``None`` means any value."""

    resource_id: str | None = None
    text: str | None = None
    content_desc: str | None = None

    def is_empty(self) -> bool:
        return self.resource_id is None and self.text is None and self.content_desc is None

    def to_dict(self) -> dict[str, str]:
        """Return only the fields that constrain the match."""
        fields = {
            "resource_id": self.resource_id,
            "text": self.text,
            "content_desc": self.content_desc,
        }
        return {k: v for k, v in fields.items() if v is not None}


def short_resource_id(resource_id: str) -> str:
    """Return the id part of ``package:id/name`` (the text after the last ``/``)."""
    return resource_id.rsplit("/", 1)[-1]


def matches(element: Element, selector: Selector) -> bool:
    """Check a single element against every set field of ``selector``."""
    if selector.resource_id is not None:
        rid = element.resource_id
        if rid != selector.resource_id and short_resource_id(rid) != selector.resource_id:
            return False
    if selector.text is not None and element.text != selector.text:
        return False
    if selector.content_desc is not None and element.content_desc != selector.content_desc:
        return False
    return True


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


def find_elements(
    forest: list[Element],
    selector: Selector | None = None,
    *,
    resource_id: str | None = None,
    text: str | None = None,
    content_desc: str | None = None,
) -> list[Element]:
    """Return every element matching the selector, in pre-order.

    Pass either a :class:`Selector` or the individual keyword filters.
    Descendants of a matching node are still searched, so nested matches
    are all returned.  An empty list is a valid result.
    """
    if selector is None:
        selector = Selector(resource_id=resource_id, text=text, content_desc=content_desc)

    results: list[Element] = []
    # Reversed pushes keep the pop order equal to document order.
    stack = list(reversed(forest))
    while stack:
        element = stack.pop()
        if matches(element, selector):
            results.append(element)
        stack.extend(reversed(element.children))
    return results
