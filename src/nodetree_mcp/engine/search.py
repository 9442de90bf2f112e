"""Search: pruned views of a forest and match highlighting."""

import re
from typing import List, Tuple

from ..models import Forest
from .identity import clone_forest
from .lookup import flatten


def filter_forest(forest: Forest, term: str) -> Forest:
    """Return the part of ``forest`` relevant to a case-insensitive search.

    A node stays if its name contains ``term`` or any descendant stays.
    When some children stay, the node's children are narrowed to those.
    When none stay but the node itself matches, it keeps its original
    children untouched, so a matching branch shows everything under it.

    A blank ``term`` returns ``forest`` itself. Otherwise the result is a new
    forest that shares nothing with the input.
    """
    if not term or not term.strip():
        return forest

    needle = term.lower()
    copy = clone_forest(forest)
    kept = {}
    # Reversed pre-order: every node is decided after all of its descendants
    for node in reversed(flatten(copy)):
        children = node.get("children") or []
        kept_children = [child for child in children if kept[id(child)]]
        kept[id(node)] = needle in node["name"].lower() or bool(kept_children)
        if kept_children:
            node["children"] = kept_children
    return [node for node in copy if kept[id(node)]]


def count_matches(forest: Forest, term: str) -> int:
    """Number of nodes whose own name contains ``term``."""
    if not term or not term.strip():
        return 0
    needle = term.lower()
    return sum(1 for node in flatten(forest) if needle in node["name"].lower())


def highlight_segments(text: str, term: str) -> List[Tuple[str, bool]]:
    """Split ``text`` into ``(segment, is_match)`` pieces for highlighting.

    Matching ignores case and treats ``term`` literally.
    """
    if not term:
        return [(text, False)] if text else []
    pattern = re.compile(f"({re.escape(term)})", re.IGNORECASE)
    segments = []
    for i, part in enumerate(pattern.split(text)):
        if part:
            # split() with one capturing group puts matches at odd positions
            segments.append((part, i % 2 == 1))
    return segments
