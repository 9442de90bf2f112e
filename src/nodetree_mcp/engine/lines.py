"""Connector-line data for drawing a tree.

For each indentation level a renderer needs to know whether the ancestor
at that level was the last of its siblings: if so the vertical line stops
there, otherwise it continues down to the next sibling.
"""

from typing import Iterator, List, Optional, Tuple

from ..models import Forest, JsonDict
from .lookup import ancestor_chain, locate, siblings_of

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def ancestor_last_flags(forest: Forest, node_id: str) -> List[bool]:
    """One flag per ancestor of ``node_id``, root first, parent last.

    Each flag is True when that ancestor is the last child of its own parent
    (or the last root). Root-level and unknown nodes give an empty list.
    """
    chain = ancestor_chain(forest, node_id)
    flags = []
    siblings = forest
    for ancestor in chain:
        flags.append(siblings[-1] is ancestor)
        siblings = ancestor["children"]
    return flags


def is_last_sibling(forest: Forest, node_id: str) -> Optional[bool]:
    """Whether ``node_id`` is the last of its siblings; None if not found."""
    location = locate(forest, node_id)
    if not location.found:
        return None
    siblings = siblings_of(forest, location)
    return location.index == len(siblings) - 1


def walk_with_flags(forest: Forest) -> Iterator[Tuple[JsonDict, List[bool], bool]]:
    """Yield ``(node, ancestor_flags, is_last)`` in pre-order.

    Same flags as ``ancestor_last_flags`` but for the whole forest in one pass.
    """
    stack: List[Tuple[JsonDict, List[bool], bool]] = []
    for i in range(len(forest) - 1, -1, -1):
        stack.append((forest[i], [], i == len(forest) - 1))
    while stack:
        node, flags, is_last = stack.pop()
        yield node, flags, is_last
        children = node.get("children")
        if children:
            child_flags = flags + [is_last]
            for i in range(len(children) - 1, -1, -1):
                stack.append((children[i], child_flags, i == len(children) - 1))


def _label(node: JsonDict) -> str:
    icon = node.get("icon")
    return f"[{icon}] {node['name']}" if icon else node["name"]


def render_tree(forest: Forest) -> str:
    """Render the forest as text with box-drawing connector lines.

    Root-level nodes are written without a connector.
    """
    lines = []
    for node, flags, is_last in walk_with_flags(forest):
        if not flags:
            lines.append(_label(node))
            continue
        # The root level has no connector column of its own
        prefix = "".join(SPACE if last else PIPE for last in flags[1:])
        connector = LAST_BRANCH if is_last else BRANCH
        lines.append(f"{prefix}{connector}{_label(node)}")
    return "\n".join(lines)
