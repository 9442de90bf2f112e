"""Finding nodes in a forest.

All traversals here are iterative (explicit stack) and pre-order, i.e. the
order a tree widget shows fully expanded rows in.
"""

from typing import Iterator, List, NamedTuple, Optional, Set, Tuple

from ..models import Forest, JsonDict


class Location(NamedTuple):
    """Where a node sits in a forest.

    ``parent`` is None for root-level nodes, and then ``index`` is the position
    in the forest itself. A failed lookup has ``node=None`` and ``index=-1``;
    check ``found`` before using the other fields.
    """

    node: Optional[JsonDict]
    parent: Optional[JsonDict]
    index: int

    @property
    def found(self) -> bool:
        return self.node is not None


NOT_FOUND = Location(None, None, -1)


def walk(forest: Forest) -> Iterator[Tuple[JsonDict, Optional[JsonDict], int]]:
    """Yield ``(node, parent, depth)`` for every node in pre-order."""
    stack: List[Tuple[JsonDict, Optional[JsonDict], int]] = [
        (node, None, 0) for node in reversed(forest)
    ]
    while stack:
        node, parent, depth = stack.pop()
        yield node, parent, depth
        children = node.get("children")
        if children:
            stack.extend((child, node, depth + 1) for child in reversed(children))


def locate(forest: Forest, node_id: str) -> Location:
    """Return node, parent and sibling index for ``node_id``, or NOT_FOUND."""
    for node, parent, _depth in walk(forest):
        if node.get("id") == node_id:
            siblings = forest if parent is None else parent["children"]
            index = next(i for i, sibling in enumerate(siblings) if sibling is node)
            return Location(node, parent, index)
    return NOT_FOUND


def siblings_of(forest: Forest, location: Location) -> List[JsonDict]:
    """The list object that directly contains the located node."""
    if location.parent is None:
        return forest
    return location.parent["children"]


def find_node(forest: Forest, node_id: str) -> Optional[JsonDict]:
    return locate(forest, node_id).node


def flatten(forest: Forest) -> List[JsonDict]:
    """All nodes in pre-order (the nodes themselves, not copies)."""
    return [node for node, _parent, _depth in walk(forest)]


def count_nodes(forest: Forest) -> int:
    return sum(1 for _ in walk(forest))


def subtree_ids(node: JsonDict) -> List[str]:
    """Ids of ``node`` and all its descendants in pre-order."""
    return [n["id"] for n, _parent, _depth in walk([node])]


def contains_id(node: JsonDict, node_id: str) -> bool:
    """True if ``node_id`` is ``node`` itself or any of its descendants."""
    return any(n.get("id") == node_id for n, _parent, _depth in walk([node]))


def collect_ids(forest: Forest) -> Set[str]:
    return {node["id"] for node, _parent, _depth in walk(forest)}


def ancestor_chain(forest: Forest, node_id: str) -> List[JsonDict]:
    """Ancestors of ``node_id`` from its root down to its parent.

    Empty for root-level nodes and for ids that are not in the forest.
    """
    parents = {}
    for node, parent, _depth in walk(forest):
        parents[id(node)] = parent
        if node.get("id") == node_id:
            chain = []
            current = parent
            while current is not None:
                chain.append(current)
                current = parents[id(current)]
            chain.reverse()
            return chain
    return []


def node_path(forest: Forest, node_id: str) -> List[str]:
    """Names from the root down to ``node_id`` inclusive; empty if not found."""
    location = locate(forest, node_id)
    if not location.found:
        return []
    return [a["name"] for a in ancestor_chain(forest, node_id)] + [location.node["name"]]
