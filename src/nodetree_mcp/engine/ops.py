"""Mutation operations on a forest.

Every operation follows the same sequence: validate the input, clone it,
mutate the clone, validate the result, return the clone. The caller's
forest is never modified, and nothing in the returned forest aliases it.

A target id that is not in the forest makes the operation a no-op that
returns an unmodified copy, unless ``strict=True`` is passed, in which case
NodeNotFoundError is raised.
"""

import logging
from typing import Callable, Optional

from ..models import Forest, JsonDict, NodeNotFoundError
from .identity import clone_forest, clone_node, clone_with_fresh_ids, new_id
from .lookup import Location, locate, siblings_of, walk
from .schema import validate_forest, validate_node

logger = logging.getLogger(__name__)


def _clamp(index: int, size: int) -> int:
    return max(0, min(index, size))


def _edit(
    operation: str,
    forest: Forest,
    node_id: str,
    strict: bool,
    mutate: Callable[[Forest, Location], None],
) -> Forest:
    """Run ``mutate`` against the located node inside a validated clone."""
    validate_forest(forest)
    copy = clone_forest(forest)
    location = locate(copy, node_id)
    if not location.found:
        if strict:
            raise NodeNotFoundError(node_id)
        logger.info("%s: node %s not found, forest unchanged", operation, node_id)
        return copy

    mutate(copy, location)
    result = validate_forest(copy)
    logger.debug("%s applied to %s", operation, node_id)
    return result


def add_sibling(
    forest: Forest,
    node_id: str,
    name: str = "New Sibling",
    is_leaf: bool = False,
    strict: bool = False,
) -> Forest:
    """Insert a new node right after ``node_id`` at the same level.

    The new node is a branch (``children: []``) unless ``is_leaf`` is set.
    """
    new_node: JsonDict = {"id": new_id("sibling"), "name": name}
    if not is_leaf:
        new_node["children"] = []

    def mutate(copy: Forest, location: Location) -> None:
        siblings_of(copy, location).insert(location.index + 1, new_node)

    return _edit("add_sibling", forest, node_id, strict, mutate)


def add_child(
    forest: Forest,
    parent_id: str,
    name: str = "New Child",
    strict: bool = False,
) -> Forest:
    """Append a new leaf (no ``children`` key) to ``parent_id``'s children."""
    new_node: JsonDict = {"id": new_id("child"), "name": name}

    def mutate(copy: Forest, location: Location) -> None:
        parent = location.node
        if parent.get("children") is None:
            parent["children"] = []
        parent["children"].append(new_node)

    return _edit("add_child", forest, parent_id, strict, mutate)


def duplicate_node(forest: Forest, node_id: str, strict: bool = False) -> Forest:
    """Copy the whole subtree of ``node_id`` right after the original.

    Every node in the copy gets a fresh id.
    """

    def mutate(copy: Forest, location: Location) -> None:
        duplicate = clone_with_fresh_ids(location.node, prefix="dup")
        siblings_of(copy, location).insert(location.index + 1, duplicate)

    return _edit("duplicate_node", forest, node_id, strict, mutate)


def delete_node(forest: Forest, node_id: str, strict: bool = False) -> Forest:
    """Remove ``node_id`` together with its subtree."""

    def mutate(copy: Forest, location: Location) -> None:
        del siblings_of(copy, location)[location.index]

    return _edit("delete_node", forest, node_id, strict, mutate)


def rename_node(forest: Forest, node_id: str, new_name: str, strict: bool = False) -> Forest:
    """Replace the name of ``node_id``.

    Raises:
        TreeValidationError: if ``new_name`` is empty or longer than 100 characters.
    """

    def mutate(copy: Forest, location: Location) -> None:
        location.node["name"] = new_name

    return _edit("rename_node", forest, node_id, strict, mutate)


def set_node_icon(
    forest: Forest,
    node_id: str,
    icon: Optional[str],
    strict: bool = False,
) -> Forest:
    """Set the icon of exactly one node; ``None`` removes it."""

    def mutate(copy: Forest, location: Location) -> None:
        if icon is None:
            location.node.pop("icon", None)
        else:
            location.node["icon"] = icon

    return _edit("set_node_icon", forest, node_id, strict, mutate)


def propagate_icon_to_branches(forest: Forest, icon: str) -> Forest:
    """Set ``icon`` on every branch node in the forest.

    A branch is any node carrying a ``children`` list, empty or not; leaves
    are left alone.
    """
    validate_forest(forest)
    copy = clone_forest(forest)
    updated = 0
    for node, _parent, _depth in walk(copy):
        if node.get("children") is not None:
            node["icon"] = icon
            updated += 1
    logger.debug("propagate_icon_to_branches set icon on %d branch nodes", updated)
    return validate_forest(copy)


def insert_node_at(
    forest: Forest,
    parent_id: Optional[str],
    index: int,
    node: JsonDict,
) -> Forest:
    """Insert a caller-built node (with its subtree) at ``index``.

    ``parent_id=None`` targets the root sequence. An unknown parent falls
    back to the root sequence so the node is never dropped. The node's shape
    is checked before anything else; its ids must not clash with the forest.
    """
    validate_node(node)
    validate_forest(forest)
    copy = clone_forest(forest)
    inserted = clone_node(node)

    if parent_id is None:
        target = copy
    else:
        parent = locate(copy, parent_id).node
        if parent is None:
            logger.info("insert_node_at: parent %s not found, inserting at root", parent_id)
            target = copy
        else:
            if parent.get("children") is None:
                parent["children"] = []
            target = parent["children"]

    target.insert(_clamp(index, len(target)), inserted)
    return validate_forest(copy)
