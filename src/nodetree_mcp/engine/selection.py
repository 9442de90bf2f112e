"""Selection state over a forest.

Selection lives outside the tree as a set of node ids. Functions here take
the current set and return a new one; the input set is never modified.
"""

from typing import AbstractSet, Dict, List, Set

from ..models import Forest, JsonDict
from .lookup import flatten, locate, walk

CHECKED = "checked"
UNCHECKED = "unchecked"
INDETERMINATE = "indeterminate"


def toggle_selection(
    forest: Forest,
    node_id: str,
    selected_ids: AbstractSet[str],
    multiple: bool,
) -> Set[str]:
    """Toggle ``node_id`` and cascade the result to all of its descendants.

    In multi-select mode the node's membership flips. In single-select mode
    the set is cleared first and the node is always selected, so only that
    node and its subtree end up selected. An unknown id returns an unchanged
    copy of the set.
    """
    result = set(selected_ids)
    node = locate(forest, node_id).node
    if node is None:
        return result

    checked = (node_id not in result) if multiple else True
    if not multiple:
        result.clear()

    for descendant, _parent, _depth in walk([node]):
        if checked:
            result.add(descendant["id"])
        else:
            result.discard(descendant["id"])
    return result


def toggle_membership(selected_ids: AbstractSet[str], node_id: str) -> Set[str]:
    """Flip one id without touching its descendants (ctrl-click)."""
    result = set(selected_ids)
    if node_id in result:
        result.remove(node_id)
    else:
        result.add(node_id)
    return result


def _indeterminate_flags(node: JsonDict, selected_ids: AbstractSet[str]) -> Dict[int, bool]:
    """Indeterminate flag for every node in the subtree, keyed by ``id(node)``."""
    flags: Dict[int, bool] = {}
    # Reversed pre-order visits every child before its parent
    for current in reversed(flatten([node])):
        children = current.get("children")
        if not children:
            flags[id(current)] = False
            continue
        all_selected = all(child["id"] in selected_ids for child in children)
        some_selected = any(
            child["id"] in selected_ids or flags[id(child)] for child in children
        )
        flags[id(current)] = some_selected and not all_selected
    return flags


def is_indeterminate(node: JsonDict, selected_ids: AbstractSet[str]) -> bool:
    """True when a branch is partially selected.

    That is: it has children, at least one child is selected or itself
    indeterminate, and not every child is selected.
    """
    if not node.get("children"):
        return False
    return _indeterminate_flags(node, selected_ids)[id(node)]


def selection_state(node: JsonDict, selected_ids: AbstractSet[str]) -> str:
    """Tri-state checkbox value for ``node``."""
    if node["id"] in selected_ids:
        return CHECKED
    if is_indeterminate(node, selected_ids):
        return INDETERMINATE
    return UNCHECKED


def selected_nodes(forest: Forest, selected_ids: AbstractSet[str]) -> List[JsonDict]:
    """Selected nodes in display (pre-order) order."""
    return [node for node in flatten(forest) if node["id"] in selected_ids]


def select_range(
    forest: Forest,
    anchor_id: str,
    target_id: str,
    selected_ids: AbstractSet[str],
) -> Set[str]:
    """Add every node between ``anchor_id`` and ``target_id`` (inclusive, pre-order).

    Works in either direction. If either end is missing the set is returned
    unchanged.
    """
    result = set(selected_ids)
    order = [node["id"] for node in flatten(forest)]
    try:
        start = order.index(anchor_id)
        end = order.index(target_id)
    except ValueError:
        return result
    low, high = min(start, end), max(start, end)
    result.update(order[low:high + 1])
    return result
