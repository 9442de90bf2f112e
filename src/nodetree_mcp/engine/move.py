"""Reparenting subtrees (drag-and-drop and cut/paste).

Moved nodes keep their ids, names, icons and whole subtrees; unlike
duplication nothing is re-identified.
"""

import logging
import sys
from typing import Iterable, Iterator, List, Optional, Tuple

from ..models import Forest, InvalidMoveError, JsonDict, NodeNotFoundError
from .identity import clone_forest
from .lookup import contains_id, locate
from .schema import validate_forest

logger = logging.getLogger(__name__)


def extract_nodes(forest: Forest, drag_ids: Iterable[str]) -> Tuple[Forest, List[JsonDict]]:
    """Detach every node whose id is in ``drag_ids``, wherever it is.

    Works in place on ``forest`` (pass a clone). Returns the remaining forest
    and the detached subtrees in pre-order encounter order. A dragged node
    nested inside another dragged node stays inside it.
    """
    wanted = set(drag_ids)
    extracted: List[JsonDict] = []
    remaining: Forest = []
    stack: List[Tuple[Iterator[JsonDict], List[JsonDict]]] = [(iter(forest), remaining)]
    while stack:
        nodes, kept = stack[-1]
        node = next(nodes, None)
        if node is None:
            stack.pop()
            continue
        if node["id"] in wanted:
            extracted.append(node)
            continue
        kept.append(node)
        children = node.get("children")
        if children:
            kept_children: List[JsonDict] = []
            node["children"] = kept_children
            stack.append((iter(children), kept_children))
    return remaining, extracted


def check_move_target(forest: Forest, drag_ids: Iterable[str], target_parent_id: Optional[str]) -> None:
    """Reject moving a subtree into itself.

    Raises:
        InvalidMoveError: if the target is a dragged node or inside one.
    """
    if target_parent_id is None:
        return
    for drag_id in drag_ids:
        if drag_id == target_parent_id:
            raise InvalidMoveError(target_parent_id, "target is one of the dragged nodes")
        dragged = locate(forest, drag_id).node
        if dragged is not None and contains_id(dragged, target_parent_id):
            raise InvalidMoveError(
                target_parent_id, f"target is inside dragged subtree {drag_id}"
            )


def move_nodes(
    forest: Forest,
    drag_ids: List[str],
    target_parent_id: Optional[str],
    index: int,
    strict: bool = False,
) -> Forest:
    """Move the subtrees ``drag_ids`` under ``target_parent_id`` at ``index``.

    ``target_parent_id=None`` targets the root sequence. ``index`` counts
    positions in the target after the dragged nodes have been taken out and
    is clamped to the valid range. If the target parent does not exist the
    subtrees are appended to the root sequence instead of being dropped.

    Raises:
        InvalidMoveError: target is a dragged node or a descendant of one.
        NodeNotFoundError: ``strict`` and a dragged id is not in the forest.
    """
    validate_forest(forest)
    check_move_target(forest, drag_ids, target_parent_id)

    copy = clone_forest(forest)
    remaining, extracted = extract_nodes(copy, drag_ids)

    if len(extracted) < len(set(drag_ids)):
        found = {node["id"] for node in extracted}
        missing = [d for d in drag_ids if d not in found]
        # A dragged id nested under another dragged node travels with it
        missing = [d for d in missing if not any(contains_id(n, d) for n in extracted)]
        if missing:
            if strict:
                raise NodeNotFoundError(missing[0])
            logger.info("move_nodes: ignoring unknown ids %s", missing)

    if not extracted:
        return validate_forest(copy)

    if target_parent_id is None:
        target = remaining
        position = index
    else:
        parent = locate(remaining, target_parent_id).node
        if parent is None:
            logger.info("move_nodes: parent %s not found, appending to root", target_parent_id)
            target = remaining
            position = len(remaining)
        else:
            if parent.get("children") is None:
                parent["children"] = []
            target = parent["children"]
            position = index

    position = max(0, min(position, len(target)))
    target[position:position] = extracted
    logger.debug(
        "move_nodes moved %d subtrees to %s at %d",
        len(extracted), target_parent_id or "<root>", position,
    )
    return validate_forest(remaining)


def cut_and_paste(
    forest: Forest,
    cut_ids: Iterable[str],
    target_parent_id: Optional[str] = None,
) -> Forest:
    """Paste a cut buffer.

    Without a target the cut subtrees go to the end of the root sequence;
    with one they go to the top of the target's children.
    """
    ids = list(cut_ids)
    if not ids:
        return clone_forest(validate_forest(forest))
    index = sys.maxsize if target_parent_id is None else 0
    return move_nodes(forest, ids, target_parent_id, index)
