"""Forest validation.

Shape (field types, name length, no unknown keys) is checked per node with
pydantic; invariants a per-node model cannot see (globally unique ids,
nesting depth) are checked while walking the forest.
"""

import logging
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from ..models import Forest, NodeRecord, TreeValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 1000

_max_depth = DEFAULT_MAX_DEPTH


def set_max_depth(depth: int) -> None:
    """Change the nesting bound used when callers don't pass one."""
    global _max_depth
    if depth < 1:
        raise ValueError("max depth must be >= 1")
    _max_depth = depth


def get_max_depth() -> int:
    return _max_depth


def _format_pydantic_errors(where: str, exc: ValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "<node>"
        messages.append(f"{where}.{field}: {err.get('msg')}")
    return messages


def forest_errors(forest: Any, max_depth: int | None = None) -> List[str]:
    """Return a list of problems with ``forest``; empty means valid."""
    limit = max_depth if max_depth is not None else _max_depth
    if not isinstance(forest, list):
        return [f"forest must be a list of nodes, got {type(forest).__name__}"]

    errors: List[str] = []
    seen: Dict[str, str] = {}
    stack: List[Tuple[Any, str, int]] = [
        (node, f"[{i}]", 0) for i, node in reversed(list(enumerate(forest)))
    ]
    while stack:
        node, where, depth = stack.pop()
        if not isinstance(node, dict):
            errors.append(f"{where}: node must be an object, got {type(node).__name__}")
            continue
        if depth >= limit:
            errors.append(f"{where}: nesting deeper than {limit} levels")
            continue

        try:
            NodeRecord.model_validate(node)
        except ValidationError as e:
            errors.extend(_format_pydantic_errors(where, e))

        node_id = node.get("id")
        if isinstance(node_id, str) and node_id:
            if node_id in seen:
                errors.append(f"{where}: duplicate id {node_id!r} (first at {seen[node_id]})")
            else:
                seen[node_id] = where

        children = node.get("children")
        if isinstance(children, list):
            for i in range(len(children) - 1, -1, -1):
                stack.append((children[i], f"{where}.children[{i}]", depth + 1))

    return errors


def validate_forest(forest: Any, max_depth: int | None = None) -> Forest:
    """Return ``forest`` unchanged if it satisfies every invariant.

    Raises:
        TreeValidationError: listing each violation found.
    """
    errors = forest_errors(forest, max_depth)
    if errors:
        logger.warning("Forest failed validation: %s", errors[0])
        raise TreeValidationError(errors)
    return forest


def validate_node(node: Any) -> Dict[str, Any]:
    """Validate a single node (and its subtree) as if it were a one-root forest."""
    validate_forest([node])
    return node


def is_valid_forest(forest: Any) -> bool:
    return not forest_errors(forest)
