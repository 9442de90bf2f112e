"""Node id generation and deep copies of forests."""

import copy
import itertools
import secrets
import string
from typing import Iterable, List, Optional, Tuple

from ..models import Forest, JsonDict

_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 10

# Monotonic part makes ids from one process distinct even if the random part collides
_counter = itertools.count(1)


def new_id(prefix: str = "node") -> str:
    """Return a fresh node id like ``child-1a-k3x9q0m2ab``."""
    seq = _to_base36(next(_counter))
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}-{seq}-{suffix}"


def _to_base36(value: int) -> str:
    digits = []
    while True:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
        if value == 0:
            break
    return "".join(reversed(digits))


def _copy_fields(node: JsonDict) -> JsonDict:
    """Copy one node's own fields; ``children`` gets a fresh empty list."""
    copied: JsonDict = {}
    for key, value in node.items():
        if key == "children":
            copied[key] = None if value is None else []
        elif isinstance(value, (str, int, float, bool)) or value is None:
            copied[key] = value
        else:
            copied[key] = copy.deepcopy(value)
    return copied


def clone_forest(forest: Forest) -> Forest:
    """Deep copy a forest; nothing in the result aliases the input.

    Uses an explicit stack, so nesting depth is not limited by the
    interpreter's recursion limit.
    """
    result: Forest = []
    stack: List[Tuple[List[JsonDict], List[JsonDict]]] = [(forest, result)]
    while stack:
        source, target = stack.pop()
        for node in source:
            copied = _copy_fields(node)
            target.append(copied)
            children = node.get("children")
            if children:
                stack.append((children, copied["children"]))
    return result


def clone_node(node: JsonDict) -> JsonDict:
    return clone_forest([node])[0]


def clone_with_fresh_ids(node: JsonDict, prefix: str = "dup") -> JsonDict:
    """Deep copy a subtree giving every copied node (descendants too) a new id.

    Keys other than ``id`` are copied as they are, so leaf/branch status
    (absent vs empty ``children``) survives the copy.
    """
    duplicate = clone_node(node)
    stack = [duplicate]
    while stack:
        current = stack.pop()
        current["id"] = new_id(prefix)
        children = current.get("children")
        if children:
            stack.extend(children)
    return duplicate


def assign_ids(nodes: Iterable[JsonDict], prefix: str = "node") -> Forest:
    """Return a copy of ``nodes`` where every node without an id gets one.

    Existing ids are kept. Used to turn id-less templates such as
    ``[{"name": "Root Node", "children": []}]`` into a usable forest.
    """
    forest = clone_forest(list(nodes))
    stack: List[JsonDict] = list(forest)
    while stack:
        node = stack.pop()
        if not node.get("id"):
            node["id"] = new_id(prefix)
        children = node.get("children")
        if children:
            stack.extend(children)
    return forest


def default_forest() -> Forest:
    """Single empty root branch, the starting point for a new tree."""
    return assign_ids([{"name": "Root Node", "children": []}], prefix="root")


def sample_forest(roots: int = 5000, children: int = 10, name_prefix: Optional[str] = None) -> Forest:
    """Generate a large flat-ish forest for load and rendering checks.

    Roots are ``n-{i}`` branches named ``Item {i}``, each holding ``children``
    leaves ``n-{i}-{j}`` named ``Item {i}.{j}``.
    """
    label = name_prefix or "Item"
    forest: Forest = []
    for i in range(roots):
        node: JsonDict = {"id": f"n-{i}", "name": f"{label} {i}", "children": []}
        for j in range(children):
            node["children"].append({"id": f"n-{i}-{j}", "name": f"{label} {i}.{j}"})
        forest.append(node)
    return forest
