"""Node tree data models and error types."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 100

JsonDict = Dict[str, Any]
Forest = List[JsonDict]


class TreeNode(BaseModel):
    """Shape of a single node.

    Absent `children` and an empty list are different things: absent marks a
    leaf, `[]` marks an expandable branch with nothing in it yet. Dump with
    `exclude_unset=True` to keep that distinction.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, strict=True)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH, strict=True)
    icon: Optional[str] = Field(default=None, strict=True)
    children: Optional[List["TreeNode"]] = None


TreeNode.model_rebuild()

forest_adapter: TypeAdapter[List[TreeNode]] = TypeAdapter(List[TreeNode])


class NodeRecord(BaseModel):
    """One node checked on its own, children only checked to be a list of objects.

    The validator walks the forest itself and checks every node against this
    model, so nesting depth never turns into validator recursion.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, strict=True)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH, strict=True)
    icon: Optional[str] = Field(default=None, strict=True)
    children: Optional[List[Dict[str, Any]]] = None


class MoveRequest(BaseModel):
    """Drag-and-drop move parameters as sent by a tree widget."""

    drag_ids: List[str] = Field(min_length=1)
    parent_id: Optional[str] = None
    index: int = Field(default=0, ge=0)


class NodeTreeError(Exception):
    """Base exception for all node tree errors."""


class TreeValidationError(NodeTreeError):
    """Raised when a forest violates the node schema or a tree invariant."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        preview = "; ".join(self.errors[:5])
        if len(self.errors) > 5:
            preview += f" (+{len(self.errors) - 5} more)"
        super().__init__(f"Invalid forest: {preview}")


class NodeNotFoundError(NodeTreeError):
    """Raised by strict-mode operations when a node id is not in the forest."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class InvalidMoveError(NodeTreeError):
    """Raised when a move would place a subtree inside itself."""

    def __init__(self, target_id: str, reason: str):
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"Invalid move to {target_id}: {reason}")
