"""NodeTree MCP - a validated engine for editing forests of labeled nodes."""

__version__ = "0.1.0"

from .models import (
    InvalidMoveError,
    NodeNotFoundError,
    NodeTreeError,
    TreeNode,
    TreeValidationError,
)
from .session import ForestSession

__all__ = [
    "ForestSession",
    "InvalidMoveError",
    "NodeNotFoundError",
    "NodeTreeError",
    "TreeNode",
    "TreeValidationError",
    "__version__",
]
