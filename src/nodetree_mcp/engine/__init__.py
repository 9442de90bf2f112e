"""Pure node tree engine: lookups, validated mutations, selection, moves, search."""

from .identity import (
    assign_ids,
    clone_forest,
    clone_with_fresh_ids,
    default_forest,
    new_id,
    sample_forest,
)
from .lines import ancestor_last_flags, is_last_sibling, render_tree
from .lookup import (
    NOT_FOUND,
    Location,
    count_nodes,
    flatten,
    locate,
    node_path,
    subtree_ids,
    walk,
)
from .move import cut_and_paste, move_nodes
from .ops import (
    add_child,
    add_sibling,
    delete_node,
    duplicate_node,
    insert_node_at,
    propagate_icon_to_branches,
    rename_node,
    set_node_icon,
)
from .schema import validate_forest, validate_node
from .search import count_matches, filter_forest, highlight_segments
from .selection import (
    is_indeterminate,
    select_range,
    selected_nodes,
    selection_state,
    toggle_membership,
    toggle_selection,
)

__all__ = [
    "Location",
    "NOT_FOUND",
    "add_child",
    "add_sibling",
    "ancestor_last_flags",
    "assign_ids",
    "clone_forest",
    "clone_with_fresh_ids",
    "count_matches",
    "count_nodes",
    "cut_and_paste",
    "default_forest",
    "delete_node",
    "duplicate_node",
    "filter_forest",
    "flatten",
    "highlight_segments",
    "insert_node_at",
    "is_indeterminate",
    "is_last_sibling",
    "locate",
    "move_nodes",
    "new_id",
    "node_path",
    "propagate_icon_to_branches",
    "rename_node",
    "render_tree",
    "sample_forest",
    "select_range",
    "selected_nodes",
    "selection_state",
    "set_node_icon",
    "subtree_ids",
    "toggle_membership",
    "toggle_selection",
    "validate_forest",
    "validate_node",
    "walk",
]
