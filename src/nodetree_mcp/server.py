"""NodeTree MCP server implementation using FastMCP.

Exposes the tree engine as MCP tools over one in-memory forest session.
Every mutating tool hands the current forest to the engine and swaps in the
returned forest; nothing is persisted.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastmcp import FastMCP
from pydantic import ValidationError

from . import engine
from .config import ServerConfig, setup_logging
from .engine.lookup import count_nodes, locate
from .engine.schema import set_max_depth
from .models import Forest, MoveRequest, NodeTreeError, TreeNode, forest_adapter
from .outline import forest_to_markdown, markdown_to_forest
from .session import ForestSession

logger = logging.getLogger(__name__)

# Global session instance
_session: ForestSession | None = None
_config: ServerConfig | None = None


def init_session(config: ServerConfig | None = None, forest: Forest | None = None) -> ForestSession:
    """Create the global session from config (sample data if configured)."""
    global _session, _config
    _config = config or ServerConfig()  # type: ignore[call-arg]
    set_max_depth(_config.max_depth)
    if forest is None and _config.sample_roots > 0:
        forest = engine.sample_forest(_config.sample_roots, _config.sample_children)
    _session = ForestSession(forest, multiple=_config.multiple_selection)
    logger.info(
        "Session initialized with %d nodes (multiple=%s, strict=%s)",
        count_nodes(_session.forest), _session.multiple, _config.strict_lookups,
    )
    return _session


def get_session() -> ForestSession:
    """Get the global session instance."""
    if _session is None:
        raise RuntimeError("Forest session not initialized. Server not started properly.")
    return _session


def _strict() -> bool:
    return bool(_config and _config.strict_lookups)


def _forest_result(forest: Forest, **extra: Any) -> dict:
    return {"success": True, "node_count": count_nodes(forest), "forest": forest, **extra}


def _apply(operation: Callable[..., Forest], *args: Any, **kwargs: Any) -> dict:
    """Apply an engine operation to the session, turning engine errors into tool errors."""
    session = get_session()
    try:
        session.apply(operation, *args, **kwargs)
    except NodeTreeError as e:
        logger.warning(f"{operation.__name__} failed: {e}")
        raise ValueError(str(e)) from e
    return _forest_result(session.snapshot())


@asynccontextmanager
async def lifespan(_app: FastMCP):  # type: ignore[no-untyped-def]
    """Manage server lifecycle."""
    global _session

    logger.info("Starting NodeTree MCP server")
    config = ServerConfig()  # type: ignore[call-arg]
    setup_logging(config.get_log_level(), config.log_file)
    init_session(config)

    yield

    logger.info("Shutting down NodeTree MCP server")
    _session = None


# Initialize FastMCP server
mcp = FastMCP(
    "NodeTree MCP Server",
    instructions="MCP server for editing, searching, selecting and reordering a tree of labeled nodes",
    lifespan=lifespan,
)


# @mcp.tool returns a FunctionTool rather than the function, so tool bodies stay
# plain callables and are registered together at the bottom of the module.


def get_forest() -> dict:
    """Return the current forest."""
    return _forest_result(get_session().snapshot())


def load_forest(nodes: list[TreeNode]) -> dict:
    """Replace the current forest with ``nodes`` (validated) and clear selection.

    Args:
        nodes: Root nodes, each with id, name, optional icon and optional children
    """
    raw = forest_adapter.dump_python(nodes, exclude_unset=True)
    try:
        forest = get_session().reset(raw)
    except NodeTreeError as e:
        logger.warning(f"load_forest rejected input: {e}")
        raise ValueError(str(e)) from e
    return _forest_result(engine.clone_forest(forest))


def add_sibling(node_id: str, name: str = "New Sibling", is_leaf: bool = False) -> dict:
    """Insert a new node right after ``node_id``.

    Args:
        node_id: Node to insert after
        name: Name of the new node (1-100 characters)
        is_leaf: Create a leaf (no children list) instead of an empty branch
    """
    return _apply(engine.add_sibling, node_id, name, is_leaf, strict=_strict())


def add_child(parent_id: str, name: str = "New Child") -> dict:
    """Append a new leaf under ``parent_id``."""
    return _apply(engine.add_child, parent_id, name, strict=_strict())


def duplicate_node(node_id: str) -> dict:
    """Copy a node and its subtree (with fresh ids) right after the original."""
    return _apply(engine.duplicate_node, node_id, strict=_strict())


def delete_node(node_id: str) -> dict:
    """Delete a node and all its children."""
    return _apply(engine.delete_node, node_id, strict=_strict())


def rename_node(node_id: str, name: str) -> dict:
    """Rename a node (1-100 characters)."""
    return _apply(engine.rename_node, node_id, name, strict=_strict())


def set_node_icon(node_id: str, icon: str | None = None) -> dict:
    """Set the icon of one node; omit ``icon`` to remove it."""
    return _apply(engine.set_node_icon, node_id, icon, strict=_strict())


def propagate_icon(icon: str) -> dict:
    """Set ``icon`` on every branch node (every node with a children list)."""
    return _apply(engine.propagate_icon_to_branches, icon)


def move_nodes(drag_ids: list[str], parent_id: str | None = None, index: int = 0) -> dict:
    """Move subtrees to a new parent (None for the root level) at ``index``.

    Args:
        drag_ids: Ids of the nodes to move; each keeps its subtree and ids
        parent_id: Target parent, or None for the root level
        index: Position among the target's children after the move-out
    """
    try:
        request = MoveRequest(drag_ids=drag_ids, parent_id=parent_id, index=index)
    except ValidationError as e:
        raise ValueError(f"Invalid move request: {e}") from e
    return _apply(
        engine.move_nodes, request.drag_ids, request.parent_id, request.index, strict=_strict()
    )


def toggle_selection(node_id: str) -> dict:
    """Toggle a node's selection, cascading to all of its descendants."""
    session = get_session()
    selected = session.toggle(node_id)
    return {"success": True, "selected_ids": sorted(selected)}


def select_range(anchor_id: str, target_id: str) -> dict:
    """Add every node between two nodes (display order, inclusive) to the selection."""
    selected = get_session().select_range(anchor_id, target_id)
    return {"success": True, "selected_ids": sorted(selected)}


def get_selected() -> dict:
    """Selected nodes in display order, plus partially selected branches."""
    session = get_session()
    return {
        "success": True,
        "selected": session.selected(),
        "indeterminate_ids": session.partially_selected(),
    }


def cut() -> dict:
    """Put the current selection into the cut buffer."""
    cut_ids = get_session().cut()
    return {"success": True, "cut_ids": sorted(cut_ids)}


def paste(parent_id: str | None = None) -> dict:
    """Move cut nodes under ``parent_id`` (top) or to the end of the root level."""
    session = get_session()
    try:
        session.paste(parent_id)
    except NodeTreeError as e:
        logger.warning(f"paste failed: {e}")
        raise ValueError(str(e)) from e
    return _forest_result(session.snapshot())


def filter_tree(term: str) -> dict:
    """Nodes matching ``term`` (case-insensitive) with their ancestors.

    A matching branch keeps its whole original subtree when nothing below it matches.
    """
    session = get_session()
    filtered = engine.filter_forest(session.forest, term)
    if filtered is session.forest:
        filtered = session.snapshot()
    return {
        "success": True,
        "term": term,
        "match_count": engine.count_matches(session.forest, term),
        "forest": filtered,
    }


def ancestor_lines(node_id: str) -> dict:
    """Per-ancestor "is last child" flags used to draw connector lines."""
    session = get_session()
    location = locate(session.forest, node_id)
    return {
        "success": True,
        "node_id": node_id,
        "found": location.found,
        "ancestor_last_flags": engine.ancestor_last_flags(session.forest, node_id),
        "is_last": engine.is_last_sibling(session.forest, node_id),
        "path": engine.node_path(session.forest, node_id),
    }


def export_markdown(heading_levels: int = 0) -> dict:
    """Current forest as a markdown outline."""
    return {"success": True, "markdown": forest_to_markdown(get_session().forest, heading_levels)}


def import_markdown(markdown: str) -> dict:
    """Replace the current forest with one parsed from a markdown outline."""
    try:
        forest = markdown_to_forest(markdown)
        get_session().reset(forest)
    except NodeTreeError as e:
        logger.warning(f"import_markdown failed: {e}")
        raise ValueError(str(e)) from e
    return _forest_result(get_session().snapshot())


def get_outline() -> str:
    """Get the current forest drawn with connector lines."""
    return engine.render_tree(get_session().forest)


_TOOLS = [
    (get_forest, "tree_get_forest", "Return the current forest"),
    (load_forest, "tree_load_forest", "Replace the current forest with validated nodes"),
    (add_sibling, "tree_add_sibling", "Insert a new node right after another node"),
    (add_child, "tree_add_child", "Append a new leaf under a parent node"),
    (duplicate_node, "tree_duplicate_node", "Duplicate a node and its subtree with fresh ids"),
    (delete_node, "tree_delete_node", "Delete a node and all its children"),
    (rename_node, "tree_rename_node", "Rename a node"),
    (set_node_icon, "tree_set_node_icon", "Set or clear the icon of one node"),
    (propagate_icon, "tree_propagate_icon", "Set an icon on every branch node"),
    (move_nodes, "tree_move_nodes", "Move subtrees to a new parent and position"),
    (toggle_selection, "tree_toggle_selection", "Toggle selection of a node and its descendants"),
    (select_range, "tree_select_range", "Select every node between two nodes"),
    (get_selected, "tree_get_selected", "List selected and partially selected nodes"),
    (cut, "tree_cut", "Cut the selected nodes"),
    (paste, "tree_paste", "Paste cut nodes under a parent or at the root"),
    (filter_tree, "tree_filter", "Search the forest by name"),
    (ancestor_lines, "tree_ancestor_lines", "Connector-line flags for a node"),
    (export_markdown, "tree_export_markdown", "Export the forest as a markdown outline"),
    (import_markdown, "tree_import_markdown", "Load the forest from a markdown outline"),
]

for _fn, _name, _description in _TOOLS:
    mcp.tool(name=_name, description=_description)(_fn)

mcp.resource(
    uri="nodetree://outline",
    name="nodetree_outline",
    description="The current forest drawn as a text tree",
)(get_outline)


def main() -> None:
    """Run the server over stdio."""
    config = ServerConfig()  # type: ignore[call-arg]
    setup_logging(config.get_log_level(), config.log_file)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
