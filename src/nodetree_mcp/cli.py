"""nodetree - edit forest JSON files offline.

The file holds either a list of root nodes or an object with a ``nodes``
list (other keys are kept as they are). Each command loads the file, runs
one engine operation and writes the result back atomically:

  - validate         (check ids, names and shape)
  - rename-node      (change the `name` of a node by id)
  - add-child        (append a leaf under a node)
  - add-sibling      (insert a node after another)
  - duplicate-node   (copy a subtree with fresh ids)
  - delete-node      (remove a node and its subtree)
  - set-icon         (set/clear a node's icon)
  - propagate-icon   (set an icon on every branch)
  - move-node        (reparent one or more subtrees)
  - filter           (print the matching part of the forest)
  - render           (print the forest with connector lines)
  - export-markdown  (print a markdown outline)
  - import-markdown  (replace the forest with a parsed markdown outline)
  - sample           (write generated sample data)

Example:

  nodetree tree.json rename-node --id child-1-abc --name "New title"
"""

import argparse
import json
import os
import sys
from typing import Any, List, Optional, Tuple

from . import engine
from .models import Forest, JsonDict, NodeTreeError
from .outline import forest_to_markdown, markdown_to_forest


def die(msg: str) -> None:
    print(f"[nodetree] ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


def load_json(path: str) -> Any:
    if not os.path.isfile(path):
        die(f"File not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            die(f"Failed to parse JSON from {path}: {e}")


def save_json(path: str, data: Any) -> None:
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write("\n")
    os.replace(tmp, path)


def load_forest(path: str) -> Tuple[Forest, Optional[JsonDict]]:
    """Return (forest, wrapper); wrapper is the enclosing object, if any."""
    data = load_json(path)
    if isinstance(data, dict):
        nodes = data.get("nodes")
        if not isinstance(nodes, list):
            die("JSON object has no 'nodes' list")
        return nodes, data
    return data, None


def save_forest(path: str, forest: Forest, wrapper: Optional[JsonDict]) -> None:
    if wrapper is None:
        save_json(path, forest)
    else:
        save_json(path, {**wrapper, "nodes": forest})


def _update(args: argparse.Namespace, operation, *op_args: Any, **op_kwargs: Any) -> Forest:
    forest, wrapper = load_forest(args.file)
    if args.strict:
        op_kwargs["strict"] = True
    result = operation(forest, *op_args, **op_kwargs)
    save_forest(args.file, result, wrapper)
    return result


def cmd_validate(args: argparse.Namespace) -> None:
    forest, _ = load_forest(args.file)
    engine.validate_forest(forest)
    print(f"[nodetree] {args.file}: OK ({engine.count_nodes(forest)} nodes)")


def cmd_rename_node(args: argparse.Namespace) -> None:
    _update(args, engine.rename_node, args.id, args.name)
    print(f"[nodetree] Renamed node {args.id!r} to {args.name!r}")


def cmd_add_child(args: argparse.Namespace) -> None:
    _update(args, engine.add_child, args.parent_id, args.name)
    print(f"[nodetree] Added child {args.name!r} under {args.parent_id!r}")


def cmd_add_sibling(args: argparse.Namespace) -> None:
    _update(args, engine.add_sibling, args.id, args.name, args.leaf)
    print(f"[nodetree] Added sibling {args.name!r} after {args.id!r}")


def cmd_duplicate_node(args: argparse.Namespace) -> None:
    _update(args, engine.duplicate_node, args.id)
    print(f"[nodetree] Duplicated node {args.id!r}")


def cmd_delete_node(args: argparse.Namespace) -> None:
    _update(args, engine.delete_node, args.id)
    print(f"[nodetree] Deleted node {args.id!r} (and its subtree)")


def cmd_set_icon(args: argparse.Namespace) -> None:
    _update(args, engine.set_node_icon, args.id, args.icon)
    print(f"[nodetree] Set icon of {args.id!r} to {args.icon!r}")


def cmd_propagate_icon(args: argparse.Namespace) -> None:
    forest, wrapper = load_forest(args.file)
    result = engine.propagate_icon_to_branches(forest, args.icon)
    save_forest(args.file, result, wrapper)
    print(f"[nodetree] Set icon {args.icon!r} on all branch nodes")


def cmd_move_node(args: argparse.Namespace) -> None:
    _update(args, engine.move_nodes, args.id, args.parent_id, args.index)
    target = repr(args.parent_id) if args.parent_id is not None else "<root>"
    print(f"[nodetree] Moved {args.id} to parent {target} at index {args.index}")


def cmd_filter(args: argparse.Namespace) -> None:
    forest, _ = load_forest(args.file)
    engine.validate_forest(forest)
    print(engine.render_tree(engine.filter_forest(forest, args.term)))


def cmd_render(args: argparse.Namespace) -> None:
    forest, _ = load_forest(args.file)
    engine.validate_forest(forest)
    print(engine.render_tree(forest))


def cmd_export_markdown(args: argparse.Namespace) -> None:
    forest, _ = load_forest(args.file)
    engine.validate_forest(forest)
    sys.stdout.write(forest_to_markdown(forest, args.heading_levels))


def cmd_import_markdown(args: argparse.Namespace) -> None:
    if not os.path.isfile(args.markdown):
        die(f"File not found: {args.markdown}")
    with open(args.markdown, "r", encoding="utf-8") as f:
        forest = markdown_to_forest(f.read())
    wrapper = None
    if os.path.isfile(args.file):
        _, wrapper = load_forest(args.file)
    save_forest(args.file, forest, wrapper)
    print(f"[nodetree] Imported {engine.count_nodes(forest)} nodes from {args.markdown!r}")


def cmd_sample(args: argparse.Namespace) -> None:
    forest = engine.sample_forest(args.roots, args.children)
    save_json(args.file, forest)
    print(f"[nodetree] Wrote {engine.count_nodes(forest)} sample nodes to {args.file!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodetree",
        description="Edit forest JSON files (rename/add/duplicate/delete/move/search).",
    )
    parser.add_argument("file", help="Path to the forest JSON file")
    parser.add_argument(
        "--strict", action="store_true",
        help="Fail when a node id is not found instead of leaving the file unchanged",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_validate = subparsers.add_parser("validate", help="Check the forest against the node schema")
    p_validate.set_defaults(func=cmd_validate)

    p_rename = subparsers.add_parser("rename-node", help="Rename a node by id")
    p_rename.add_argument("--id", required=True, help="Node id to rename")
    p_rename.add_argument("--name", required=True, help="New name (1-100 characters)")
    p_rename.set_defaults(func=cmd_rename_node)

    p_child = subparsers.add_parser("add-child", help="Append a leaf under a node")
    p_child.add_argument("--parent-id", required=True, help="Parent node id")
    p_child.add_argument("--name", default="New Child", help="Name of the new node")
    p_child.set_defaults(func=cmd_add_child)

    p_sibling = subparsers.add_parser("add-sibling", help="Insert a node right after another")
    p_sibling.add_argument("--id", required=True, help="Node id to insert after")
    p_sibling.add_argument("--name", default="New Sibling", help="Name of the new node")
    p_sibling.add_argument("--leaf", action="store_true", help="Create a leaf instead of an empty branch")
    p_sibling.set_defaults(func=cmd_add_sibling)

    p_dup = subparsers.add_parser("duplicate-node", help="Duplicate a subtree with fresh ids")
    p_dup.add_argument("--id", required=True, help="Node id to duplicate")
    p_dup.set_defaults(func=cmd_duplicate_node)

    p_del = subparsers.add_parser("delete-node", help="Delete a node (and its subtree) by id")
    p_del.add_argument("--id", required=True, help="Node id to delete")
    p_del.set_defaults(func=cmd_delete_node)

    p_icon = subparsers.add_parser("set-icon", help="Set or clear the icon of one node")
    p_icon.add_argument("--id", required=True, help="Node id")
    p_icon.add_argument("--icon", default=None, help="Icon reference (omit to clear)")
    p_icon.set_defaults(func=cmd_set_icon)

    p_prop = subparsers.add_parser("propagate-icon", help="Set an icon on every branch node")
    p_prop.add_argument("--icon", required=True, help="Icon reference")
    p_prop.set_defaults(func=cmd_propagate_icon)

    p_move = subparsers.add_parser("move-node", help="Move subtrees to a new parent")
    p_move.add_argument("--id", required=True, nargs="+", help="Node id(s) to move")
    p_move.add_argument("--parent-id", default=None, help="New parent id (omit for top level)")
    p_move.add_argument("--index", type=int, default=0, help="Position among the new parent's children")
    p_move.set_defaults(func=cmd_move_node)

    p_filter = subparsers.add_parser("filter", help="Print nodes matching a search term")
    p_filter.add_argument("--term", required=True, help="Case-insensitive search term")
    p_filter.set_defaults(func=cmd_filter)

    p_render = subparsers.add_parser("render", help="Print the forest with connector lines")
    p_render.set_defaults(func=cmd_render)

    p_export = subparsers.add_parser("export-markdown", help="Print the forest as a markdown outline")
    p_export.add_argument("--heading-levels", type=int, default=0, help="Top levels written as headings")
    p_export.set_defaults(func=cmd_export_markdown)

    p_import = subparsers.add_parser("import-markdown", help="Replace the forest with a markdown outline")
    p_import.add_argument("--markdown", required=True, help="Path to the markdown file")
    p_import.set_defaults(func=cmd_import_markdown)

    p_sample = subparsers.add_parser("sample", help="Write generated sample data to the file")
    p_sample.add_argument("--roots", type=int, default=5000, help="Number of root branches")
    p_sample.add_argument("--children", type=int, default=10, help="Leaves per root")
    p_sample.set_defaults(func=cmd_sample)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except NodeTreeError as e:
        die(str(e))


if __name__ == "__main__":  # pragma: no cover
    main()
