"""Markdown outline import/export for forests.

Export writes headings and nested ``-`` bullets. A node's icon is written
as a leading code span (``- `star` Name``) and markdown syntax inside names
is backslash-escaped, so names come back as plain text. Import normalises
the text with mdformat first, then walks the markdown-it-py token stream:
headings nest by level, list items nest under the current heading or item.
"""

import logging
import re
from typing import List, Optional, Tuple

import mdformat
from markdown_it import MarkdownIt

from .engine.identity import assign_ids
from .engine.lookup import walk
from .engine.schema import validate_forest
from .models import NAME_MAX_LENGTH, Forest, JsonDict

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"

_WHITESPACE = re.compile(r"\s+")
# Characters that can open inline markup (or a heading's closing sequence) anywhere in a line
_INLINE_SPECIAL = re.compile(r"([\\`*_\[\]<>&#])")
# "1." or "3)" at the start of a line opens an ordered list
_ORDERED_MARKER = re.compile(r"^(\d{1,9})([.)])(?=\s|$)")
_BLOCK_MARKERS = ("-", "+", "=")
_BACKTICKS = re.compile(r"`+")


def _escape_name(name: str) -> str:
    text = _INLINE_SPECIAL.sub(r"\\\1", _WHITESPACE.sub(" ", name).strip())
    match = _ORDERED_MARKER.match(text)
    if match:
        text = f"{match.group(1)}\\{match.group(2)}{text[match.end():]}"
    elif text.startswith(_BLOCK_MARKERS):
        text = "\\" + text
    return text


def _code_span(text: str) -> str:
    text = _WHITESPACE.sub(" ", text).strip()
    longest = max((len(run) for run in _BACKTICKS.findall(text)), default=0)
    fence = "`" * (longest + 1)
    if longest:
        return f"{fence} {text} {fence}"
    return f"{fence}{text}{fence}"


def _label(node: JsonDict) -> str:
    name = _escape_name(node["name"])
    icon = node.get("icon")
    return f"{_code_span(icon)} {name}" if icon else name


def forest_to_markdown(forest: Forest, heading_levels: int = 0) -> str:
    """Render ``forest`` as a markdown outline.

    Args:
        forest: The forest to render.
        heading_levels: How many top levels to write as ``#`` headings
            (0-6); deeper nodes become nested bullets.

    Returns:
        Markdown text ending in a newline, or "" for an empty forest.
    """
    heading_levels = max(0, min(heading_levels, 6))
    lines: List[str] = []
    for node, _parent, depth in walk(forest):
        if depth < heading_levels:
            if lines and lines[-1] != "":
                lines.append("")
            lines.append(f"{'#' * (depth + 1)} {_label(node)}")
            lines.append("")
        else:
            indent = "  " * (depth - heading_levels)
            lines.append(f"{indent}- {_label(node)}")
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


def _split_label(inline) -> Tuple[str, Optional[str]]:
    """Plain name and optional icon from an ``inline`` token's children."""
    children = list(inline.children or []) if inline is not None else []
    icon = None
    if (
        len(children) > 1
        and children[0].type == "code_inline"
        and children[1].type == "text"
        and children[1].content[:1].isspace()
    ):
        icon = children[0].content.strip() or None
        children = children[1:]

    parts = []
    for child in children:
        if child.type in ("text", "text_special", "code_inline", "image"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    text = _WHITESPACE.sub(" ", "".join(parts)).strip()
    if not text:
        text = UNTITLED
    return text[:NAME_MAX_LENGTH], icon


def _make_node(inline, branch: bool) -> JsonDict:
    name, icon = _split_label(inline)
    node: JsonDict = {"name": name}
    if icon:
        node["icon"] = icon
    if branch:
        node["children"] = []
    return node


def tokens_to_forest(tokens) -> Forest:
    """Convert a markdown-it token stream into id-less outline nodes."""
    roots: Forest = []
    headings: List[Tuple[int, JsonDict]] = []
    items: List[JsonDict] = []
    targets: List[List[JsonDict]] = []
    named = set()

    def heading_target() -> List[JsonDict]:
        return headings[-1][1]["children"] if headings else roots

    for i, token in enumerate(tokens):
        kind = token.type
        if kind == "heading_open" and not items:
            level = int(token.tag[1])
            inline = tokens[i + 1] if i + 1 < len(tokens) and tokens[i + 1].type == "inline" else None
            while headings and headings[-1][0] >= level:
                headings.pop()
            node = _make_node(inline, branch=True)
            heading_target().append(node)
            headings.append((level, node))
        elif kind in ("bullet_list_open", "ordered_list_open"):
            if items:
                parent = items[-1]
                if parent.get("children") is None:
                    parent["children"] = []
                targets.append(parent["children"])
            else:
                targets.append(heading_target())
        elif kind in ("bullet_list_close", "ordered_list_close"):
            targets.pop()
        elif kind == "list_item_open":
            node: JsonDict = {"name": UNTITLED}
            targets[-1].append(node)
            items.append(node)
        elif kind == "list_item_close":
            items.pop()
        elif kind == "inline" and items and tokens[i - 1].type == "paragraph_open":
            item = items[-1]
            # Only the first paragraph of an item names it
            if id(item) not in named:
                named.add(id(item))
                name, icon = _split_label(token)
                item["name"] = name
                if icon:
                    item["icon"] = icon
    return roots


def markdown_to_forest(text: str, prefix: str = "md") -> Forest:
    """Parse a markdown outline into a validated forest with fresh ids.

    Headings become branches (``children: []``); list items without a
    nested list become leaves. Names longer than 100 characters are cut.
    """
    formatted = mdformat.text(text)
    md = MarkdownIt("commonmark")
    tokens = md.parse(formatted)
    forest = assign_ids(tokens_to_forest(tokens), prefix=prefix)
    logger.debug("Parsed markdown outline into %d root nodes", len(forest))
    return validate_forest(forest)
