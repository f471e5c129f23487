"""
Markdown to plain text.

Parsed with mistune v3 into its token AST (CommonMark block structure plus
the table, strikethrough and task-list plugins), then walked block by block.

Kept:
    heading text, paragraph text (line breaks preserved), list item text,
    link text, image alt text, table cell text, inline code text,
    fenced and indented code blocks (verbatim, wherever they are nested)
Dropped:
    all Markdown syntax, link targets, link reference definitions,
    horizontal rules, inline HTML tags, YAML front matter
Raw HTML blocks go through the HTML extractor.
"""

from __future__ import annotations

from typing import Any, Dict, List

import mistune

from .common import join_blocks
from .html_extractor import extract_html

Token = Dict[str, Any]

_markdown = mistune.create_markdown(
    renderer="ast",
    plugins=["table", "strikethrough", "task_lists"],
)

# Inline tokens whose own text is the content.
_INLINE_RAW = frozenset({"text", "codespan"})
_INLINE_BREAKS = frozenset({"softbreak", "linebreak"})
_LIST_ITEMS = frozenset({"list_item", "task_list_item"})


def _skip_front_matter(text: str) -> str:
    lines = text.split("\n")
    if not lines or lines[0].strip() != "---":
        return text
    for index in range(1, len(lines)):
        if lines[index].strip() in ("---", "..."):
            return "\n".join(lines[index + 1:])
    return text


def inline_text(tokens: List[Token]) -> str:
    """Plain text of a list of inline tokens."""
    parts = []
    for token in tokens:
        kind = token["type"]
        if kind in _INLINE_RAW:
            parts.append(token.get("raw", ""))
        elif kind in _INLINE_BREAKS:
            parts.append("\n")
        elif "children" in token:
            # emphasis, strong, strikethrough, link, image alt text
            parts.append(inline_text(token["children"]))
    return "".join(parts)


def _code(token: Token) -> str:
    return token.get("raw", "").rstrip("\n")


def _table_row(cells: List[Token]) -> str:
    return "\t".join(inline_text(cell.get("children", [])).strip() for cell in cells)


def _table(token: Token) -> str:
    rows = []
    for part in token.get("children", []):
        if part["type"] == "table_head":
            rows.append(_table_row(part.get("children", [])))
        elif part["type"] == "table_body":
            rows.extend(_table_row(row.get("children", [])) for row in part.get("children", []))
    return "\n".join(rows)


def _list(token: Token) -> List[str]:
    """
    Items holding a single line of prose become consecutive lines of one
    block; items with several blocks (or code) keep their block breaks.
    """
    blocks: List[str] = []
    lines: List[str] = []
    for item in token.get("children", []):
        if item["type"] not in _LIST_ITEMS:
            continue
        children = [child for child in item.get("children", []) if child["type"] != "blank_line"]
        item_blocks = render_blocks(children)
        if len(item_blocks) == 1 and children[0]["type"] in ("block_text", "paragraph"):
            lines.append(item_blocks[0])
            continue
        if lines:
            blocks.append("\n".join(lines))
            lines = []
        blocks.extend(item_blocks)
    if lines:
        blocks.append("\n".join(lines))
    return blocks


def render_blocks(tokens: List[Token]) -> List[str]:
    """Turn block tokens into text blocks, code verbatim and prose stripped."""
    blocks: List[str] = []
    for token in tokens:
        kind = token["type"]
        if kind == "block_code":
            code = _code(token)
            if code.strip():
                blocks.append(code)
        elif kind in ("paragraph", "block_text", "heading"):
            blocks.append(inline_text(token.get("children", [])).strip())
        elif kind == "block_quote":
            blocks.extend(render_blocks(token.get("children", [])))
        elif kind == "list":
            blocks.extend(_list(token))
        elif kind == "table":
            blocks.append(_table(token))
        elif kind == "block_html":
            blocks.append(extract_html(token.get("raw", "")))
        # thematic_break, blank_line: nothing to keep
    return [block for block in blocks if block.strip()]


def extract_markdown(text: str) -> str:
    """Convert Markdown source to plain text, keeping code verbatim."""
    tokens = _markdown(_skip_front_matter(text))
    return join_blocks(render_blocks(tokens))
