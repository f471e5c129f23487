"""
HTML to plain text.

Parsed with BeautifulSoup's built-in html.parser, so no native parser is
required. Block-level elements become paragraph breaks, <br> becomes a line
break, and whitespace elsewhere is collapsed the way a browser would.
<pre> blocks and inline <code> keep their text exactly.
"""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from .common import VerbatimStore, join_blocks

SKIPPED_TAGS = frozenset({
    "script", "style", "head", "template", "noscript", "svg", "iframe", "object",
})

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "body", "caption", "dd",
    "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hgroup", "hr", "html", "li", "main", "nav", "ol", "p",
    "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead",
    "tr", "ul",
})

# Cells of one table row stay on one line, separated by a tab.
CELL_TAGS = frozenset({"td", "th"})

_NON_TEXT = (Comment, Declaration, Doctype, ProcessingInstruction)


class _HtmlTextCollector:
    """Walks the parse tree, building paragraphs of collapsed text."""

    def __init__(self):
        self.blocks: list[str] = []
        self.inline: list[str] = []
        self.store = VerbatimStore()

    def flush(self) -> None:
        text = " ".join("".join(self.inline).split())
        # Line breaks are stored verbatim; trim the spaces collapsed around them.
        text = self.store.restore(text)
        text = "\n".join(part.strip() for part in text.split("\n"))
        if text.strip():
            self.blocks.append(text.strip("\n"))
        self.inline = []

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, _NON_TEXT):
                continue
            if isinstance(child, NavigableString):
                self.inline.append(str(child))
                continue
            if not isinstance(child, Tag):
                continue

            name = (child.name or "").lower()
            if name in SKIPPED_TAGS:
                continue
            if name == "pre":
                self.flush()
                code = child.get_text().strip("\n")
                if code.strip():
                    self.blocks.append(code)
                continue
            if name == "code":
                self.inline.append(self.store.protect(child.get_text()))
                continue
            if name == "br":
                self.inline.append(self.store.protect("\n"))
                continue
            if name in CELL_TAGS:
                self.walk(child)
                self.inline.append(self.store.protect("\t"))
                continue
            if name in BLOCK_TAGS:
                self.flush()
                self.walk(child)
                self.flush()
                continue
            self.walk(child)


def extract_html(text: str) -> str:
    """Convert an HTML document to plain text, keeping <pre>/<code> verbatim."""
    soup = BeautifulSoup(text, "html.parser")
    collector = _HtmlTextCollector()
    collector.walk(soup)
    collector.flush()
    return join_blocks(block.rstrip("\t") for block in collector.blocks)
