"""
reStructuredText to plain text.

Parsed with docutils (publish_doctree) and walked node by node.

Kept:
    section titles, paragraphs, list items, definition and field lists,
    table cells, admonition and other directive bodies,
    literal blocks after "::" and code/code-block/sourcecode bodies (verbatim)
Dropped:
    comments, hyperlink targets, substitution definitions, footnote and
    citation references, images, raw content, parser messages, and Sphinx
    directives that carry no prose (toctree, autodoc, index, ...)

Sphinx-only roles (:func:, :ref:, ...) and prose directives (versionadded,
seealso, ...) are registered here so that Sphinx documentation parses
without errors and keeps its text.
"""

from __future__ import annotations

import re
from typing import List

from docutils import nodes, utils
from docutils.core import publish_doctree
from docutils.parsers.rst import Directive, directives, roles
from docutils.parsers.rst.directives.body import CodeBlock

from .common import join_blocks

_SETTINGS = {
    "report_level": 5,
    "halt_level": 5,
    "file_insertion_enabled": False,
    "raw_enabled": False,
    "syntax_highlight": "none",
    "doctitle_xform": False,
    "docinfo_xform": False,
    "sectsubtitle_xform": False,
    "_disable_config": True,
}

SPHINX_ROLES = (
    "ref", "doc", "term", "option", "envvar", "download", "abbr", "command",
    "file", "kbd", "guilabel", "menuselection", "program", "samp", "numref",
    "any", "keyword", "token", "mod", "func", "meth", "class", "attr", "exc",
    "data", "const", "obj", "py:mod", "py:func", "py:meth", "py:class",
    "py:attr", "py:exc", "py:data", "py:const", "py:obj", "c:func", "c:type",
    "c:macro", "cpp:func", "cpp:class", "js:func", "js:class",
)
PROSE_DIRECTIVES = (
    "versionadded", "versionchanged", "deprecated", "centered",
    "productionlist", "tab",
    "function", "method", "attribute", "module", "data",
    "exception", "envvar", "program", "describe", "object",
)
DROPPED_DIRECTIVES = (
    "toctree", "automodule", "autoclass", "autofunction", "automethod",
    "autoattribute", "autodata", "autoexception", "autosummary",
    "literalinclude", "index", "highlight", "currentmodule", "sectionauthor",
    "codeauthor", "tabularcolumns", "todo", "graphviz", "inheritance-diagram",
)
BODY_DIRECTIVES = ("seealso", "hlist", "glossary", "tabs")
CODE_DIRECTIVES = ("code", "code-block", "sourcecode")

# Explicit title form of a cross-reference: "Title <target>"
_EXPLICIT_TITLE = re.compile(r"^(.+?)\s*<[^<>]*>$", re.DOTALL)
# What a dangling reference or unknown role looks like in the source.
_PROBLEMATIC = re.compile(r"^(?::[\w:.+-]+:)?`?(.*?)\s*(?:<[^<>]*>)?`?(?::[\w:.+-]+:)?_{0,2}$", re.DOTALL)

_SKIPPED_NODES = (
    nodes.comment, nodes.target, nodes.substitution_definition,
    nodes.system_message, nodes.raw, nodes.image, nodes.pending,
    nodes.label, nodes.transition,
)
_NOTE_REFERENCES = (nodes.footnote_reference, nodes.citation_reference)
_DANGLING_NOTE = re.compile(r"^\[[^\]]*\]_$")


class _AnyOptions(dict):
    """Directive option spec accepting options it has never heard of."""

    def __missing__(self, key):
        return directives.unchanged


class _LenientCodeBlock(CodeBlock):
    """docutils' code directive, tolerating Sphinx options like :linenos:."""
    option_spec = _AnyOptions(CodeBlock.option_spec)


class _ProseDirective(Directive):
    """Keeps the argument and parses the body as ordinary reStructuredText."""
    optional_arguments = 1
    final_argument_whitespace = True
    option_spec = _AnyOptions({"class": directives.class_option, "name": directives.unchanged})
    has_content = True
    keep_argument = True

    def run(self):
        node = nodes.container()
        if self.arguments and self.keep_argument:
            children, _messages = self.state.inline_text(self.arguments[0], self.lineno)
            node += nodes.paragraph("", "", *children)
        self.state.nested_parse(self.content, self.content_offset, node)
        return [node]


class _BodyDirective(_ProseDirective):
    # No arguments, so docutils reads a first line of text as body.
    optional_arguments = 0


class _ConditionalDirective(_ProseDirective):
    keep_argument = False


class _DroppedDirective(_ProseDirective):
    def run(self):
        return []


def _cross_reference_role(name, rawtext, text, lineno, inliner, options=None, content=None):
    match = _EXPLICIT_TITLE.match(text)
    title = match.group(1) if match else text
    return [nodes.literal(rawtext, utils.unescape(title))], []


for _name in SPHINX_ROLES:
    roles.register_local_role(_name, _cross_reference_role)
for _name in CODE_DIRECTIVES:
    directives.register_directive(_name, _LenientCodeBlock)
for _name in PROSE_DIRECTIVES:
    directives.register_directive(_name, _ProseDirective)
for _name in BODY_DIRECTIVES:
    directives.register_directive(_name, _BodyDirective)
directives.register_directive("only", _ConditionalDirective)
for _name in DROPPED_DIRECTIVES:
    directives.register_directive(_name, _DroppedDirective)


def inline_text(node: nodes.Node) -> str:
    """Text of an inline-bearing node with markup and references removed."""
    parts = []
    for child in node.children:
        if isinstance(child, nodes.Text):
            parts.append(child.astext())
        elif isinstance(child, _SKIPPED_NODES):
            continue
        elif isinstance(child, _NOTE_REFERENCES) or (
            isinstance(child, nodes.problematic) and _DANGLING_NOTE.match(child.astext())
        ):
            # "text [1]_." reads as "text."
            if parts:
                parts[-1] = parts[-1].rstrip(" ")
        elif isinstance(child, nodes.problematic):
            match = _PROBLEMATIC.match(child.astext())
            parts.append(match.group(1) if match else child.astext())
        else:
            parts.append(inline_text(child))
    return "".join(parts)


class _BlockCollector:
    """Depth-first walk collecting prose and verbatim blocks."""

    def __init__(self):
        self.blocks: List[str] = []

    def add(self, text: str) -> None:
        text = text.strip()
        if text:
            self.blocks.append(text)

    def visit(self, node: nodes.Node) -> None:
        if isinstance(node, _SKIPPED_NODES):
            return
        if isinstance(node, (nodes.literal_block, nodes.doctest_block)):
            code = node.astext().strip("\n")
            if code.strip():
                self.blocks.append(code)
            return
        if isinstance(node, (nodes.bullet_list, nodes.enumerated_list)):
            self._list(node)
            return
        if isinstance(node, nodes.row):
            cells = [inline_text(entry.children[0]) if entry.children else "" for entry in node.children]
            self.add("\t".join(cell.strip() for cell in cells))
            return
        if isinstance(node, nodes.field):
            name = inline_text(node.children[0]).strip()
            body = _BlockCollector()
            for child in node.children[1:]:
                body.visit(child)
            self.add(f"{name}: {' '.join(body.blocks)}" if body.blocks else name)
            return
        if isinstance(node, nodes.line_block):
            self.add("\n".join(inline_text(line).strip() for line in node.findall(nodes.line)))
            return
        if isinstance(node, nodes.TextElement):
            self.add(inline_text(node))
            return
        for child in node.children:
            self.visit(child)

    def _list(self, node: nodes.Element) -> None:
        """Single-paragraph items become lines of one block."""
        lines: List[str] = []
        for item in node.children:
            item_blocks = _BlockCollector()
            for child in item.children:
                item_blocks.visit(child)
            if len(item.children) == 1 and isinstance(item.children[0], nodes.paragraph):
                lines.extend(item_blocks.blocks)
                continue
            if lines:
                self.blocks.append("\n".join(lines))
                lines = []
            self.blocks.extend(item_blocks.blocks)
        if lines:
            self.blocks.append("\n".join(lines))


def extract_rst(text: str) -> str:
    """Convert reStructuredText source to plain text, keeping code verbatim."""
    doctree = publish_doctree(text, settings_overrides=dict(_SETTINGS))
    collector = _BlockCollector()
    collector.visit(doctree)
    return join_blocks(collector.blocks)
