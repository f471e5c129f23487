"""
Helpers shared by the markup extractors.

Extractors work on a list of blocks: prose blocks whose markup is stripped,
and verbatim blocks (code) that must come out exactly as they went in. The
final text is the blocks joined by a blank line.
"""

from __future__ import annotations

import re
from typing import Iterable

# Decoded text never contains NUL (decoding rejects it), so NUL-delimited
# tokens cannot collide with document content.
_PLACEHOLDER = re.compile("\x00(\\d+)\x00")


class VerbatimStore:
    """
    Protects verbatim spans from whitespace collapsing.

    Example:
        store = VerbatimStore()
        line = "Use " + store.protect("a  *  b") + "   here"
        line = " ".join(line.split())        # leaves "a  *  b" alone
        store.restore(line)                  # -> "Use a  *  b here"
    """

    def __init__(self):
        self._items: list[str] = []

    def protect(self, text: str) -> str:
        self._items.append(text)
        return f"\x00{len(self._items) - 1}\x00"

    def restore(self, text: str) -> str:
        return _PLACEHOLDER.sub(lambda m: self._items[int(m.group(1))], text)


def join_blocks(blocks: Iterable[str]) -> str:
    """Join non-empty blocks with a single blank line between them."""
    return "\n\n".join(block for block in blocks if block.strip())
