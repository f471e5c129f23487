"""
Format Extractor

Turns the raw bytes of one source file into a Document:

    bytes --decode--> str --sanitize--> str --strip markup--> normalized text

Each DocumentFormat has exactly one extraction function in EXTRACTORS, all
sharing the contract ``str -> str``. Adding a format means adding an enum
member and a table entry.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict

from ..errors import ExtractionError
from ..logging_config import Timer, debug_log
from ..models import Document, DocumentFormat
from .decoding import detect_and_decode
from .html_extractor import extract_html
from .markdown_extractor import extract_markdown
from .rst_extractor import extract_rst
from .sanitizer import CharacterSanitizer

_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\n)+")


def extract_plain_text(text: str) -> str:
    return text


EXTRACTORS: Dict[DocumentFormat, Callable[[str], str]] = {
    DocumentFormat.MARKDOWN: extract_markdown,
    DocumentFormat.RST: extract_rst,
    DocumentFormat.HTML: extract_html,
    DocumentFormat.PLAIN_TEXT: extract_plain_text,
}


def _trim(text: str) -> str:
    # Only blank lines are removed at the start so that an indented first
    # line keeps its indentation.
    return _LEADING_BLANK_LINES.sub("", text).rstrip()


def extract(path: Path, raw_bytes: bytes) -> Document:
    """
    Build the Document for one file.

    Args:
        path: Source path (used for format detection and messages).
        raw_bytes: File contents.

    Returns:
        Document with markup-free normalized_text.

    Raises:
        EncodingError: If the bytes cannot be decoded.
        ExtractionError: If nothing but whitespace remains after extraction.
    """
    path = Path(path)
    detected = DocumentFormat.from_path(path)

    with Timer(f"[EXTRACT] {path.name} ({detected.value})"):
        text, encoding = detect_and_decode(raw_bytes, path)
        sanitizer = CharacterSanitizer()
        text, _ = sanitizer.sanitize(text)
        for entry in sanitizer.get_log():
            debug_log(f"[EXTRACT] {path.name}: {entry}")

        normalized = _trim(EXTRACTORS[detected](text))

    if not normalized:
        raise ExtractionError(path, "no text left after extraction")

    document = Document(
        source_path=path,
        raw_bytes=raw_bytes,
        detected_format=detected,
        normalized_text=normalized,
        encoding=encoding,
    )
    debug_log(
        f"[EXTRACT] {path.name}: {len(raw_bytes)} bytes ({encoding}) -> "
        f"{document.size} characters, {document.line_count} lines"
    )
    return document


def read_document(path: Path) -> Document:
    """
    Read a file from disk and extract it.

    Raises:
        ExtractionError: If the file cannot be read or extracted.
    """
    path = Path(path)
    try:
        raw_bytes = path.read_bytes()
    except OSError as e:
        raise ExtractionError(path, f"could not read file: {e.strerror or e}") from e
    return extract(path, raw_bytes)
