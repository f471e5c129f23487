"""
Data types passed between pipeline stages.

    Document       - normalized text of one source file (Extractor output)
    Summary        - backend summary plus size metadata (Client output)
    PreviewRecord  - what dry-run reports instead of a Summary

All three are frozen dataclasses: each stage hands its output to the next
and nobody mutates it afterwards.

Sizes are counted in Unicode characters of the normalized text, not in
bytes, so a non-ASCII document compresses by the same ratio regardless of
its on-disk encoding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import ConfigError


class DocumentFormat(Enum):
    """Source formats the extractor understands."""

    MARKDOWN = "markdown"
    RST = "rst"
    HTML = "html"
    PLAIN_TEXT = "plain_text"

    @classmethod
    def from_path(cls, path: Path) -> "DocumentFormat":
        """Detect the format from a file extension (unknown -> PLAIN_TEXT)."""
        return _EXTENSION_FORMATS.get(Path(path).suffix.lower(), cls.PLAIN_TEXT)


_EXTENSION_FORMATS = {
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".mdown": DocumentFormat.MARKDOWN,
    ".mkd": DocumentFormat.MARKDOWN,
    ".rst": DocumentFormat.RST,
    ".rest": DocumentFormat.RST,
    ".html": DocumentFormat.HTML,
    ".htm": DocumentFormat.HTML,
    ".xhtml": DocumentFormat.HTML,
}


class OutputFormat(Enum):
    """Encodings the renderer can produce."""

    MARKDOWN = "md"
    JSON = "json"
    PLAIN_TEXT = "txt"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        """
        Parse a user-supplied format name.

        Accepts md/markdown, json, txt/text/plain (case-insensitive).

        Raises:
            ConfigError: If the name is not a supported format.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        try:
            return _FORMAT_ALIASES[key]
        except KeyError:
            raise ConfigError(
                f"Unsupported output format: {value!r} (expected md, json or txt)"
            ) from None


_FORMAT_ALIASES = {
    "md": OutputFormat.MARKDOWN,
    "markdown": OutputFormat.MARKDOWN,
    "json": OutputFormat.JSON,
    "txt": OutputFormat.PLAIN_TEXT,
    "text": OutputFormat.PLAIN_TEXT,
    "plain": OutputFormat.PLAIN_TEXT,
}


@dataclass(frozen=True)
class Document:
    """
    Normalized plain text extracted from one source file.

    Attributes:
        source_path: Path as yielded by the walker.
        raw_bytes: File contents as read from disk.
        detected_format: Format chosen from the file extension.
        normalized_text: Markup-free text handed to the backend.
        encoding: Name of the codec that decoded raw_bytes.
    """
    source_path: Path
    raw_bytes: bytes = field(repr=False)
    detected_format: DocumentFormat
    normalized_text: str = field(repr=False)
    encoding: str = "utf-8"

    @property
    def size(self) -> int:
        """Length of the normalized text in characters."""
        return len(self.normalized_text)

    @property
    def line_count(self) -> int:
        return len(self.normalized_text.splitlines())


@dataclass(frozen=True)
class Summary:
    """
    Backend summary of one Document plus size metadata.

    compression_ratio is summary_size / original_size, clamped to [0, 1]
    so that a backend reply longer than its input reads as "no compression"
    rather than as a ratio above one.
    """
    original_path: Path
    summary_text: str
    original_size: int
    summary_size: int
    compression_ratio: float

    @classmethod
    def from_document(cls, document: Document, summary_text: str) -> "Summary":
        original_size = document.size
        summary_size = len(summary_text)
        if original_size == 0:
            ratio = 0.0
        else:
            ratio = min(1.0, summary_size / original_size)
        return cls(
            original_path=document.source_path,
            summary_text=summary_text,
            original_size=original_size,
            summary_size=summary_size,
            compression_ratio=ratio,
        )

    @property
    def compression_percent(self) -> float:
        return self.compression_ratio * 100


@dataclass(frozen=True)
class PreviewRecord:
    """A file that would be summarized, reported by dry-run."""
    original_path: Path
    original_size: int

    @classmethod
    def from_document(cls, document: Document) -> "PreviewRecord":
        return cls(original_path=document.source_path, original_size=document.size)
