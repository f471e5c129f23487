"""
Output Renderer

Serializes summaries into one of three encodings. Every renderer is a pure
function of its arguments: same summaries in, same string out, in the
same order.

Markdown:
    # Summary of docs/guide.md

    <summary text>

    _Compressed to 10.0% of original size_

    ---

    # Summary of ...

JSON:
    {"summaries": [{"original_path": ..., "summary": ...,
                    "metadata": {"original_size": ..., "summary_size": ...,
                                 "compression_ratio": ...}}]}

Plain text:
    === docs/guide.md ===

    <summary text>
"""

from __future__ import annotations

import json
from typing import Callable, Sequence

from ..models import OutputFormat, PreviewRecord, Summary

MARKDOWN_SEPARATOR = "\n\n---\n\n"
PLAIN_TEXT_SEPARATOR = "\n\n"


def render_markdown(summaries: Sequence[Summary], include_metadata: bool = True) -> str:
    entries = []
    for summary in summaries:
        entry = f"# Summary of {summary.original_path}\n\n{summary.summary_text}"
        if include_metadata:
            entry += f"\n\n_Compressed to {summary.compression_percent:.1f}% of original size_"
        entries.append(entry)
    return MARKDOWN_SEPARATOR.join(entries)


def render_json(summaries: Sequence[Summary], include_metadata: bool = True) -> str:
    entries = []
    for summary in summaries:
        entry = {
            "original_path": str(summary.original_path),
            "summary": summary.summary_text,
        }
        if include_metadata:
            entry["metadata"] = {
                "original_size": summary.original_size,
                "summary_size": summary.summary_size,
                "compression_ratio": summary.compression_ratio,
            }
        entries.append(entry)
    return json.dumps({"summaries": entries}, indent=2, ensure_ascii=False)


def render_plain_text(summaries: Sequence[Summary], include_metadata: bool = True) -> str:
    # Plain text carries no size annotation.
    return PLAIN_TEXT_SEPARATOR.join(
        f"=== {summary.original_path} ===\n\n{summary.summary_text}" for summary in summaries
    )


RENDERERS: dict[OutputFormat, Callable[[Sequence[Summary], bool], str]] = {
    OutputFormat.MARKDOWN: render_markdown,
    OutputFormat.JSON: render_json,
    OutputFormat.PLAIN_TEXT: render_plain_text,
}


def render(
    summaries: Sequence[Summary],
    output_format: OutputFormat,
    include_metadata: bool = True,
) -> str:
    """
    Render summaries in the requested format.

    Args:
        summaries: Summaries in the order they should appear.
        output_format: Target encoding.
        include_metadata: Include size/compression information.

    Returns:
        The rendered document (no trailing newline).
    """
    return RENDERERS[OutputFormat.parse(output_format)](summaries, include_metadata)


def render_preview(records: Sequence[PreviewRecord]) -> str:
    """Describe what a real run would process (dry-run output)."""
    lines = [
        f"Would process: {record.original_path} ({record.original_size} characters)"
        for record in records
    ]
    noun = "file" if len(records) == 1 else "files"
    lines.append(f"{len(records)} {noun} would be summarized")
    return "\n".join(lines)
