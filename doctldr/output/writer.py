"""Writing the rendered artifact to a file or stdout."""

from __future__ import annotations

import sys
from pathlib import Path

from ..errors import OutputError
from ..logging_config import info


def write_output(text: str, path: Path | None = None, stream=None) -> None:
    """
    Write rendered output as UTF-8.

    Args:
        text: Rendered document; a trailing newline is added.
        path: Destination file (parent directories are created). None
              writes to stream.
        stream: Text stream used when path is None (defaults to sys.stdout).

    Raises:
        OutputError: If the destination cannot be written.
    """
    if not text.endswith("\n"):
        text += "\n"

    if path is None:
        out = stream or sys.stdout
        try:
            out.write(text)
            out.flush()
        except OSError as e:
            raise OutputError(f"Failed to write output: {e}") from e
        return

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"Failed to write {path}: {e.strerror or e}") from e
    info(f"Wrote {len(text)} characters to {path}")
