"""
Directory Walker

Enumerates candidate documentation files under one or more roots.

Rules:
- Entries are visited in lexicographic order of their names, roots in the
  order given, so an unchanged tree always yields the same sequence.
- Depth counts path components below the root: files directly inside a
  root have depth 1. Nothing deeper than max_depth is yielded.
- A glob pattern matches an entry when it matches the entry's name or its
  root-relative POSIX path, ignoring case. "*.md" therefore matches
  "guide.md" at any depth, while "docs/*.md" only matches directly under
  docs/.
- Excluded directories are pruned: their contents are never listed.
- Hidden entries (leading dot) are skipped unless include_hidden is set.
- An unreadable directory is logged and skipped; the walk continues.
"""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .config import PipelineConfig
from .errors import TraversalError
from .logging_config import debug_log, warning


def matches_any(patterns: Iterable[str], name: str, relative_path: str) -> bool:
    """
    Check an entry against glob patterns, case-insensitively.

    Args:
        patterns: Glob patterns (fnmatch syntax).
        name: The entry's own name.
        relative_path: The entry's root-relative path in POSIX form.
    """
    name = name.lower()
    relative_path = relative_path.lower()
    for pattern in patterns:
        pattern = pattern.lower().rstrip("/")
        if fnmatchcase(name, pattern) or fnmatchcase(relative_path, pattern):
            return True
    return False


class DirectoryWalker:
    """
    Lazily yields files that pass the include/exclude/depth filters.

    Traversal errors are collected in `errors` (and logged) rather than
    raised, so one unreadable directory never ends the walk.

    Example:
        walker = DirectoryWalker(config)
        for path in walker.walk([Path("docs")]):
            print(path)
    """

    def __init__(
        self,
        config: PipelineConfig,
        on_error: Callable[[TraversalError], None] | None = None,
    ):
        self.include_patterns = tuple(config.include_patterns)
        self.exclude_patterns = tuple(config.exclude_patterns)
        self.max_depth = config.max_depth
        self.include_hidden = config.include_hidden
        self.on_error = on_error
        self.errors: list[TraversalError] = []

    def walk(self, roots: Iterable[Path]) -> Iterator[Path]:
        """Yield candidate files under each root, depth-first, sorted."""
        for root in roots:
            root = Path(root)
            if not root.is_dir():
                self._report(TraversalError(root, "not a readable directory"))
                continue
            debug_log(f"[WALKER] Walking {root} (max depth {self.max_depth})")
            yield from self._walk_directory(root, root, depth=1)

    def _walk_directory(self, root: Path, directory: Path, depth: int) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self._report(TraversalError(directory, e.strerror or str(e)))
            return

        for entry in entries:
            if not self.include_hidden and entry.name.startswith("."):
                continue

            entry_path = Path(entry.path)
            relative = entry_path.relative_to(root).as_posix()

            try:
                is_dir = entry.is_dir()
                is_file = entry.is_file()
            except OSError as e:
                self._report(TraversalError(entry_path, e.strerror or str(e)))
                continue

            if is_dir:
                if matches_any(self.exclude_patterns, entry.name, relative):
                    debug_log(f"[WALKER] Pruned excluded directory {relative}")
                    continue
                if depth < self.max_depth:
                    yield from self._walk_directory(root, entry_path, depth + 1)
            elif is_file:
                if matches_any(self.exclude_patterns, entry.name, relative):
                    debug_log(f"[WALKER] Excluded {relative}")
                    continue
                if matches_any(self.include_patterns, entry.name, relative):
                    yield entry_path

    def _report(self, err: TraversalError) -> None:
        self.errors.append(err)
        warning(f"[WALKER] Skipping {err}")
        if self.on_error:
            self.on_error(err)


def walk(roots: Iterable[Path], config: PipelineConfig) -> Iterator[Path]:
    """Yield candidate files under roots according to config."""
    return DirectoryWalker(config).walk(roots)
