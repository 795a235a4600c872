"""File discovery and glob matching for the built-in search backend."""

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

import pathspec

from modgraph.config import DEFAULT_EXCLUDE, DEFAULT_INCLUDE


_BRACE_GROUP = re.compile(r"\{([^{}]*)\}")


def _expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternations, which ripgrep globs allow and gitignore does not."""
    match = _BRACE_GROUP.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    return [
        expanded
        for alternative in match.group(1).split(",")
        for expanded in _expand_braces(head + alternative + tail)
    ]


@lru_cache(maxsize=64)
def _compile_globs(patterns: Tuple[str, ...]) -> pathspec.GitIgnoreSpec:
    lines = [expanded for pattern in patterns for expanded in _expand_braces(pattern)]
    return pathspec.GitIgnoreSpec.from_lines(lines)


def match_any(rel_path: str, patterns: Sequence[str]) -> bool:
    """
    Check if a root-relative path matches at least one glob.

    Globs follow .gitignore rules: a pattern without a ``/`` matches the
    basename at any depth, a leading ``/`` anchors to the root and ``**``
    spans directories. Directories are passed with a trailing ``/``.

    Args:
        rel_path: Path relative to the scan root, forward slashes.
        patterns: Glob patterns.

    Returns:
        True if the path matches.
    """
    if not patterns:
        return False
    return _compile_globs(tuple(patterns)).match_file(rel_path)


def match_glob(rel_path: str, pattern: str) -> bool:
    """Check if a root-relative path matches a single glob."""
    return match_any(rel_path, [pattern])


def iter_files(
    root: Path,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> Iterator[Path]:
    """
    Iterate over source files in a directory tree.

    Hidden files and directories are skipped. A directory is pruned as
    soon as its own relative path matches an exclude glob.

    Args:
        root: Root directory to scan.
        include: Globs a file must match (default, also when empty: JS/TS
            sources).
        exclude: Globs that remove files and prune directories
            (default: node_modules, dist and build output).

    Yields:
        Path objects for matching files, in sorted order.
    """
    if not include:
        include = DEFAULT_INCLUDE
    if exclude is None:
        exclude = DEFAULT_EXCLUDE

    root = root.resolve()

    def _walk(current: Path, prefix: str) -> Iterator[Path]:
        try:
            entries = sorted(current.iterdir())
        except (PermissionError, FileNotFoundError):
            return

        for entry in entries:
            if entry.name.startswith("."):
                continue
            rel_path = f"{prefix}{entry.name}"
            if entry.is_dir():
                if match_any(rel_path + "/", exclude):
                    continue
                yield from _walk(entry, rel_path + "/")
            elif entry.is_file():
                if match_any(rel_path, include) and not match_any(rel_path, exclude):
                    yield entry

    yield from _walk(root, "")

