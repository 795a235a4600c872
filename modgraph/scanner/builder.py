"""Graph builder that orchestrates scanning and graph construction."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from modgraph.config import DEFAULT_EXCLUDE, DEFAULT_INCLUDE
from modgraph.graph.model import DependencyGraph, GraphBuilder
from .aliases import load_alias_table
from .parser import SEARCH_PATTERN, extract_specifiers, should_skip
from .resolver import PathResolver
from .search import SearchMatch, get_searcher

logger = logging.getLogger(__name__)


def ingest_matches(
    matches: Iterable[SearchMatch],
    resolver: PathResolver,
    builder: GraphBuilder,
    processed: Set[Tuple[str, str]],
) -> int:
    """
    Feed search matches through extraction and resolution into the builder.

    Args:
        matches: Match windows from a search backend.
        resolver: Resolver for the analysis root.
        builder: Builder receiving the edges.
        processed: (from, to) pairs already added during this scan; updated
            in place.

    Returns:
        Number of new edges added.
    """
    added = 0
    for match in matches:
        from_file = resolver.relative_path(match.path)
        if should_skip(match.line_text):
            logger.debug("%s:%d has only type-only or computed imports", from_file, match.line_number)
            continue
        for item in extract_specifiers(match.line_text):
            target = resolver.resolve(item.specifier, match.path)
            if target is None:
                continue
            key = (from_file, target)
            if key in processed:
                continue
            processed.add(key)
            builder.add_edge(from_file, target)
            added += 1
            logger.debug(
                "%s:%d %s %r -> %s",
                from_file,
                match.line_number,
                item.kind,
                item.specifier,
                target,
            )
    return added


def build_graph(
    root: Path,
    entry_points: Optional[Sequence[str]] = None,
    tsconfig_path: Optional[Path] = None,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    searcher=None,
) -> DependencyGraph:
    """
    Scan a JS/TS codebase and build its module dependency graph.

    With entry points, any entry not picked up by the directory scan is
    scanned on its own, and the result is restricted to the files the
    entries transitively import.

    Args:
        root: Analysis root directory.
        entry_points: Entry files, absolute or relative to root.
        tsconfig_path: Explicit tsconfig/jsconfig for path aliases.
        include: File globs to scan (default, also when empty: JS/TS sources).
        exclude: Globs to skip (default: node_modules, dist, build).
        searcher: Search backend (default: picked by get_searcher()).

    Returns:
        DependencyGraph of all scanned files, or of the entry-point scope.
    """
    root = root.resolve()
    if not include:
        include = DEFAULT_INCLUDE
    if exclude is None:
        exclude = DEFAULT_EXCLUDE
    if searcher is None:
        searcher = get_searcher()

    resolver = PathResolver(root, load_alias_table(root, tsconfig_path))
    builder = GraphBuilder(root)
    processed: Set[Tuple[str, str]] = set()

    added = ingest_matches(
        searcher.search(root, include, exclude, SEARCH_PATTERN),
        resolver,
        builder,
        processed,
    )
    logger.info("Scanned %s: %d modules, %d imports", root, len(builder), added)

    if not entry_points:
        return builder.build()

    entries: List[str] = []
    for entry in entry_points:
        entry_path = Path(entry)
        if not entry_path.is_absolute():
            entry_path = root / entry_path
        if not entry_path.is_file():
            logger.warning("Entry point not found: %s", entry)
            continue

        entry_path = entry_path.resolve()
        rel_path = resolver.relative_path(entry_path)
        if rel_path not in builder:
            added = ingest_matches(
                searcher.search(entry_path, include, exclude, SEARCH_PATTERN),
                resolver,
                builder,
                processed,
            )
            logger.info("Scanned entry point %s directly: %d imports", rel_path, added)
        builder.add_node(rel_path)
        entries.append(rel_path)

    return builder.build().scoped_to(entries)
