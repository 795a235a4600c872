#!/usr/bin/env python3
"""
modgraph CLI

Generate module dependency graphs from JavaScript/TypeScript codebases,
optionally scoped to a set of entry point files.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from modgraph import __version__
from modgraph.config import BACKENDS, ConfigError, load_settings
from modgraph.exporters import to_ascii, to_json
from modgraph.graph.model import entry_points_for
from modgraph.scanner.builder import build_graph
from modgraph.scanner.search import get_searcher


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="modgraph",
        description="Generate module dependency graphs from JS/TS codebases.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  modgraph                              # Whole project, JSON to stdout
  modgraph src/main.ts                  # Only files reachable from main.ts
  modgraph -C web -o graph.json         # Analyze ./web, write to a file
  modgraph -f tree                      # Import trees from each root node
  modgraph -c tsconfig.app.json         # Use a specific tsconfig for aliases
  modgraph -e "**/*.test.ts" --cycles   # Skip tests, report cycles
  modgraph --entry-points-for src/lib/db.ts
        """,
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="Entry point files to analyze (analyzes all files if not specified)",
    )

    parser.add_argument(
        "-C", "--root",
        default=".",
        help="Project root directory (default: current directory)",
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "tree", "ascii"],
        default="json",
        help="Output format: json, tree (Unicode) or ascii (default: json)",
    )

    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to tsconfig.json (searches the project root if not specified)",
    )

    parser.add_argument(
        "-i", "--include",
        nargs="+",
        default=None,
        help="Glob patterns of files to scan",
    )

    parser.add_argument(
        "-e", "--exclude",
        nargs="+",
        default=None,
        help="Glob patterns to exclude (added to the defaults)",
    )

    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Search backend (default: ripgrep if installed, else python)",
    )

    parser.add_argument(
        "--settings",
        default=None,
        help="YAML settings file (default: .modgraph.yml in the project root)",
    )

    parser.add_argument(
        "--cycles",
        action="store_true",
        help="Include circular dependencies in JSON output",
    )

    parser.add_argument(
        "--entry-points-for",
        nargs="+",
        default=None,
        metavar="FILE",
        help="Print the entry points that import these files instead of the graph",
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Show debug logging and generation time",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = Path(parsed.root).resolve()
    if not root.is_dir():
        print(f"Error: '{parsed.root}' is not a directory", file=sys.stderr)
        return 1

    try:
        settings = load_settings(
            root, Path(parsed.settings).resolve() if parsed.settings else None
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Command-line values take precedence over the settings file
    entry_points = [str(Path(f).resolve()) for f in parsed.files] or settings.entry_points
    tsconfig = Path(parsed.config).resolve() if parsed.config else settings.tsconfig
    include = parsed.include or settings.include
    exclude = settings.exclude + (parsed.exclude or [])
    backend = parsed.backend or settings.backend

    start = time.perf_counter()
    try:
        graph = build_graph(
            root=root,
            entry_points=entry_points or None,
            tsconfig_path=tsconfig,
            include=include,
            exclude=exclude,
            searcher=get_searcher(backend),
        )
    except Exception as e:
        print(f"Error generating dependency graph: {e}", file=sys.stderr)
        return 1
    elapsed_ms = (time.perf_counter() - start) * 1000

    if parsed.entry_points_for:
        targets = [_to_graph_path(f, root) for f in parsed.entry_points_for]
        output = json.dumps(entry_points_for(targets, graph), indent=2)
    elif parsed.format == "json":
        output = to_json(graph, cycles=graph.find_cycles() if parsed.cycles else None)
    else:
        output = to_ascii(graph, style="ascii" if parsed.format == "ascii" else "tree")

    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output + "\n", encoding="utf-8")
            print(f"Dependency graph written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    if parsed.debug:
        print(f"Module graph generated in {elapsed_ms:.0f}ms", file=sys.stderr)

    return 0


def _to_graph_path(value: str, root: Path) -> str:
    """Turn a command-line file argument into a graph key."""
    path = Path(value).resolve()
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return value.replace("\\", "/")


if __name__ == "__main__":
    sys.exit(main())
