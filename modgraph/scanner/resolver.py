"""Resolution of module specifiers to files under the analysis root."""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple

from modgraph.config import RESOLVE_EXTENSIONS
from .aliases import AliasTable
from .parser import is_relative

logger = logging.getLogger(__name__)


def candidate_paths(base: str) -> List[str]:
    """
    List the files a specifier path may refer to, in lookup order.

    The path itself comes first when it already carries an extension,
    then each source extension appended, then a directory index file.
    """
    candidates = []
    if os.path.splitext(base)[1]:
        candidates.append(base)
    candidates.extend(base + ext for ext in RESOLVE_EXTENSIONS)
    candidates.extend(os.path.join(base, "index" + ext) for ext in RESOLVE_EXTENSIONS)
    return candidates


def alias_pattern(alias: str) -> Pattern[str]:
    """Convert a tsconfig alias such as ``@utils/*`` into a full-match regex."""
    return re.compile("^" + re.escape(alias).replace(r"\*", "(.*)") + "$")


class PathResolver:
    """
    Maps module specifiers to root-relative file paths.

    Relative specifiers always produce a path: when no file exists the bare
    joined path is returned so the edge is still recorded. Alias specifiers
    produce a path only when a file exists.
    """

    def __init__(self, root: Path, alias_table: Optional[AliasTable] = None):
        self.root = root.resolve()
        self.alias_table = alias_table
        self._aliases: List[Tuple[Pattern[str], List[str]]] = []
        if alias_table is not None:
            self._aliases = [
                (alias_pattern(alias), templates)
                for alias, templates in alias_table.paths.items()
            ]
        self._exists: Dict[str, bool] = {}

    def resolve(self, specifier: str, from_file) -> Optional[str]:
        """
        Resolve a specifier found in ``from_file``.

        Args:
            specifier: Module specifier string as written in the source.
            from_file: Importing file, absolute or relative to the root.

        Returns:
            Root-relative forward-slash path, or None if the specifier
            could not be mapped to a project file.
        """
        if not specifier:
            return None
        source = Path(from_file)
        if not source.is_absolute():
            source = self.root / source

        if is_relative(specifier):
            return self._resolve_relative(specifier, source)
        return self._resolve_alias(specifier)

    def relative_path(self, path) -> str:
        """Express an absolute (or root-relative) path relative to the root."""
        path = os.path.normpath(os.path.join(str(self.root), str(path)))
        return os.path.relpath(path, str(self.root)).replace(os.sep, "/")

    def _resolve_relative(self, specifier: str, source: Path) -> str:
        base = os.path.normpath(os.path.join(str(source.parent), specifier))
        found = self._first_existing(base)
        if found is not None:
            return self.relative_path(found)
        logger.debug("Unresolved relative import %r in %s", specifier, source)
        return self.relative_path(base)

    def _resolve_alias(self, specifier: str) -> Optional[str]:
        if not self._aliases:
            return None

        base_dir = str(self.alias_table.base_url or self.root)
        for compiled, templates in self._aliases:
            match = compiled.match(specifier)
            if match is None:
                continue
            wildcard = match.group(1) if compiled.groups else ""
            for template in templates:
                substituted = template.replace("*", wildcard or "", 1)
                base = os.path.normpath(os.path.join(base_dir, substituted))
                found = self._first_existing(base)
                if found is not None:
                    return self.relative_path(found)

        logger.debug("No alias resolves %r", specifier)
        return None

    def _first_existing(self, base: str) -> Optional[str]:
        for candidate in candidate_paths(base):
            if self._is_file(candidate):
                return candidate
        return None

    def _is_file(self, path: str) -> bool:
        # Files are assumed not to change during one resolver's lifetime
        cached = self._exists.get(path)
        if cached is None:
            try:
                cached = os.path.isfile(path)
            except (OSError, ValueError):
                cached = False
            self._exists[path] = cached
        return cached
