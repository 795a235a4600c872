"""Loading of tsconfig/jsconfig path aliases."""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


CONFIG_NAMES = ("tsconfig.json", "jsconfig.json")

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


@dataclass
class AliasTable:
    """
    Path aliases from ``compilerOptions``.

    ``base_url`` is absolute (already resolved against the directory of the
    config that declared it) or None. ``paths`` keeps declaration order.
    """

    base_url: Optional[Path] = None
    paths: Dict[str, List[str]] = field(default_factory=dict)
    source: Optional[Path] = None


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments from JSON-like text, leaving strings intact."""
    out: List[str] = []
    in_str = False
    escape = False
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if in_str:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            idx += 1
            continue
        if ch == '"':
            in_str = True
            out.append(ch)
            idx += 1
            continue
        if ch == "/" and idx + 1 < len(text):
            nxt = text[idx + 1]
            if nxt == "/":
                idx = text.find("\n", idx + 2)
                if idx == -1:
                    break
                continue
            if nxt == "*":
                end = text.find("*/", idx + 2)
                if end == -1:
                    break
                idx = end + 2
                continue
        out.append(ch)
        idx += 1
    return "".join(out)


def parse_jsonc(text: str) -> Any:
    """Parse tsconfig-flavoured JSON (comments and trailing commas allowed)."""
    # Trailing commas are removed after comments so none hide behind one
    return json.loads(_TRAILING_COMMA.sub(r"\1", strip_json_comments(text)))


def find_config(root: Path) -> Optional[Path]:
    """Return the tsconfig.json or jsconfig.json directly under root."""
    for name in CONFIG_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _read_compiler_options(path: Path, seen: Set[Path]) -> Dict[str, Any]:
    """
    Read ``compilerOptions`` from a config, following relative ``extends``.

    ``baseUrl`` is resolved against the directory of whichever config in
    the chain declares it; a child's options override its parent's.
    """
    path = path.resolve()
    if path in seen:
        logger.warning("Circular 'extends' in %s", path)
        return {}
    seen.add(path)

    payload = parse_jsonc(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name}: expected a JSON object")

    options: Dict[str, Any] = {}
    parent = payload.get("extends")
    if isinstance(parent, str) and parent.startswith("."):
        parent_path = path.parent / parent
        if not parent_path.suffix:
            parent_path = parent_path.with_suffix(".json")
        if parent_path.is_file():
            options.update(_read_compiler_options(parent_path, seen))
        else:
            logger.debug("Ignoring missing base config %s", parent_path)
    elif parent is not None:
        # Package configs would need node_modules resolution
        logger.debug("Ignoring non-relative 'extends' in %s: %r", path, parent)

    compiler = payload.get("compilerOptions")
    if isinstance(compiler, dict):
        own = dict(compiler)
        base_url = own.get("baseUrl")
        if isinstance(base_url, str):
            own["baseUrl"] = str((path.parent / base_url).resolve())
        options.update(own)
    return options


def load_alias_table(root: Path, config_path: Optional[Path] = None) -> Optional[AliasTable]:
    """
    Load the alias table for a project.

    Args:
        root: Analysis root; searched for tsconfig.json then jsconfig.json
            when no explicit path is given.
        config_path: Explicit config file.

    Returns:
        AliasTable, or None when no config exists, it cannot be parsed, or
        it declares no ``paths``. Absence of aliases is a normal state.
    """
    path = config_path if config_path is not None else find_config(root)
    if path is None:
        logger.debug("No tsconfig.json or jsconfig.json in %s", root)
        return None
    if not path.is_file():
        logger.warning("Alias config not found: %s", path)
        return None

    try:
        options = _read_compiler_options(path, set())
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return None

    raw_paths = options.get("paths")
    if not isinstance(raw_paths, dict) or not raw_paths:
        logger.debug("%s declares no path aliases", path)
        return None

    paths: Dict[str, List[str]] = {}
    for alias, targets in raw_paths.items():
        if isinstance(targets, str):
            targets = [targets]
        if not isinstance(targets, list):
            continue
        paths[alias] = [target for target in targets if isinstance(target, str)]

    base_url = options.get("baseUrl")
    table = AliasTable(
        base_url=Path(base_url) if isinstance(base_url, str) else None,
        paths=paths,
        source=path,
    )
    logger.info("Loaded %d path aliases from %s", len(paths), path)
    return table
