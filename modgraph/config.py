"""Scan defaults and the optional YAML settings file."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


# Extensions tried, in order, when a specifier has none
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs")

DEFAULT_INCLUDE = ["*.ts", "*.tsx", "*.js", "*.jsx", "*.mjs"]
DEFAULT_EXCLUDE = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
]

SETTINGS_FILENAMES = (".modgraph.yml", ".modgraph.yaml")
BACKENDS = ("auto", "ripgrep", "python")


class ConfigError(Exception):
    """Raised when a settings file cannot be read or has invalid values."""


@dataclass
class Settings:
    """Everything a scan needs to know about the project."""

    root: Path
    entry_points: List[str] = field(default_factory=list)
    tsconfig: Optional[Path] = None
    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    backend: str = "auto"
    source: Optional[Path] = None


def find_settings_file(root: Path) -> Optional[Path]:
    """Return the first settings file present in ``root``, if any."""
    for name in SETTINGS_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_settings(root: Path, config_file: Optional[Path] = None) -> Settings:
    """
    Build scan settings for ``root``.

    The settings file is optional. When ``config_file`` is None the root is
    searched for ``.modgraph.yml`` / ``.modgraph.yaml``; when neither exists
    the defaults are returned unchanged.

    Recognized keys::

        entry_points: [src/main.ts]
        tsconfig: tsconfig.app.json
        include: ["*.ts", "*.tsx"]
        exclude: ["**/__mocks__/**"]
        backend: python

    Relative ``tsconfig`` values are taken relative to the settings file.

    Args:
        root: Analysis root directory.
        config_file: Explicit settings file path.

    Returns:
        Populated Settings.

    Raises:
        ConfigError: If the file is unreadable, not valid YAML, or holds
            values of the wrong type.
    """
    root = root.resolve()
    settings = Settings(root=root)

    path = config_file if config_file is not None else find_settings_file(root)
    if path is None:
        return settings

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read settings file {path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    logger.debug("Loaded settings from %s", path)
    settings.source = path
    _apply(settings, data, path)
    return settings


def _apply(settings: Settings, data: Dict[str, Any], path: Path) -> None:
    if "entry_points" in data:
        settings.entry_points = _str_list(data["entry_points"], "entry_points", path)
    if "include" in data:
        settings.include = _str_list(data["include"], "include", path)
    if "exclude" in data:
        settings.exclude = _str_list(data["exclude"], "exclude", path)

    tsconfig = data.get("tsconfig")
    if tsconfig is not None:
        if not isinstance(tsconfig, str):
            raise ConfigError(f"{path}: 'tsconfig' must be a string")
        settings.tsconfig = (path.parent / tsconfig).resolve()

    backend = data.get("backend")
    if backend is not None:
        if backend not in BACKENDS:
            raise ConfigError(
                f"{path}: 'backend' must be one of {', '.join(BACKENDS)}"
            )
        settings.backend = backend


def _str_list(value: Any, key: str, path: Path) -> List[str]:
    # A lone string is accepted as a one-item list
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"{path}: '{key}' must be a string or a list of strings")
