"""Lexical extraction of module specifiers from JS/TS source text."""

import re
from dataclasses import dataclass
from typing import List, Pattern, Tuple


# Quoted module specifier; group 1 is the specifier itself
_QUOTED = r"""['"`]([^'"`\n]+)['"`]"""

# Block or line comments allowed inside call parentheses
_COMMENTS = r"(?:(?:/\*[^*]*\*/|//[^\n]*)\s*)*"

_IDENT = r"[\w$]+"
_BRACES = r"\{[^}]*\}"
_NAMESPACE = r"\*\s*as\s+" + _IDENT
_LINE_START = r"^[ \t]*"

# Specifiers that may point into the project; anything else is a package
LOCAL_PREFIXES = ("./", "../", "@", "#", "~")


@dataclass(frozen=True)
class ImportRule:
    """One recognized construct: a pattern plus whether it yields an edge."""

    kind: str
    pattern: str
    skip: bool = False
    anchored: bool = True


@dataclass(frozen=True)
class ImportMatch:
    """A construct found in scanned text."""

    specifier: str
    kind: str
    offset: int
    skip: bool = False


# Evaluated in order; the first rule to claim a span owns that statement.
# Every pattern stays inside the regex subset shared by Python and ripgrep.
IMPORT_RULES: Tuple[ImportRule, ...] = (
    ImportRule(
        "type_import",
        _LINE_START + r"import\s+type\s+(?:" + _BRACES + "|" + _NAMESPACE + "|" + _IDENT
        + r")\s*from\s*" + _QUOTED,
        skip=True,
    ),
    ImportRule(
        "type_reexport",
        _LINE_START + r"export\s+type\s+(?:" + _BRACES + r"|\*(?:\s*as\s+" + _IDENT
        + r")?)\s*from\s*" + _QUOTED,
        skip=True,
    ),
    ImportRule(
        "dynamic_expression",
        r"\bimport(?:\.source)?\s*" + _COMMENTS + r"\(\s*" + _COMMENTS
        + r"""(?:[^'"`\s/]|`[^`]*\$\{)""",
        skip=True,
        anchored=False,
    ),
    ImportRule(
        "import_attributes",
        _LINE_START + r"import\s*(?:" + _IDENT + r"\s*,\s*)?(?:" + _BRACES + "|" + _NAMESPACE
        + "|" + _IDENT + r")\s*from\s*" + _QUOTED + r"\s*(?:assert|with)\s*" + _BRACES,
    ),
    ImportRule(
        "source_phase",
        _LINE_START + r"import\s+source\s+" + _IDENT + r"\s+from\s*" + _QUOTED,
    ),
    ImportRule(
        "mixed_import",
        _LINE_START + r"import\s+" + _IDENT + r"\s*,\s*(?:" + _BRACES + "|" + _NAMESPACE
        + r")\s*from\s*" + _QUOTED,
    ),
    ImportRule(
        "named_import",
        _LINE_START + r"import\s*" + _BRACES + r"\s*from\s*" + _QUOTED,
    ),
    ImportRule(
        "namespace_import",
        _LINE_START + r"import\s*" + _NAMESPACE + r"\s+from\s*" + _QUOTED,
    ),
    ImportRule(
        "default_import",
        _LINE_START + r"import\s+" + _IDENT + r"\s+from\s*" + _QUOTED,
    ),
    ImportRule(
        "side_effect_import",
        _LINE_START + r"import\s*" + _QUOTED,
    ),
    ImportRule(
        "dynamic_source",
        r"\bimport\.source\s*" + _COMMENTS + r"\(\s*" + _COMMENTS + _QUOTED,
        anchored=False,
    ),
    ImportRule(
        "dynamic_import",
        r"\bimport\s*" + _COMMENTS + r"\(\s*" + _COMMENTS + _QUOTED,
        anchored=False,
    ),
    ImportRule(
        "require_call",
        r"\brequire\s*\(\s*" + _COMMENTS + _QUOTED + r"\s*" + _COMMENTS + r"\)",
        anchored=False,
    ),
    ImportRule(
        "export_all",
        _LINE_START + r"export\s*\*(?:\s*as\s+" + _IDENT + r")?\s*from\s*" + _QUOTED,
    ),
    ImportRule(
        "export_named",
        _LINE_START + r"export\s*" + _BRACES + r"\s*from\s*" + _QUOTED,
    ),
)

_COMPILED: Tuple[Tuple[ImportRule, Pattern[str]], ...] = tuple(
    (rule, re.compile(rule.pattern, re.MULTILINE)) for rule in IMPORT_RULES
)

# Pattern handed to the search collaborator so that each reported window
# holds complete statements
SEARCH_PATTERN = "|".join(f"(?:{rule.pattern})" for rule in IMPORT_RULES)


def is_relative(specifier: str) -> bool:
    """Check if a specifier is relative to the importing file."""
    return specifier.startswith(("./", "../"))


def is_local_candidate(specifier: str) -> bool:
    """
    Check if a specifier could resolve to a file inside the project.

    Relative specifiers qualify, as do the prefixes conventionally used
    for path aliases and scoped or subpath imports (``@``, ``#``, ``~``).
    Bare package names and Node built-ins do not.
    """
    return specifier.startswith(LOCAL_PREFIXES)


def find_imports(text: str) -> List[ImportMatch]:
    """
    Find every import-like construct in a line or multi-line window.

    Rules are tried in priority order. A rule match that overlaps a span
    already claimed by an earlier rule is discarded, so each statement is
    reported once under its most specific kind. Call forms (dynamic
    ``import()``, ``import.source()``, ``require()``) are ignored when they
    sit inside a comment or an unterminated string on their line.

    Args:
        text: Raw source text, starting at the beginning of a line.

    Returns:
        Matches ordered by position, skipped constructs included (their
        ``skip`` flag is set and ``specifier`` may be empty).
    """
    claimed: List[Tuple[int, int]] = []
    found: List[ImportMatch] = []

    for rule, compiled in _COMPILED:
        for match in compiled.finditer(text):
            start, end = match.span()
            if any(start < c_end and c_start < end for c_start, c_end in claimed):
                continue
            if not rule.anchored and _in_comment_or_string(text, start):
                continue
            claimed.append((start, end))
            specifier = match.group(1) if compiled.groups else ""
            found.append(ImportMatch(specifier or "", rule.kind, start, rule.skip))

    found.sort(key=lambda item: item.offset)
    return found


def extract_specifiers(text: str, include_external: bool = False) -> List[ImportMatch]:
    """
    Extract the module specifiers that create runtime dependencies.

    Skipped constructs (type-only imports, dynamic imports of computed
    values) are dropped, as are external specifiers unless
    ``include_external`` is set. The same specifier may appear more than
    once.

    Args:
        text: Raw source text, starting at the beginning of a line.
        include_external: Keep bare package specifiers as well.

    Returns:
        Non-skipped matches ordered by position.
    """
    return [
        item
        for item in find_imports(text)
        if not item.skip and (include_external or is_local_candidate(item.specifier))
    ]


def should_skip(text: str) -> bool:
    """Check if text holds import-like constructs that are all skipped."""
    matches = find_imports(text)
    return bool(matches) and all(item.skip for item in matches)


def _in_comment_or_string(text: str, position: int) -> bool:
    """
    Check if ``position`` is commented out or quoted on its line.

    Comment openers count when they sit outside string literals. A string
    counts only when its opening quote directly precedes ``position``, so a
    stray apostrophe in JSX text or a regex literal earlier on the line
    does not hide a real call.
    """
    line_start = text.rfind("\n", 0, position) + 1
    prefix = text[line_start:position]

    if prefix.lstrip().startswith("*"):
        return True

    quote = None
    idx = 0
    while idx < len(prefix):
        ch = prefix[idx]
        if quote:
            if ch == "\\":
                idx += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif prefix.startswith("//", idx):
            return True
        elif prefix.startswith("/*", idx):
            close = prefix.find("*/", idx + 2)
            if close == -1:
                return True
            idx = close + 2
            continue
        idx += 1

    return quote is not None and prefix.rstrip().endswith(quote)
