"""Scanner module for import discovery, extraction and resolution."""

from .aliases import AliasTable, load_alias_table
from .builder import build_graph
from .discovery import iter_files, match_glob
from .parser import SEARCH_PATTERN, extract_specifiers, find_imports
from .resolver import PathResolver
from .search import PythonSearch, RipgrepSearch, get_searcher

__all__ = [
    "AliasTable",
    "load_alias_table",
    "build_graph",
    "iter_files",
    "match_glob",
    "SEARCH_PATTERN",
    "extract_specifiers",
    "find_imports",
    "PathResolver",
    "PythonSearch",
    "RipgrepSearch",
    "get_searcher",
]
