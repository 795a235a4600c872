"""
Search backends that yield import-like matches from source files.

Both backends share one contract: given a directory (or a single file),
include/exclude globs and a regex, yield :class:`SearchMatch` records whose
``line_text`` holds the complete physical lines of each match window.
"""

import base64
import codecs
import json
import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Pattern, Sequence, Tuple

from modgraph.config import DEFAULT_EXCLUDE, DEFAULT_INCLUDE
from .discovery import iter_files

logger = logging.getLogger(__name__)


# ripgrep exits with 1 when nothing matched; that is not a failure
RG_NO_MATCHES = 1


@dataclass
class SearchMatch:
    """One match window reported by a search backend."""

    path: Path
    line_text: str
    line_number: int
    spans: List[Tuple[int, int]] = field(default_factory=list)
    byte_offsets: bool = False

    def matched_text(self) -> List[str]:
        """Slice the exact matched substrings out of ``line_text``."""
        if self.byte_offsets:
            raw = self.line_text.encode("utf-8")
            return [raw[start:end].decode("utf-8", errors="replace") for start, end in self.spans]
        return [self.line_text[start:end] for start, end in self.spans]


class JsonLineDecoder:
    """
    Incremental decoder for newline-delimited JSON output.

    Chunks may split a record, or a multi-byte character, anywhere. Complete
    lines are parsed as they arrive and the trailing partial line is kept
    until its newline shows up. Lines that are not valid JSON objects are
    dropped.
    """

    def __init__(self):
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.discarded = 0

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Add a chunk and return the records it completed."""
        self._buffer += self._text.decode(chunk)
        if "\n" not in self._buffer:
            return []
        *complete, self._buffer = self._buffer.split("\n")
        return self._parse(complete)

    def flush(self) -> List[Dict[str, Any]]:
        """Return the final record if the stream ended without a newline."""
        self._buffer += self._text.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        return self._parse([remainder])

    def _parse(self, lines: List[str]) -> List[Dict[str, Any]]:
        records = []
        for line in lines:
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                self.discarded += 1
                logger.debug("Discarding malformed search record: %.80s", line)
                continue
            if isinstance(payload, dict):
                records.append(payload)
            else:
                self.discarded += 1
        return records


def _arbitrary_text(data: Any) -> Optional[str]:
    # ripgrep reports non-UTF-8 data as {"bytes": <base64>} instead of {"text": ...}
    if not isinstance(data, dict):
        return None
    text = data.get("text")
    if isinstance(text, str):
        return text
    encoded = data.get("bytes")
    if isinstance(encoded, str):
        try:
            return base64.b64decode(encoded).decode("utf-8", errors="replace")
        except ValueError:
            return None
    return None


def parse_rg_match(payload: Dict[str, Any]) -> Optional[SearchMatch]:
    """
    Convert one ``rg --json`` record into a SearchMatch.

    Args:
        payload: Decoded JSON record.

    Returns:
        SearchMatch for ``match`` records, None for every other record type
        or for records missing required fields.
    """
    if payload.get("type") != "match":
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None

    path = _arbitrary_text(data.get("path"))
    line_text = _arbitrary_text(data.get("lines"))
    line_number = data.get("line_number")
    if path is None or line_text is None or not isinstance(line_number, int):
        return None

    spans: List[Tuple[int, int]] = []
    for submatch in data.get("submatches") or []:
        if not isinstance(submatch, dict):
            continue
        start, end = submatch.get("start"), submatch.get("end")
        if isinstance(start, int) and isinstance(end, int):
            spans.append((start, end))

    return SearchMatch(
        path=Path(path),
        line_text=line_text,
        line_number=line_number,
        spans=spans,
        byte_offsets=True,
    )


class RipgrepSearch:
    """Search backend that streams matches from an ``rg --json`` subprocess."""

    name = "ripgrep"

    def __init__(self, executable: str = "rg", chunk_size: int = 64 * 1024):
        self.executable = executable
        self.chunk_size = chunk_size

    def build_command(
        self,
        target: Path,
        include: Sequence[str],
        exclude: Sequence[str],
        pattern: str,
    ) -> List[str]:
        """Build the ripgrep argument list for a directory or single file."""
        cmd = [
            self.executable,
            "--json",
            "--no-config",
            "--no-ignore-vcs",
            "--multiline",
        ]
        if target.is_dir():
            for glob in include:
                cmd.extend(["--glob", glob])
            for glob in exclude:
                cmd.extend(["--glob", f"!{glob}"])
        cmd.extend(["-e", pattern, "--", str(target)])
        return cmd

    def search(
        self,
        target: Path,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        pattern: str = "",
    ) -> Iterator[SearchMatch]:
        """
        Stream matches for ``pattern`` under ``target``.

        A missing executable or a failing process ends the sequence early;
        matches already yielded remain valid.
        """
        if not target.exists():
            logger.warning("Search target not found: %s", target)
            return

        cmd = self.build_command(
            target,
            include or DEFAULT_INCLUDE,
            DEFAULT_EXCLUDE if exclude is None else exclude,
            pattern,
        )
        logger.debug("Running %s", " ".join(cmd))

        with tempfile.TemporaryFile() as stderr:
            try:
                proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=stderr)
            except OSError as e:
                logger.warning("Cannot run %s: %s", self.executable, e)
                return

            decoder = JsonLineDecoder()
            try:
                while True:
                    chunk = proc.stdout.read1(self.chunk_size)
                    if not chunk:
                        break
                    for payload in decoder.feed(chunk):
                        match = parse_rg_match(payload)
                        if match is not None:
                            yield match
                for payload in decoder.flush():
                    match = parse_rg_match(payload)
                    if match is not None:
                        yield match
            finally:
                if proc.poll() is None:
                    proc.kill()
                proc.stdout.close()
                returncode = proc.wait()

            if decoder.discarded:
                logger.debug("Discarded %d malformed ripgrep records", decoder.discarded)
            if returncode not in (0, RG_NO_MATCHES):
                stderr.seek(0)
                message = stderr.read().decode("utf-8", errors="replace").strip()
                logger.warning(
                    "%s exited with status %d%s",
                    self.executable,
                    returncode,
                    f": {message}" if message else "",
                )


@lru_cache(maxsize=8)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.MULTILINE)


def search_text(path: Path, text: str, pattern: Pattern[str]) -> Iterator[SearchMatch]:
    """
    Run a compiled pattern over file contents, grouping matches by lines.

    Each window spans from the start of the first matched line to the end
    of the last, like ripgrep's multiline output. Overlapping windows are
    merged into one record carrying several spans.
    """
    window_start = window_end = -1
    spans: List[Tuple[int, int]] = []

    def _emit() -> SearchMatch:
        return SearchMatch(
            path=path,
            line_text=text[window_start:window_end],
            line_number=text.count("\n", 0, window_start) + 1,
            spans=[(start - window_start, end - window_start) for start, end in spans],
        )

    for match in pattern.finditer(text):
        start, end = match.span()
        if start == end:
            continue
        line_start = text.rfind("\n", 0, start) + 1
        line_end = text.find("\n", max(end - 1, start))
        line_end = len(text) if line_end == -1 else line_end + 1

        if spans and line_start < window_end:
            window_end = max(window_end, line_end)
            spans.append((start, end))
            continue
        if spans:
            yield _emit()
        window_start, window_end = line_start, line_end
        spans = [(start, end)]

    if spans:
        yield _emit()


class PythonSearch:
    """Search backend that walks the tree and matches with ``re``."""

    name = "python"

    def search(
        self,
        target: Path,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        pattern: str = "",
    ) -> Iterator[SearchMatch]:
        """Stream matches for ``pattern`` under ``target``."""
        compiled = _compile(pattern)

        if target.is_file():
            files: Iterator[Path] = iter([target.resolve()])
        elif target.is_dir():
            files = iter_files(target, include=include, exclude=exclude)
        else:
            logger.warning("Search target not found: %s", target)
            return

        for file_path in files:
            # Undecodable bytes are replaced, as ripgrep does
            try:
                text = file_path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Skipping unreadable file %s: %s", file_path, e)
                continue
            yield from search_text(file_path, text, compiled)


def get_searcher(backend: str = "auto"):
    """
    Pick a search backend by name.

    Args:
        backend: ``"ripgrep"``, ``"python"`` or ``"auto"`` (ripgrep when an
            ``rg`` executable is on PATH, otherwise the Python walker).

    Returns:
        A backend instance.

    Raises:
        ValueError: For an unknown backend name.
    """
    if backend == "auto":
        backend = "ripgrep" if shutil.which("rg") else "python"
        logger.debug("Using %s search backend", backend)
    if backend == "ripgrep":
        return RipgrepSearch()
    if backend == "python":
        return PythonSearch()
    raise ValueError(f"Unknown search backend: {backend}")
