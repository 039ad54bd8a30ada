"""Filesystem-backed host engine for a local workspace.

Implements the host interfaces without an IDE: documents are read from disk,
symbols come from ctags, and find-all walks the tree and writes a results
listing in the same shape an IDE's find window shows.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Pattern

from ..models.host import Cursor, FindOptions, FindStatus
from .affinity import HostAffinity
from .config import AppConfig, get_config
from .ctags import CtagsIndex, SymbolTag
from .errors import UsageError
from .host import (
    CodeHost,
    DocumentProvider,
    FindDoneEvent,
    FindEngine,
    Navigator,
    TextDocument,
)
from .paths import resolve_within, split_lines

logger = logging.getLogger(__name__)

Guard = Callable[[], None]


def _no_guard() -> None:
    return None


class LocalDocument(TextDocument):
    def __init__(self, path: str, lines: List[str]) -> None:
        self.path = path
        self._lines = lines

    @property
    def last_line(self) -> int:
        return max(1, len(self._lines))

    def text_of_lines(self, start_line: int, end_line: int) -> str:
        start = max(1, start_line)
        end = min(self.last_line, end_line)
        if end < start:
            return ""
        return "\n".join(self._lines[start - 1:end])


class WorkspaceDocuments(DocumentProvider):
    def __init__(self, root: Path, guard: Guard = _no_guard) -> None:
        self.root = root
        self._guard = guard

    def open(self, path: str) -> Optional[LocalDocument]:
        self._guard()
        try:
            absolute = resolve_within(self.root, path)
        except ValueError:
            logger.debug(f"Refusing to open document outside workspace: {path}")
            return None
        if not absolute.is_file():
            return None
        try:
            text = absolute.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug(f"Cannot read document {absolute}: {exc}")
            return None
        return LocalDocument(str(absolute), split_lines(text))


class WorkspaceNavigator(Navigator):
    """Tracks the document and caret a go-to-declaration lands on."""

    def __init__(self, documents: WorkspaceDocuments, guard: Guard = _no_guard) -> None:
        self._documents = documents
        self._guard = guard
        self._active: Optional[LocalDocument] = None
        self._cursor: Optional[Cursor] = None

    def go_to_declaration(self, handle: SymbolTag) -> None:
        self._guard()
        document = self._documents.open(handle.file_path)
        self._active = document
        if document is None:
            self._cursor = None
            return
        self._cursor = Cursor(line=min(handle.lineno, document.last_line), column=1)

    def active_document(self) -> Optional[LocalDocument]:
        self._guard()
        return self._active

    def selection(self) -> Optional[Cursor]:
        self._guard()
        return self._cursor


def compile_find_pattern(options: FindOptions) -> Pattern[str]:
    body = re.escape(options.query) if options.literal else options.query
    if options.whole_word:
        body = rf"(?<!\w){body}(?!\w)"
    flags = 0 if options.match_case else re.IGNORECASE
    return re.compile(body, flags)


def split_file_filter(file_filter: str) -> List[str]:
    patterns = [part.strip() for part in file_filter.split(";") if part.strip()]
    return patterns or ["*"]


class LocalFindEngine(FindEngine):
    """Find-all over the filesystem producing a line-oriented results listing."""

    def __init__(self, guard: Guard = _no_guard) -> None:
        self.find_done = FindDoneEvent()
        self._guard = guard
        self._listing = ""
        self._listing_lock = threading.Lock()

    def execute(self, options: FindOptions) -> FindStatus:
        self._guard()
        root = Path(options.root_path)
        if not root.is_dir():
            logger.warning(f"Find root is not a directory: {root}")
            return FindStatus.FAILED
        try:
            pattern = compile_find_pattern(options)
        except re.error as exc:
            logger.warning(f"Invalid find pattern {options.query!r}: {exc}")
            return FindStatus.FAILED

        if options.wait_for_completion:
            self._finish(self._search(root, options, pattern))
            return FindStatus.COMPLETE

        worker = threading.Thread(
            target=lambda: self._finish(self._search(root, options, pattern)),
            name="find-all",
            daemon=True,
        )
        worker.start()
        return FindStatus.PENDING

    def results_listing(self) -> str:
        self._guard()
        with self._listing_lock:
            return self._listing

    def _finish(self, listing: str) -> None:
        with self._listing_lock:
            self._listing = listing
        self.find_done.fire(FindStatus.COMPLETE, False)

    def _search(self, root: Path, options: FindOptions, pattern: Pattern[str]) -> str:
        started = time.monotonic()
        globs = split_file_filter(options.file_filter)
        hits: List[str] = []
        files_searched = 0
        files_matched = 0

        for path in self._iter_files(root, options.recursive, globs):
            files_searched += 1
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            if "\x00" in text:
                continue
            matched = False
            for lineno, line in enumerate(split_lines(text), start=1):
                if pattern.search(line):
                    hits.append(f"  {path}({lineno}):{line}")
                    matched = True
            if matched:
                files_matched += 1

        header_parts = [f'Find all "{options.query}"']
        if options.match_case:
            header_parts.append("Match case")
        if options.whole_word:
            header_parts.append("Whole word")
        if options.recursive:
            header_parts.append("Subfolders")
        header_parts += ["Find Results 1", f'"{root}"', f'"{options.file_filter}"']
        header = ", ".join(header_parts)
        trailer = (
            f"  Matching lines: {len(hits)}    Matching files: {files_matched}"
            f"    Total files searched: {files_searched}"
        )
        logger.debug(
            "Find all finished",
            extra={
                "query": options.query,
                "hits": len(hits),
                "duration_ms": f"{(time.monotonic() - started) * 1000:.2f}",
            },
        )
        return "\n".join([header, *hits, trailer]) + "\n"

    def _iter_files(self, root: Path, recursive: bool, globs: List[str]):
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
            if not recursive:
                dirnames[:] = []
            for filename in sorted(filenames):
                if any(fnmatch.fnmatch(filename, glob) for glob in globs):
                    yield Path(dirpath) / filename


class LocalWorkspaceHost(CodeHost):
    """All host capabilities for one directory tree."""

    def __init__(
        self,
        root: Path | str,
        config: AppConfig | None = None,
        affinity: HostAffinity | None = None,
    ) -> None:
        config = config or get_config()
        root_path = Path(root).expanduser().resolve()
        if not root_path.is_dir():
            raise UsageError(f"Workspace root is not a directory: {root}", {"root": str(root)})

        guard = affinity.assert_on_context if affinity is not None else _no_guard
        self.root = root_path
        index = CtagsIndex(
            root_path,
            ctags_binary=config.ctags_binary,
            timeout_seconds=config.ctags_timeout_seconds,
        )
        self.symbol_index = index
        self.code_model = index
        self.documents = WorkspaceDocuments(root_path, guard)
        self.navigator = WorkspaceNavigator(self.documents, guard)
        self.find_engine = LocalFindEngine(guard)


__all__ = [
    "LocalDocument",
    "WorkspaceDocuments",
    "WorkspaceNavigator",
    "LocalFindEngine",
    "LocalWorkspaceHost",
    "compile_find_pattern",
    "split_file_filter",
]
