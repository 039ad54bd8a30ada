"""Interfaces of the host engine the search core drives.

The host owns the symbol index, the code model, the find engine and the open
documents. None of it is safe for concurrent use: every call below must be made
from the affinity context (see ``affinity.HostAffinity``).
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Collection, List, Optional

from ..models.host import CodeElement, Cursor, FindOptions, FindStatus

logger = logging.getLogger(__name__)

FindDoneHandler = Callable[[FindStatus, bool], None]

FUNCTION_KINDS = frozenset({"function", "method", "member", "func"})


class TextDocument(ABC):
    """A document buffer addressed by 1-based line numbers."""

    path: str

    @property
    @abstractmethod
    def last_line(self) -> int: ...

    @abstractmethod
    def text_of_lines(self, start_line: int, end_line: int) -> str:
        """Literal text of lines ``[start_line, end_line]`` inclusive."""
        ...


class DocumentProvider(ABC):
    @abstractmethod
    def open(self, path: str) -> Optional[TextDocument]:
        """Open (or reuse) a document; None when it is not accessible."""
        ...


class SymbolIndex(ABC):
    @abstractmethod
    def lookup(self, name: str, whole_word: bool = True) -> List[Any]:
        """Return opaque handles, each navigable to a declaration."""
        ...


class Navigator(ABC):
    """Editor navigation state: the active document and its selection."""

    @abstractmethod
    def go_to_declaration(self, handle: Any) -> None: ...

    @abstractmethod
    def active_document(self) -> Optional[TextDocument]: ...

    @abstractmethod
    def selection(self) -> Optional[Cursor]: ...


class CodeModel(ABC):
    @abstractmethod
    def element_at(
        self, path: str, line: int, column: int, kinds: Collection[str]
    ) -> Optional[CodeElement]:
        """Innermost element of one of ``kinds`` enclosing the position."""
        ...

    @abstractmethod
    def elements_in(self, path: str) -> List[CodeElement]:
        """Top-level elements of a file, children attached."""
        ...


class FindDoneEvent:
    """Subscribe/unsubscribe event raised when a find-all run finishes."""

    def __init__(self) -> None:
        self._handlers: List[FindDoneHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: FindDoneHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: FindDoneHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def fire(self, result: FindStatus, cancelled: bool = False) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(result, cancelled)


class FindEngine(ABC):
    """Find-all engine writing its hits to a results listing."""

    find_done: FindDoneEvent

    @abstractmethod
    def execute(self, options: FindOptions) -> FindStatus:
        """Start a search.

        Returns COMPLETE when the listing is ready, PENDING when completion will
        be signalled through ``find_done``, FAILED when the engine refused.
        """
        ...

    @abstractmethod
    def results_listing(self) -> str:
        """Full text of the results listing of the last completed search."""
        ...


class CodeHost(ABC):
    """One workspace as seen through the host engine."""

    root: Path
    symbol_index: SymbolIndex
    navigator: Navigator
    code_model: CodeModel
    find_engine: FindEngine
    documents: DocumentProvider

    def close(self) -> None:
        """Release host resources when the workspace is detached."""
        logger.debug("Closing host for %s", self.root)


__all__ = [
    "FUNCTION_KINDS",
    "TextDocument",
    "DocumentProvider",
    "SymbolIndex",
    "Navigator",
    "CodeModel",
    "FindDoneEvent",
    "FindDoneHandler",
    "FindEngine",
    "CodeHost",
]
