"""Symbol lookup orchestration over the host index and code model."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from ..models.search import SymbolHit
from .affinity import HostAffinity
from .config import AppConfig, get_config
from .context_window import extract_context
from .errors import HostUnavailableError, ResolutionGap, UsageError
from .host import FUNCTION_KINDS, CodeHost

logger = logging.getLogger(__name__)


class SymbolSearchService:
    """
    Resolves index hits for a name to the function-level elements declaring them.

    For each raw hit, in index order: navigate to its declaration, read the
    active document and caret, map the caret to the enclosing element, then cut
    a context window around the element's span. A hit that fails any step is
    dropped; only index failures abort the lookup.
    """

    def __init__(self, affinity: HostAffinity, config: AppConfig | None = None) -> None:
        self.affinity = affinity
        self.config = config or get_config()
        self.element_kinds = FUNCTION_KINDS

    async def find_symbols(
        self,
        host: CodeHost,
        name: str,
        should_stop: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> List[SymbolHit]:
        if not name:
            raise UsageError("symbolName is required")

        async with self.affinity.enter() as session:
            candidates = await session.run(self._lookup, host, name)
            logger.info(
                "Symbol lookup",
                extra={"symbol": name, "candidates": len(candidates)},
            )

            hits: List[SymbolHit] = []
            for candidate in candidates:
                if should_stop is not None and await should_stop():
                    logger.info("Caller went away; stopping after %d symbols", len(hits))
                    break
                try:
                    hit = await session.run(self._resolve, host, candidate)
                except ResolutionGap as exc:
                    logger.debug(f"Dropping candidate for {name!r}: {exc.message}")
                    continue
                hits.append(hit)
            return hits

    @staticmethod
    def _lookup(host: CodeHost, name: str) -> List[Any]:
        try:
            candidates = host.symbol_index.lookup(name, True)
        except OSError as exc:
            raise HostUnavailableError(f"Symbol index unavailable: {exc}") from exc
        if candidates is None:
            raise HostUnavailableError("Symbol index returned no result list", {"symbol": name})
        return list(candidates)

    def _resolve(self, host: CodeHost, candidate: Any) -> SymbolHit:
        navigator = host.navigator
        navigator.go_to_declaration(candidate)

        document = navigator.active_document()
        if document is None:
            raise ResolutionGap("no active document")
        cursor = navigator.selection()
        if cursor is None:
            raise ResolutionGap("no valid selection")

        element = host.code_model.element_at(
            document.path, cursor.line, cursor.column, self.element_kinds
        )
        if element is None:
            raise ResolutionGap(f"no function element at {document.path}:{cursor.line}")

        context = extract_context(
            document,
            element.start_line,
            self.config.context_lines_before,
            self.config.context_lines_after,
            end_line=element.end_line,
        )
        logger.debug(f"Found symbol {element.full_name} at {document.path}:{element.start_line}")
        return SymbolHit(
            name=element.full_name,
            kind=element.kind,
            file_path=document.path,
            line=element.start_line,
            context=context,
        )


__all__ = ["SymbolSearchService"]
