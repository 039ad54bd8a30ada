"""Protocol-facing code search service.

Owns the attached workspace and the affinity context, validates requests and
delegates to the symbol and text orchestrators.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..models.host import OutlineResponse
from ..models.search import (
    SymbolRequest,
    SymbolResponse,
    TextSearchRequest,
    TextSearchResponse,
)
from .affinity import HostAffinity
from .config import AppConfig, get_config
from .errors import NoWorkspaceError, UsageError
from .host import CodeHost
from .outline import DEFAULT_MAX_DEPTH, flatten_outline
from .paths import resolve_within
from .symbol_search import SymbolSearchService
from .text_search import TextSearchService
from .workspace_host import LocalWorkspaceHost

logger = logging.getLogger(__name__)

StopProbe = Callable[[], Awaitable[bool]]


class CodeSearchService:
    """FindSymbols / FindText over whichever workspace is attached."""

    def __init__(
        self,
        config: AppConfig | None = None,
        affinity: HostAffinity | None = None,
    ) -> None:
        self.config = config or get_config()
        self.affinity = affinity or HostAffinity()
        self.symbols = SymbolSearchService(self.affinity, self.config)
        self.text = TextSearchService(self.affinity, self.config)
        self._host: Optional[CodeHost] = None

    # ------------------------------------------------------------------
    # Workspace lifecycle
    # ------------------------------------------------------------------

    @property
    def host(self) -> CodeHost:
        if self._host is None:
            raise NoWorkspaceError()
        return self._host

    @property
    def workspace_root(self) -> Optional[Path]:
        return self._host.root if self._host is not None else None

    def attach(self, host: CodeHost) -> None:
        """Attach a host integration, replacing any previous one."""
        if host is None:
            raise UsageError("Cannot attach an empty host")
        if self._host is not None:
            self.detach()
        self._host = host
        logger.info("Workspace opened", extra={"workspace_root": str(host.root)})

    def attach_workspace(self, root: Path | str) -> CodeHost:
        """Attach the local filesystem host for ``root``."""
        host = LocalWorkspaceHost(root, config=self.config, affinity=self.affinity)
        self.attach(host)
        return host

    def detach(self) -> None:
        if self._host is None:
            return
        logger.info("Workspace closing", extra={"workspace_root": str(self._host.root)})
        host, self._host = self._host, None
        host.close()

    def shutdown(self) -> None:
        self.detach()
        self.affinity.shutdown()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def find_symbols(
        self, request: SymbolRequest, should_stop: Optional[StopProbe] = None
    ) -> SymbolResponse:
        host = self.host
        start_time = time.time()
        symbols = await self.symbols.find_symbols(
            host, request.symbol_name.strip(), should_stop=should_stop
        )
        logger.info(
            "FindSymbols",
            extra={
                "symbol": request.symbol_name,
                "result_count": len(symbols),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return SymbolResponse(symbols=symbols)

    async def find_text(
        self, request: TextSearchRequest, should_stop: Optional[StopProbe] = None
    ) -> TextSearchResponse:
        host = self.host
        start_time = time.time()
        results = await self.text.find_text(
            host,
            request.text,
            request.search_path,
            request.context_before,
            request.context_after,
            request.file_extension or self.config.default_file_filter,
            should_stop=should_stop,
        )
        logger.info(
            "FindText",
            extra={
                "query": request.text,
                "search_path": request.search_path or "(root)",
                "result_count": len(results),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return TextSearchResponse(results=results)

    async def outline(self, path: str, max_depth: int = DEFAULT_MAX_DEPTH) -> OutlineResponse:
        host = self.host
        try:
            absolute = resolve_within(host.root, path)
        except ValueError as exc:
            raise UsageError(str(exc), {"path": path}) from exc

        roots = await self.affinity.run(host.code_model.elements_in, str(absolute))
        entries, truncated = flatten_outline(roots, max_depth=max(0, max_depth))
        return OutlineResponse(file_path=str(absolute), elements=entries, truncated=truncated)


_code_search_service: Optional[CodeSearchService] = None


def get_code_search_service() -> CodeSearchService:
    """Get or create the code search service singleton."""
    global _code_search_service
    if _code_search_service is None:
        _code_search_service = CodeSearchService()
    return _code_search_service


def reset_code_search_service() -> None:
    """Shut down and forget the singleton (used at app shutdown and in tests)."""
    global _code_search_service
    if _code_search_service is not None:
        _code_search_service.shutdown()
    _code_search_service = None


__all__ = [
    "CodeSearchService",
    "get_code_search_service",
    "reset_code_search_service",
]
