"""Text search orchestration over the host find engine."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from ..models.host import FindOptions, FindStatus, ListingLine
from ..models.search import TextHit
from .affinity import AffinitySession, HostAffinity
from .config import AppConfig, get_config
from .context_window import extract_context
from .errors import HostUnavailableError, ResolutionGap, UsageError
from .host import CodeHost
from .listing_parser import parse_listing
from .paths import resolve_within

logger = logging.getLogger(__name__)

StopProbe = Callable[[], Awaitable[bool]]


class TextSearchService:
    """Runs a find-all, waits for it, and turns the listing into TextHits."""

    def __init__(self, affinity: HostAffinity, config: AppConfig | None = None) -> None:
        self.affinity = affinity
        self.config = config or get_config()
        self.clock = time.monotonic

    async def find_text(
        self,
        host: CodeHost,
        query: str,
        search_path: str,
        before: int,
        after: int,
        file_filter: Optional[str] = None,
        should_stop: Optional[StopProbe] = None,
    ) -> List[TextHit]:
        if not query:
            raise UsageError("text is required")
        try:
            root = resolve_within(host.root, search_path or "")
        except ValueError as exc:
            raise UsageError(str(exc), {"search_path": search_path}) from exc

        options = FindOptions(
            query=query,
            root_path=str(root),
            recursive=True,
            match_case=True,
            whole_word=True,
            literal=True,
            file_filter=file_filter or self.config.default_file_filter,
            wait_for_completion=True,
        )

        async with self.affinity.enter() as session:
            listing = await self._run_find(session, host, options)
            return await self._materialize(
                session, host, listing, max(0, before), max(0, after), should_stop
            )

    async def _run_find(
        self, session: AffinitySession, host: CodeHost, options: FindOptions
    ) -> str:
        loop = asyncio.get_running_loop()
        done: asyncio.Future = loop.create_future()

        def _settle(result: FindStatus, cancelled: bool) -> None:
            if not done.done():
                done.set_result((result, cancelled))

        def on_find_done(result: FindStatus, cancelled: bool) -> None:
            loop.call_soon_threadsafe(_settle, result, cancelled)

        engine = host.find_engine
        await session.run(engine.find_done.subscribe, on_find_done)
        try:
            try:
                status = await session.run(engine.execute, options)
            except OSError as exc:
                raise HostUnavailableError(f"Find engine unavailable: {exc}") from exc
            if status is FindStatus.PENDING:
                try:
                    status, cancelled = await asyncio.wait_for(
                        done, timeout=self.config.find_timeout_seconds
                    )
                except asyncio.TimeoutError as exc:
                    raise HostUnavailableError(
                        "Find did not complete in time",
                        {"timeout_seconds": self.config.find_timeout_seconds},
                    ) from exc
                if cancelled:
                    logger.info("Find was cancelled by the host; using partial listing")
            if status is FindStatus.FAILED:
                raise HostUnavailableError(
                    "Find engine reported failure", {"root_path": options.root_path}
                )
            return await session.run(engine.results_listing)
        finally:
            await session.run(engine.find_done.unsubscribe, on_find_done)

    async def _materialize(
        self,
        session: AffinitySession,
        host: CodeHost,
        listing: str,
        before: int,
        after: int,
        should_stop: Optional[StopProbe],
    ) -> List[TextHit]:
        results: List[TextHit] = []
        started = self.clock()
        limit_seconds = self.config.find_time_limit_ms / 1000

        for entry in parse_listing(listing):
            if should_stop is not None and await should_stop():
                logger.info("Caller went away; stopping after %d text hits", len(results))
                break
            try:
                hit = await session.run(self._resolve, host, entry, before, after)
            except ResolutionGap as exc:
                logger.debug(f"Skipping {entry.path}({entry.line}): {exc.message}")
                continue
            results.append(hit)

            if self.config.find_limit_time and self.clock() - started > limit_seconds:
                logger.info(
                    "Text hit materialization hit its time limit",
                    extra={"hits": len(results), "limit_ms": self.config.find_time_limit_ms},
                )
                break

        return results

    @staticmethod
    def _resolve(host: CodeHost, entry: ListingLine, before: int, after: int) -> TextHit:
        document = host.documents.open(entry.path)
        if document is None:
            raise ResolutionGap(f"document not accessible: {entry.file_name}")
        context = extract_context(document, entry.line, before, after)
        return TextHit(file_path=entry.path, line=entry.line, context=context)


__all__ = ["TextSearchService", "StopProbe"]
