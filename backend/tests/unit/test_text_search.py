"""Unit tests for TextSearchService."""

import asyncio
import threading
from pathlib import Path

import pytest

from backend.src.services import paths, text_search
from backend.src.services.affinity import HostAffinity
from backend.src.services.config import AppConfig
from backend.src.services.errors import HostUnavailableError, UsageError
from backend.src.services.text_search import TextSearchService
from backend.tests.unit.fake_host import FakeHost, numbered_lines

TWO_HIT_LISTING = "2 matches found\nfoo.cpp(10): void bar() {\nfoo.cpp(15): void bar() {\n"


@pytest.fixture
def affinity():
    affinity = HostAffinity(name="test-affinity")
    yield affinity
    affinity.shutdown()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(find_timeout_seconds=0.5)


@pytest.fixture
def service(affinity: HostAffinity, config: AppConfig) -> TextSearchService:
    return TextSearchService(affinity, config)


def _host(tmp_path: Path, listing: str = TWO_HIT_LISTING, mode: str = "complete", lines: int = 30) -> FakeHost:
    return FakeHost(
        tmp_path,
        docs={"foo.cpp": numbered_lines(lines)},
        listing=listing,
        find_mode=mode,
    )


class TestFindText:
    @pytest.mark.asyncio
    async def test_two_hits_with_context_windows(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path)

        results = await service.find_text(host, "bar", "", 2, 1, "*.cpp")

        assert [(hit.file_path, hit.line) for hit in results] == [("foo.cpp", 10), ("foo.cpp", 15)]
        assert results[0].context == "line 8\nline 9\nline 10\nline 11"
        assert results[1].context == "line 13\nline 14\nline 15\nline 16"

    @pytest.mark.asyncio
    async def test_context_clamped_to_document_length(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path, lines=15)

        results = await service.find_text(host, "bar", "", 2, 1, "*.cpp")

        assert results[1].context == "line 13\nline 14\nline 15"

    @pytest.mark.asyncio
    async def test_engine_is_configured_for_literal_whole_word_search(
        self, service, tmp_path: Path
    ) -> None:
        (tmp_path / "src").mkdir()
        host = _host(tmp_path)

        await service.find_text(host, "bar", "src", 5, 5, "*.h")

        options = host.find_engine.executed[0]
        assert options.query == "bar"
        assert Path(options.root_path) == (tmp_path / "src").resolve()
        assert options.recursive and options.match_case and options.whole_word and options.literal
        assert options.file_filter == "*.h"
        assert options.wait_for_completion is True

    @pytest.mark.asyncio
    async def test_missing_filter_uses_configured_default(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path)

        await service.find_text(host, "bar", "", 5, 5, None)

        assert host.find_engine.executed[0].file_filter == "*.h;*.cpp"

    @pytest.mark.asyncio
    async def test_inaccessible_documents_are_dropped(self, service, tmp_path: Path) -> None:
        listing = "header\nmissing.cpp(3): bar\nfoo.cpp(4): bar\n"
        host = _host(tmp_path, listing=listing)

        results = await service.find_text(host, "bar", "", 0, 0)

        assert [(hit.file_path, hit.line, hit.context) for hit in results] == [("foo.cpp", 4, "line 4")]
        assert host.documents.opened == ["missing.cpp", "foo.cpp"]

    @pytest.mark.asyncio
    async def test_repeat_search_yields_identical_results(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path)

        first = await service.find_text(host, "bar", "", 2, 1)
        second = await service.find_text(host, "bar", "", 2, 1)

        assert first == second

    @pytest.mark.asyncio
    async def test_search_path_outside_workspace_is_a_usage_error(
        self, service, tmp_path: Path
    ) -> None:
        host = _host(tmp_path)

        with pytest.raises(UsageError):
            await service.find_text(host, "bar", "../../etc", 5, 5)

        assert host.find_engine.executed == []

    @pytest.mark.asyncio
    async def test_empty_query_is_a_usage_error(self, service, tmp_path: Path) -> None:
        with pytest.raises(UsageError):
            await service.find_text(_host(tmp_path), "", "", 5, 5)


class TestFindCompletion:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["complete", "pending"])
    async def test_subscription_removed_exactly_once(self, service, tmp_path: Path, mode: str) -> None:
        host = _host(tmp_path, mode=mode)

        results = await service.find_text(host, "bar", "", 2, 1)

        event = host.find_engine.find_done
        assert len(results) == 2
        assert event.subscribe_calls == 1
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_failed_find_raises_and_unsubscribes(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path, mode="failed")

        with pytest.raises(HostUnavailableError):
            await service.find_text(host, "bar", "", 2, 1)

        event = host.find_engine.find_done
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_execute_os_error_is_host_unavailable_and_unsubscribes(
        self, service, tmp_path: Path
    ) -> None:
        host = _host(tmp_path, mode="error")

        with pytest.raises(HostUnavailableError):
            await service.find_text(host, "bar", "", 2, 1)

        event = host.find_engine.find_done
        assert event.subscribe_calls == 1
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_unexpected_execute_error_propagates_and_unsubscribes(
        self, service, tmp_path: Path
    ) -> None:
        host = _host(tmp_path, mode="broken")

        with pytest.raises(RuntimeError, match="find engine crashed"):
            await service.find_text(host, "bar", "", 2, 1)

        event = host.find_engine.find_done
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_cancelled_wait_unsubscribes(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path, mode="silent")
        task = asyncio.create_task(service.find_text(host, "bar", "", 2, 1))

        for _ in range(200):
            if host.find_engine.executed:
                break
            await asyncio.sleep(0.01)
        assert host.find_engine.executed
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        event = host.find_engine.find_done
        assert event.subscribe_calls == 1
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_affinity_is_usable_after_cancelled_search(self, service, tmp_path: Path) -> None:
        silent = _host(tmp_path, mode="silent")
        task = asyncio.create_task(service.find_text(silent, "bar", "", 2, 1))
        for _ in range(200):
            if silent.find_engine.executed:
                break
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        results = await service.find_text(_host(tmp_path), "bar", "", 2, 1)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_completion_timeout_raises_and_unsubscribes(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path, mode="silent")

        with pytest.raises(HostUnavailableError):
            await service.find_text(host, "bar", "", 2, 1)

        event = host.find_engine.find_done
        assert event.unsubscribe_calls == 1
        assert event.subscriber_count == 0


class TestAffinityAndLimits:
    @pytest.mark.asyncio
    async def test_host_calls_run_on_one_worker_thread(self, service, affinity, tmp_path: Path) -> None:
        host = _host(tmp_path)

        await service.find_text(host, "bar", "", 2, 1)

        idents = set(host.threads.idents)
        assert idents == {affinity.thread_id}
        assert threading.get_ident() not in idents

    @pytest.mark.asyncio
    async def test_concurrent_searches_do_not_overlap(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path, mode="pending")

        first, second = await asyncio.gather(
            service.find_text(host, "bar", "", 2, 1),
            service.find_text(host, "bar", "", 2, 1),
        )

        assert first == second
        assert host.find_engine.find_done.subscribe_calls == 2
        assert host.find_engine.find_done.unsubscribe_calls == 2

    @pytest.mark.asyncio
    async def test_stop_probe_halts_emission(self, service, tmp_path: Path) -> None:
        host = _host(tmp_path)
        calls = {"n": 0}

        async def should_stop() -> bool:
            calls["n"] += 1
            return calls["n"] > 1

        results = await service.find_text(host, "bar", "", 2, 1, should_stop=should_stop)

        assert [hit.line for hit in results] == [10]

    @pytest.mark.asyncio
    async def test_time_limit_stops_materialization(self, affinity, tmp_path: Path) -> None:
        config = AppConfig(find_limit_time=True, find_time_limit_ms=1)
        service = TextSearchService(affinity, config)
        host = _host(tmp_path)
        ticks = iter([0.0, 5.0, 10.0, 15.0])
        service.clock = lambda: next(ticks)

        results = await service.find_text(host, "bar", "", 2, 1)

        assert len(results) == 1


def test_orchestrator_uses_host_neutral_path_helper() -> None:
    assert text_search.resolve_within is paths.resolve_within
    assert not hasattr(text_search, "LocalWorkspaceHost")
