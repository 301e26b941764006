"""Tests for agents."""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from visibility_audit.agents import OrchestratorAgent, SinglePageAnalysisService, build_page_urls
from visibility_audit.models import PageErrorType, PageResult, SessionState
from visibility_audit.services import (
    AnalysisStore,
    ConsistencyResolver,
    InvalidPageListError,
    PageAnalysisError,
    PageFetchError,
    PageJobRunner,
    SessionStore,
)

from conftest import HANG, FakeAnalyzer, FakeResolver, make_record, uniform_record


DOMAIN = "https://example.com"


def make_orchestrator(outcomes, gate=None, recorder=None, attempt_timeout=0.05):
    store = SessionStore()
    resolver = FakeResolver(outcomes, gate=gate)
    runner = PageJobRunner(
        resolver,
        recorder=recorder,
        max_retries=2,
        retry_base_delay=0,
        attempt_timeout=attempt_timeout,
    )
    return OrchestratorAgent(store=store, page_runner=runner, max_pages=5), resolver


def test_build_page_urls():
    assert build_page_urls("https://example.com/", ["/", "about", "/blog/post"]) == [
        "https://example.com/",
        "https://example.com/about",
        "https://example.com/blog/post",
    ]


@pytest.mark.asyncio
class TestOrchestrator:
    """Tests for OrchestratorAgent."""

    async def test_start_returns_before_any_page_completes(self):
        gate = asyncio.Event()
        orchestrator, resolver = make_orchestrator(
            {f"{DOMAIN}/": [uniform_record(80)], f"{DOMAIN}/about": [uniform_record(60)]},
            gate=gate,
            attempt_timeout=5,
        )

        session_id = await orchestrator.start_session(DOMAIN, ["/", "/about"])
        snapshot = orchestrator.get_snapshot(session_id)

        assert snapshot.state == SessionState.ANALYZING
        assert snapshot.current_page_index == 0
        assert snapshot.page_results == []
        assert snapshot.total_pages == 2

        # Let the run reach the first analysis, which is held by the gate
        await asyncio.sleep(0.01)
        snapshot = orchestrator.get_snapshot(session_id)
        assert snapshot.state == SessionState.ANALYZING
        assert snapshot.current_step == "Analyzing website"
        assert snapshot.current_page_url == f"{DOMAIN}/"
        assert snapshot.page_results == []

        gate.set()
        await orchestrator.get_task(session_id)

        assert orchestrator.get_snapshot(session_id).state == SessionState.COMPLETED

    async def test_completed_session_with_partial_failure(self, recorder):
        orchestrator, resolver = make_orchestrator(
            {
                f"{DOMAIN}/": [uniform_record(80)],
                f"{DOMAIN}/missing": [PageFetchError("HTTP 404: Not Found", 404)],
                f"{DOMAIN}/about": [make_record(80, 60, 70, 90, 50)],
            },
            recorder=recorder,
        )

        session_id = await orchestrator.start_session(DOMAIN, ["/", "/missing", "/about"])
        await orchestrator.get_task(session_id)
        snapshot = orchestrator.get_snapshot(session_id)

        assert snapshot.state == SessionState.COMPLETED
        assert snapshot.error is None
        assert snapshot.completed_page_count == 3
        assert snapshot.completed_at is not None
        assert [r.path for r in snapshot.page_results] == ["/", "/missing", "/about"]
        assert resolver.calls == [f"{DOMAIN}/", f"{DOMAIN}/missing", f"{DOMAIN}/about"]

        for result in snapshot.page_results:
            assert (result.analysis is None) == (result.error is not None)
            assert result.cached is False

        missing = snapshot.page_results[1]
        assert missing.score == 0
        assert missing.error_type == PageErrorType.NOT_FOUND

        insights = snapshot.domain_insights
        assert insights.total_pages == 3
        assert insights.completed_pages == 2
        assert insights.average_score == 75  # (80 + 69) / 2 = 74.5
        assert insights.best_page.path == "/"
        assert insights.worst_page.path == "/missing"
        assert insights.success_rate == 67
        assert len(recorder.recorded) == 2

    async def test_zero_success_is_still_completed(self):
        orchestrator, _ = make_orchestrator({f"{DOMAIN}/": [HANG], f"{DOMAIN}/a": [HANG]})

        session_id = await orchestrator.start_session(DOMAIN, ["/", "/a"])
        await orchestrator.get_task(session_id)
        snapshot = orchestrator.get_snapshot(session_id)

        assert snapshot.state == SessionState.COMPLETED
        assert snapshot.domain_insights.completed_pages == 0
        assert snapshot.domain_insights.average_score == 0
        assert snapshot.domain_insights.success_rate == 0
        assert all(r.error_type == PageErrorType.TIMEOUT for r in snapshot.page_results)

    async def test_too_many_pages_rejected_before_analysis(self):
        orchestrator, resolver = make_orchestrator({})

        with pytest.raises(InvalidPageListError):
            await orchestrator.start_session(DOMAIN, ["/1", "/2", "/3", "/4", "/5", "/6"])

        assert len(orchestrator.store) == 0
        assert resolver.calls == []

    async def test_empty_page_list_rejected(self):
        orchestrator, _ = make_orchestrator({})

        with pytest.raises(InvalidPageListError):
            await orchestrator.start_session(DOMAIN, [])

    async def test_orchestration_fault_fails_session(self):
        runner = Mock()
        runner.run = AsyncMock(side_effect=[
            make_page_result_stub(), RuntimeError("result sink crashed")
        ])
        orchestrator = OrchestratorAgent(store=SessionStore(), page_runner=runner)

        session_id = await orchestrator.start_session(DOMAIN, ["/", "/about"])
        await orchestrator.get_task(session_id)
        snapshot = orchestrator.get_snapshot(session_id)

        assert snapshot.state == SessionState.FAILED
        assert snapshot.error == "result sink crashed"
        assert snapshot.domain_insights is None
        assert len(snapshot.page_results) == 1

    async def test_injected_store_is_used_even_when_empty(self):
        store = SessionStore()
        orchestrator = OrchestratorAgent(store=store, page_runner=Mock(), max_pages=2)

        assert orchestrator.store is store
        assert orchestrator.max_pages == 2

        with pytest.raises(InvalidPageListError):
            await orchestrator.start_session(DOMAIN, ["/", "/a", "/b"])
        assert len(store) == 0

    async def test_unknown_session_snapshot(self):
        orchestrator, _ = make_orchestrator({})
        assert orchestrator.get_snapshot("nonexistent_id") is None

    async def test_final_progress_fields(self):
        orchestrator, _ = make_orchestrator({f"{DOMAIN}/": [uniform_record(70)]})

        session_id = await orchestrator.start_session(DOMAIN, ["/"])
        await orchestrator.get_task(session_id)
        snapshot = orchestrator.get_snapshot(session_id)

        assert snapshot.current_step == "Analysis complete"
        assert snapshot.current_step_details == "Analyzed 1/1 pages successfully"
        assert snapshot.updated_at >= snapshot.started_at


def make_page_result_stub():
    return PageResult(url=f"{DOMAIN}/", path="/", score=70, analysis=uniform_record(70))


@pytest.mark.asyncio
class TestSinglePageAnalysisService:
    """Tests for the cached single-page path."""

    def make_service(self, tmp_path, outcomes):
        analyzer = FakeAnalyzer(outcomes)
        service = SinglePageAnalysisService(
            resolver=ConsistencyResolver(analyzer, threshold=10),
            store=AnalysisStore(base_path=tmp_path),
            timeout=1,
        )
        return service, analyzer

    async def test_fresh_analysis_is_recorded(self, tmp_path):
        service, analyzer = self.make_service(tmp_path, [make_record(80, 60, 70, 90, 50)])

        result = await service.analyze(f"{DOMAIN}/about")

        assert result.cached is False
        assert result.score == 69
        assert len(analyzer.calls) == 2
        assert service.store.get_cached(f"{DOMAIN}/about") is not None

    async def test_cache_hit_skips_analysis(self, tmp_path):
        service, analyzer = self.make_service(tmp_path, [make_record(80, 60, 70, 90, 50)])

        await service.analyze(f"{DOMAIN}/about")
        result = await service.analyze(f"{DOMAIN}/about/")

        assert result.cached is True
        assert result.score == 69
        assert len(analyzer.calls) == 2

    async def test_bypass_cache(self, tmp_path):
        service, analyzer = self.make_service(tmp_path, [uniform_record(70)])

        await service.analyze(f"{DOMAIN}/")
        result = await service.analyze(f"{DOMAIN}/", bypass_cache=True)

        assert result.cached is False
        assert len(analyzer.calls) == 4

    async def test_failure_is_classified(self, tmp_path):
        service, _ = self.make_service(tmp_path, [PageFetchError("HTTP 403: Forbidden", 403)])

        with pytest.raises(PageAnalysisError) as exc_info:
            await service.analyze(f"{DOMAIN}/private")

        assert exc_info.value.error_type == PageErrorType.ACCESS_DENIED

    async def test_recorder_failure_keeps_the_analysis(self, tmp_path):
        class ReadOnlyStore(AnalysisStore):
            def record_result(self, url, record, score=None):
                raise OSError("read-only file system")

        service = SinglePageAnalysisService(
            resolver=ConsistencyResolver(FakeAnalyzer([uniform_record(70)]), threshold=10),
            store=ReadOnlyStore(base_path=tmp_path),
            timeout=1,
        )

        result = await service.analyze(f"{DOMAIN}/")

        assert result.score == 70
        assert result.cached is False
