"""Tests for the progress poller and the audit CLI."""
import pytest
from typer.testing import CliRunner

from visibility_audit.cli import audit as audit_cli
from visibility_audit.cli.poller import ProgressPoller, SessionNotFoundError


def snapshot(state="analyzing", done=0, **fields):
    data = {
        "session_id": "20240101_000000_abcd1234",
        "state": state,
        "total_pages": 2,
        "completed_page_count": done,
        "current_step": "Analyzing website",
        "current_step_details": "Scraping content and analyzing with AI (attempt 1/3)",
        "page_results": [],
        "domain_insights": None,
        "error": None,
    }
    data.update(fields)
    return data


COMPLETED = snapshot(
    "completed",
    done=2,
    page_results=[
        {"path": "/", "score": 80, "load_time_ms": 1200, "error": None},
        {"path": "/missing", "score": 0, "error": "Page not found - please check the URL"},
    ],
    domain_insights={
        "average_score": 80,
        "success_rate": 50,
        "best_page": {"path": "/", "score": 80},
        "worst_page": {"path": "/missing", "score": 0},
    },
)


class ScriptedFetcher:
    """Returns scripted snapshots (or raises scripted errors) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    async def __call__(self, session_id):
        self.calls += 1
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.mark.asyncio
class TestProgressPoller:
    """Tests for ProgressPoller."""

    async def test_stops_on_completed(self):
        fetch = ScriptedFetcher(snapshot(), snapshot(done=1), COMPLETED)
        updates = []
        poller = ProgressPoller(fetch, interval=0.001, on_update=updates.append)

        result = await poller.poll("sid")

        assert result["state"] == "completed"
        assert fetch.calls == 3
        assert len(updates) == 3

    async def test_failed_is_terminal(self):
        fetch = ScriptedFetcher(snapshot(), snapshot("failed", error="boom"))
        poller = ProgressPoller(fetch, interval=0.001)

        result = await poller.poll("sid")

        assert result["state"] == "failed"
        assert result["error"] == "boom"

    async def test_tolerates_fetch_errors(self):
        fetch = ScriptedFetcher(ConnectionError("refused"), snapshot(), COMPLETED)
        updates = []
        poller = ProgressPoller(fetch, interval=0.001, on_update=updates.append)

        result = await poller.poll("sid")

        assert result["state"] == "completed"
        assert len(updates) == 2

    async def test_repeated_snapshots_are_harmless(self):
        fetch = ScriptedFetcher(snapshot(), snapshot(), snapshot(), COMPLETED)
        poller = ProgressPoller(fetch, interval=0.001)

        assert (await poller.poll("sid"))["state"] == "completed"
        assert fetch.calls == 4

    async def test_stop_detaches(self):
        poller = None

        def stop_after_first(_):
            poller.stop()

        fetch = ScriptedFetcher(snapshot())
        poller = ProgressPoller(fetch, interval=10, on_update=stop_after_first)

        assert await poller.poll("sid") is None
        assert poller.stopped
        assert fetch.calls == 1

    async def test_unknown_session_propagates(self):
        fetch = ScriptedFetcher(SessionNotFoundError("sid"))
        poller = ProgressPoller(fetch, interval=0.001)

        with pytest.raises(SessionNotFoundError):
            await poller.poll("sid")


class TestRendering:
    """Tests for progress text and the results table."""

    def test_describe_in_progress(self):
        text = audit_cli.describe_progress(snapshot(done=1))
        assert "1/2 pages" in text
        assert "Analyzing website" in text

    def test_describe_terminal_states(self):
        assert "Completed! 2/2" in audit_cli.describe_progress(COMPLETED)
        assert "boom" in audit_cli.describe_progress(snapshot("failed", error="boom"))

    def test_results_table_rows(self):
        table = audit_cli.create_results_table(COMPLETED)
        # Two pages, a spacer and four insight rows
        assert table.row_count == 7

    def test_results_table_without_insights(self):
        table = audit_cli.create_results_table(snapshot())
        assert table.row_count == 0


class TestAuditCommand:
    """Tests for the audit and status commands."""

    def test_audit_completed(self, monkeypatch):
        started = {}

        async def fake_start(domain, page_list, api_url):
            started.update(domain=domain, page_list=page_list)
            return {"session_id": "sid123", "total_pages": len(page_list)}

        async def fake_track(session_id, api_url, poll_interval):
            return COMPLETED

        monkeypatch.setattr(audit_cli, "start_session", fake_start)
        monkeypatch.setattr(audit_cli, "track_session", fake_track)

        result = CliRunner().invoke(audit_cli.app, ["audit", "https://example.com", "/", "/missing"])

        assert result.exit_code == 0
        assert "Session created" in result.output
        assert "sid123" in result.output
        assert started["page_list"] == ["/", "/missing"]

    def test_status_failed_session_exits_nonzero(self, monkeypatch):
        async def fake_track(session_id, api_url, poll_interval):
            return snapshot("failed", error="boom")

        monkeypatch.setattr(audit_cli, "track_session", fake_track)

        result = CliRunner().invoke(audit_cli.app, ["status", "sid123"])

        assert result.exit_code == 1
        assert "Audit Failed" in result.output

    def test_status_unknown_session(self, monkeypatch):
        async def fake_track(session_id, api_url, poll_interval):
            raise SessionNotFoundError(session_id)

        monkeypatch.setattr(audit_cli, "track_session", fake_track)

        result = CliRunner().invoke(audit_cli.app, ["status", "sid123"])

        assert result.exit_code == 1
        assert "not found or expired" in result.output
