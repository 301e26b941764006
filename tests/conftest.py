"""Shared fixtures and fakes for the test suite."""
import asyncio
import os
import tempfile
from typing import Dict, List, Optional, Union

# Keep analysis records out of the working tree
os.environ.setdefault("STORAGE_BASE_PATH", tempfile.mkdtemp(prefix="visibility-audit-"))

import pytest

from visibility_audit.models import ScoreRecord
from visibility_audit.services.page_analyzer import PageAnalyzer


HANG = "hang"

Outcome = Union[ScoreRecord, Exception, str]


def make_record(
    visibility: float = 80,
    technical: float = 60,
    content: float = 70,
    accessibility: float = 90,
    authority: float = 50,
    overall: Optional[float] = None,
    narrative: str = "",
    **extra,
) -> ScoreRecord:
    """Build a score record; overall defaults to the mean of the categories."""
    if overall is None:
        overall = (visibility + technical + content + accessibility + authority) / 5
    return ScoreRecord(
        overall_score=overall,
        ai_llm_visibility_score=visibility,
        tech_score=technical,
        content_score=content,
        accessibility_score=accessibility,
        authority_score=authority,
        narrative_report=narrative,
        **extra,
    )


def uniform_record(score: float, narrative: str = "", **extra) -> ScoreRecord:
    """Record whose overall and category scores all equal ``score``."""
    return make_record(score, score, score, score, score, overall=score, narrative=narrative, **extra)


async def _play(outcome: Outcome) -> ScoreRecord:
    if isinstance(outcome, Exception):
        raise outcome
    if outcome == HANG:
        await asyncio.sleep(10)
    return outcome


class FakeAnalyzer(PageAnalyzer):
    """Analyzer replaying a scripted sequence of outcomes."""

    def __init__(self, outcomes: List[Outcome]):
        self.outcomes = list(outcomes)
        self.calls: List[str] = []

    async def analyze(self, url: str) -> ScoreRecord:
        self.calls.append(url)
        return await _play(self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0])


class FakeResolver:
    """Stands in for ConsistencyResolver with per-URL scripted outcomes.

    The last outcome of a URL repeats once the script is exhausted. When a
    ``gate`` event is given, every call waits for it first.
    """

    def __init__(self, outcomes: Dict[str, List[Outcome]], gate: Optional[asyncio.Event] = None):
        self.outcomes = {url: list(items) for url, items in outcomes.items()}
        self.gate = gate
        self.calls: List[str] = []

    async def analyze(self, url: str) -> ScoreRecord:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        script = self.outcomes[url]
        return await _play(script.pop(0) if len(script) > 1 else script[0])


class RecordingRecorder:
    """Persistence collaborator that remembers what it was given."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.recorded = []

    def record_result(self, url, record, score=None):
        if self.fail:
            raise OSError("disk full")
        self.recorded.append((url, record, score))


@pytest.fixture
def recorder():
    return RecordingRecorder()
