"""Per-page retry envelope for multi-page analysis."""
import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, Tuple

from ..config import settings
from ..models import PageErrorType, PageResult, ScoreRecord
from ..utils.logger import logger
from .consistency import ConsistencyResolver
from .errors import NON_TRANSIENT_ERRORS, classify_error
from .scoring import score_record


ProgressCallback = Callable[[str, str, str], None]


class ResultRecorder(Protocol):
    """Persistence collaborator invoked once per successfully analyzed page."""

    def record_result(self, url: str, record: ScoreRecord, score: Optional[int] = None): ...


class RetryDecision(str, Enum):
    """What happens after an attempt has been classified."""

    SUCCEED = "succeed"
    RETRY = "retry"
    EXHAUST = "exhaust"


class PageJobRunner:
    """Analyzes one page and always resolves to a PageResult.

    Each attempt runs the double-check analysis under a hard deadline. A
    failed attempt is classified; transient failures are retried after a
    linearly growing delay, everything else (or running out of attempts)
    produces a failing PageResult. Nothing raised by the analyzer escapes.
    """

    def __init__(
        self,
        resolver: ConsistencyResolver,
        recorder: Optional[ResultRecorder] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        attempt_timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the runner.

        Args:
            resolver: Double-check resolver used for each attempt
            recorder: Optional persistence collaborator for successful results
            max_retries: Additional attempts after the first. Defaults to settings.max_retries
            retry_base_delay: Backoff unit in seconds. Defaults to settings.retry_base_delay
            attempt_timeout: Per-attempt deadline in seconds. Defaults to
                settings.page_attempt_timeout
            sleep: Coroutine used to wait between attempts
        """
        self.resolver = resolver
        self.recorder = recorder
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_base_delay = (
            settings.retry_base_delay if retry_base_delay is None else retry_base_delay
        )
        self.attempt_timeout = (
            settings.page_attempt_timeout if attempt_timeout is None else attempt_timeout
        )
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def retry_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        return attempt * self.retry_base_delay

    async def run(
        self, url: str, path: str, progress: Optional[ProgressCallback] = None
    ) -> PageResult:
        """Analyze a page with retries.

        Args:
            url: Full page URL
            path: Page path as requested
            progress: Optional callback(step, details, url) for progress updates

        Returns:
            Successful or failing PageResult
        """
        self._publish(progress, "Preparing analysis", f"Creating analysis record for {url}", url)

        attempt = 1
        while True:
            self._publish(
                progress,
                "Analyzing website",
                f"Scraping content and analyzing with AI (attempt {attempt}/{self.max_attempts})",
                url,
            )
            record, error, elapsed_ms = await self._attempt(url)

            error_type, message = None, None
            if error is not None:
                error_type, message = classify_error(error)
                logger.warning(f"Analysis attempt {attempt} failed for {url}: {error!r}")

            decision = self._decide(attempt, error_type)

            if decision is RetryDecision.SUCCEED:
                return self._succeed(url, path, record, elapsed_ms, progress)

            if decision is RetryDecision.EXHAUST:
                logger.error(f"Failed to analyze {url}: {message}")
                return PageResult(
                    url=url, path=path, error=message, error_type=error_type, score=0
                )

            delay = self.retry_delay(attempt)
            logger.info(
                f"Retrying analysis for {url} (attempt {attempt + 1}/{self.max_attempts}) in {delay:g}s"
            )
            await self._sleep(delay)
            attempt += 1

    async def _attempt(
        self, url: str
    ) -> Tuple[Optional[ScoreRecord], Optional[Exception], Optional[int]]:
        """Run one deadline-bounded attempt.

        Returns:
            Tuple of (record, error, elapsed_ms); exactly one of record/error is set
        """
        start = time.monotonic()
        try:
            record = await asyncio.wait_for(
                self.resolver.analyze(url), timeout=self.attempt_timeout
            )
        except Exception as e:
            return None, e, None
        return record, None, int((time.monotonic() - start) * 1000)

    def _decide(self, attempt: int, error_type: Optional[PageErrorType]) -> RetryDecision:
        if error_type is None:
            return RetryDecision.SUCCEED
        if error_type in NON_TRANSIENT_ERRORS:
            return RetryDecision.EXHAUST
        if attempt >= self.max_attempts:
            return RetryDecision.EXHAUST
        return RetryDecision.RETRY

    def _succeed(
        self,
        url: str,
        path: str,
        record: ScoreRecord,
        elapsed_ms: int,
        progress: Optional[ProgressCallback],
    ) -> PageResult:
        score = score_record(record)
        self._publish(progress, "Finalizing results", f"Saving analysis results (Score: {score})", url)

        if self.recorder is not None:
            try:
                self.recorder.record_result(url, record, score)
            except Exception as e:
                logger.warning(f"Could not record analysis for {url}: {e}")

        logger.info(f"Completed analysis of {url} (Score: {score})")
        return PageResult(
            url=url,
            path=path,
            analysis=record,
            score=score,
            load_time_ms=elapsed_ms,
            cached=False,
        )

    def _publish(
        self, progress: Optional[ProgressCallback], step: str, details: str, url: str
    ) -> None:
        if progress:
            try:
                progress(step, details, url)
            except Exception as e:
                # A broken progress sink must not fail the page
                logger.debug(f"Progress callback failed: {e}")
