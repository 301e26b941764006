"""Single-page analysis with a result cache."""
import asyncio
import time
from typing import Optional

from ..config import settings
from ..models import SinglePageAnalysisResponse
from ..services import (
    AnalysisStore,
    ConsistencyResolver,
    LLMPageAnalyzer,
    PageAnalysisError,
    analysis_store,
    classify_error,
    score_record,
)
from ..utils.logger import logger


class SinglePageAnalysisService:
    """Analyzes one URL on request, reusing results younger than the cache TTL.

    Scores are computed with the same weighted formula as multi-page runs,
    so a page scores identically in both modes.
    """

    def __init__(
        self,
        resolver: Optional[ConsistencyResolver] = None,
        store: Optional[AnalysisStore] = None,
        timeout: Optional[float] = None,
    ):
        if resolver is None:
            resolver = ConsistencyResolver(LLMPageAnalyzer())
        self.resolver = resolver
        self.store = store if store is not None else analysis_store
        self.timeout = settings.single_page_timeout if timeout is None else timeout

    async def analyze(self, url: str, bypass_cache: bool = False) -> SinglePageAnalysisResponse:
        """Analyze a page, or serve it from cache.

        Args:
            url: Page URL
            bypass_cache: Skip the cache lookup and always analyze afresh

        Returns:
            Single-page analysis response

        Raises:
            PageAnalysisError: if the analysis failed or timed out
        """
        if not bypass_cache:
            cached = self.store.get_cached(url)
            if cached is not None:
                logger.info(f"Using cached analysis for: {url}")
                return SinglePageAnalysisResponse(
                    url=url, analysis=cached, score=score_record(cached), cached=True
                )

        logger.info(f"Creating fresh analysis for: {url} (bypass_cache: {bypass_cache})")
        start = time.monotonic()
        try:
            record = await asyncio.wait_for(self.resolver.analyze(url), timeout=self.timeout)
        except Exception as e:
            error_type, message = classify_error(e)
            logger.error(f"Analysis failed for {url}: {e!r}")
            raise PageAnalysisError(error_type, message) from e

        load_time_ms = int((time.monotonic() - start) * 1000)
        score = score_record(record)
        try:
            self.store.record_result(url, record, score)
        except Exception as e:
            logger.warning(f"Could not record analysis for {url}: {e}")

        return SinglePageAnalysisResponse(
            url=url, analysis=record, score=score, load_time_ms=load_time_ms, cached=False
        )


# Global single-page service instance
single_page_service = SinglePageAnalysisService()
