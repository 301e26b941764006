"""Double-check analysis: run the analyzer twice and reconcile the scores."""
import asyncio
from typing import Dict, Optional

from ..config import settings
from ..models import CATEGORY_FIELDS, ScoreRecord
from ..utils.logger import logger
from .page_analyzer import PageAnalyzer
from .scoring import round_half_up


COMPARED_FIELDS = ("overall_score",) + CATEGORY_FIELDS

# Categories drifting more than this are itemized in the variance log
REPORTED_VARIANCE = 8


class ConsistencyResolver:
    """Runs two independent analyses of the same page and resolves variance.

    When the two runs agree within the threshold the first run is returned
    as is. Otherwise every score is replaced by the mean of both runs and
    the longer narrative report is kept.
    """

    def __init__(self, analyzer: PageAnalyzer, threshold: Optional[float] = None):
        """Initialize the resolver.

        Args:
            analyzer: Underlying page analyzer
            threshold: Maximum tolerated score difference. Defaults to
                settings.variance_threshold
        """
        self.analyzer = analyzer
        self.threshold = settings.variance_threshold if threshold is None else threshold

    async def analyze(self, url: str) -> ScoreRecord:
        """Analyze a page twice in parallel and return one trustworthy record.

        Args:
            url: Page URL

        Returns:
            Resolved score record

        Raises:
            The first analyzer error; the other run is cancelled
        """
        logger.info(f"Starting double-check analysis for {url}")
        runs = [asyncio.create_task(self.analyzer.analyze(url)) for _ in range(2)]
        try:
            first, second = await asyncio.gather(*runs)
        except BaseException:
            # A failed run fails the attempt; do not leave its sibling in flight
            for run in runs:
                run.cancel()
            raise
        return self.resolve(first, second, url=url)

    def resolve(self, first: ScoreRecord, second: ScoreRecord, url: str = "") -> ScoreRecord:
        """Reconcile two analyses of the same page."""
        differences = score_differences(first, second)
        max_variance = max(differences.values())

        if max_variance <= self.threshold:
            logger.info(
                f"Score consistency verified for {url} - max variance: {max_variance:.1f} points"
            )
            return first

        logger.warning(
            f"Score variance detected for {url} - max variance: {max_variance:.1f} points"
        )
        for field, variance in differences.items():
            if variance > REPORTED_VARIANCE:
                logger.warning(f"  {field}: {variance:.1f} point variance")

        resolved = {
            field: round_half_up((getattr(first, field) + getattr(second, field)) / 2)
            for field in COMPARED_FIELDS
        }
        if len(second.narrative_report) > len(first.narrative_report):
            resolved["narrative_report"] = second.narrative_report

        logger.info(f"Using mediated scores to resolve variance for {url}")
        return first.model_copy(update=resolved)


def score_differences(first: ScoreRecord, second: ScoreRecord) -> Dict[str, float]:
    """Absolute per-field score differences between two records."""
    return {
        field: abs(getattr(first, field) - getattr(second, field))
        for field in COMPARED_FIELDS
    }
