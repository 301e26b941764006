"""Domain-wide aggregation of page results."""
from typing import List

from ..models import CATEGORY_FIELDS, DomainInsights, PageResult
from .scoring import round_half_up


def compute_domain_insights(results: List[PageResult]) -> DomainInsights:
    """Aggregate the page results of a completed session.

    Failed pages are excluded from the averages but take part in the best
    and worst page selection with their score of 0, so a page that could not
    be analyzed surfaces as the worst page. Ties go to the earliest page.

    Args:
        results: Page results in page-list order (must not be empty)

    Returns:
        Domain insights
    """
    if not results:
        raise ValueError("Cannot compute insights without page results")

    successes = [result for result in results if result.succeeded]
    completed = len(successes)

    average_score = (
        round_half_up(sum(result.score for result in successes) / completed)
        if completed
        else 0
    )

    best_page = results[0]
    worst_page = results[0]
    for result in results[1:]:
        if result.score > best_page.score:
            best_page = result
        if result.score < worst_page.score:
            worst_page = result

    page_categories = [result.analysis.category_scores() for result in successes]
    category_averages = {
        field: (
            round_half_up(sum(scores[field] for scores in page_categories) / completed)
            if completed
            else 0
        )
        for field in CATEGORY_FIELDS
    }

    return DomainInsights(
        total_pages=len(results),
        completed_pages=completed,
        average_score=average_score,
        best_page=best_page,
        worst_page=worst_page,
        success_rate=round_half_up(completed / len(results) * 100),
        category_averages=category_averages,
    )
