"""Weighted scoring shared by the single-page and multi-page paths."""
import math
from typing import Dict

from ..models import ScoreRecord


# Category weights; they sum to 1.0
SCORE_WEIGHTS: Dict[str, float] = {
    "ai_llm_visibility_score": 0.25,
    "tech_score": 0.20,
    "content_score": 0.25,
    "accessibility_score": 0.10,
    "authority_score": 0.20,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up.

    Python's built-in ``round`` rounds half to even (``round(68.5) == 68``),
    which would make scores depend on parity. Every score in the system goes
    through this function instead.

    Args:
        value: Number to round

    Returns:
        Rounded integer
    """
    return int(math.floor(value + 0.5))


def weighted_score(
    visibility: float,
    technical: float,
    content: float,
    accessibility: float,
    authority: float,
) -> int:
    """Combine the five category sub-scores into one 0-100 score.

    Args:
        visibility: AI/LLM visibility score
        technical: Technical score
        content: Content score
        accessibility: Accessibility score
        authority: Authority & trust score

    Returns:
        Weighted overall score
    """
    total = (
        visibility * SCORE_WEIGHTS["ai_llm_visibility_score"]
        + technical * SCORE_WEIGHTS["tech_score"]
        + content * SCORE_WEIGHTS["content_score"]
        + accessibility * SCORE_WEIGHTS["accessibility_score"]
        + authority * SCORE_WEIGHTS["authority_score"]
    )
    return round_half_up(total)


def score_record(record: ScoreRecord) -> int:
    """Compute the weighted overall score of an analyzer record."""
    return weighted_score(
        record.ai_llm_visibility_score,
        record.tech_score,
        record.content_score,
        record.accessibility_score,
        record.authority_score,
    )
