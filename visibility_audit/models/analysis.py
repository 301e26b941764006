"""Score records produced by the page analyzer."""
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


# The five scored categories, in formula order
CATEGORY_FIELDS = (
    "ai_llm_visibility_score",
    "tech_score",
    "content_score",
    "accessibility_score",
    "authority_score",
)


class ScoreRecord(BaseModel):
    """Structured analysis of a single page.

    Only the scores and the narrative are interpreted by the engine; any
    other fields returned by the analyzer (recommendations, red flags,
    page details, ...) are carried along untouched.
    """

    model_config = ConfigDict(extra="allow")

    overall_score: float = Field(..., ge=0, le=100)
    ai_llm_visibility_score: float = Field(..., ge=0, le=100)
    tech_score: float = Field(..., ge=0, le=100)
    content_score: float = Field(..., ge=0, le=100)
    accessibility_score: float = Field(..., ge=0, le=100)
    authority_score: float = Field(..., ge=0, le=100)
    narrative_report: str = ""

    def category_scores(self) -> Dict[str, float]:
        """Return the five category scores keyed by field name."""
        return {name: getattr(self, name) for name in CATEGORY_FIELDS}
