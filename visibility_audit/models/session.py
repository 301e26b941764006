"""Session-related data models."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from .analysis import ScoreRecord


class SessionState(str, Enum):
    """Multi-page session state."""

    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionState.ANALYZING


class PageErrorType(str, Enum):
    """Classification of a page that could not be analyzed."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    QUOTA = "quota"
    OTHER = "other"


class PageResult(BaseModel):
    """Outcome for one page of a session.

    Exactly one branch is populated: ``analysis`` + ``load_time_ms`` on
    success, ``error`` + ``error_type`` on failure (with ``score == 0``).
    """

    url: str
    path: str
    score: int = 0
    analysis: Optional[ScoreRecord] = None
    load_time_ms: Optional[int] = None
    error: Optional[str] = None
    error_type: Optional[PageErrorType] = None
    cached: bool = False

    @property
    def succeeded(self) -> bool:
        return self.analysis is not None


class DomainInsights(BaseModel):
    """Aggregate statistics over all page results of a session."""

    total_pages: int
    completed_pages: int
    average_score: int
    best_page: PageResult
    worst_page: PageResult
    success_rate: int
    category_averages: Dict[str, int] = Field(default_factory=dict)


class Session(BaseModel):
    """A multi-page audit run and its live progress."""

    session_id: str
    domain: str
    page_list: List[str]
    page_urls: List[str]
    state: SessionState = SessionState.ANALYZING
    current_page_index: int = 0
    completed_page_count: int = 0
    page_results: List[PageResult] = Field(default_factory=list)
    current_step: Optional[str] = None
    current_step_details: Optional[str] = None
    current_page_url: Optional[str] = None
    started_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    domain_insights: Optional[DomainInsights] = None
    error: Optional[str] = None

    @computed_field
    @property
    def total_pages(self) -> int:
        return len(self.page_list)
