"""Services for the application."""
from .analysis_store import AnalysisStore, analysis_store, normalize_url
from .consistency import ConsistencyResolver
from .errors import (
    AnalyzerResponseError,
    InvalidPageListError,
    PageAnalysisError,
    PageFetchError,
    classify_error,
)
from .http_client import HTTPClient
from .insights import compute_domain_insights
from .page_analyzer import LLMPageAnalyzer, PageAnalyzer
from .page_job_runner import PageJobRunner, RetryDecision
from .scoring import round_half_up, score_record, weighted_score
from .session_store import SessionStore, session_store

__all__ = [
    "AnalysisStore",
    "analysis_store",
    "normalize_url",
    "ConsistencyResolver",
    "AnalyzerResponseError",
    "InvalidPageListError",
    "PageAnalysisError",
    "PageFetchError",
    "classify_error",
    "HTTPClient",
    "compute_domain_insights",
    "LLMPageAnalyzer",
    "PageAnalyzer",
    "PageJobRunner",
    "RetryDecision",
    "round_half_up",
    "score_record",
    "weighted_score",
    "SessionStore",
    "session_store",
]
