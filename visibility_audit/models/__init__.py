"""Data models for the application."""
from .analysis import CATEGORY_FIELDS, ScoreRecord
from .requests import AnalysisRequest, MultiPageAnalysisRequest
from .responses import SinglePageAnalysisResponse, StartSessionResponse
from .session import (
    DomainInsights,
    PageErrorType,
    PageResult,
    Session,
    SessionState,
)

__all__ = [
    "CATEGORY_FIELDS",
    "ScoreRecord",
    "AnalysisRequest",
    "MultiPageAnalysisRequest",
    "SinglePageAnalysisResponse",
    "StartSessionResponse",
    "DomainInsights",
    "PageErrorType",
    "PageResult",
    "Session",
    "SessionState",
]
