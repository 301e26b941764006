"""Response models for API endpoints."""
from typing import Optional

from pydantic import BaseModel, Field

from .analysis import ScoreRecord


class StartSessionResponse(BaseModel):
    """Response model for the multi-page start endpoint."""

    session_id: str = Field(..., description="Unique session identifier")
    total_pages: int = Field(..., description="Number of pages that will be analyzed")
    status: str = Field(default="started")
    message: str = Field(..., description="Human-readable message")

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "20231108_140530_abc12345",
                "total_pages": 3,
                "status": "started",
                "message": "Multi-page analysis started successfully",
            }
        }


class SinglePageAnalysisResponse(BaseModel):
    """Response model for a single-page analysis."""

    url: str
    analysis: ScoreRecord
    score: int
    load_time_ms: Optional[int] = None
    cached: bool = False
