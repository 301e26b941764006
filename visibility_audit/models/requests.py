"""Request models for API endpoints."""
from typing import List

from pydantic import BaseModel, Field, HttpUrl


class MultiPageAnalysisRequest(BaseModel):
    """Request model for starting a multi-page analysis."""

    domain: HttpUrl = Field(..., description="Root URL of the site to audit")
    page_list: List[str] = Field(
        ...,
        description="Ordered list of page paths to analyze (e.g. '/', '/about')",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "domain": "https://example.com",
                "page_list": ["/", "/about", "/pricing"],
            }
        }


class AnalysisRequest(BaseModel):
    """Request model for a single-page analysis."""

    url: HttpUrl = Field(..., description="URL to analyze")
    bypass_cache: bool = Field(
        default=False,
        description="Ignore a cached result younger than the cache TTL",
    )

    class Config:
        json_schema_extra = {
            "example": {"url": "https://example.com/about", "bypass_cache": False}
        }
