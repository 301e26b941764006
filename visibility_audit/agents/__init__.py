"""Agents for the application."""
from .orchestrator import OrchestratorAgent, build_page_urls, orchestrator
from .single_page import SinglePageAnalysisService, single_page_service

__all__ = [
    "OrchestratorAgent",
    "build_page_urls",
    "orchestrator",
    "SinglePageAnalysisService",
    "single_page_service",
]
