"""LLM visibility audit: multi-page analysis orchestration."""
from .config import settings
from .models import (
    DomainInsights,
    PageResult,
    ScoreRecord,
    Session,
    SessionState,
)
from .services import (
    ConsistencyResolver,
    PageJobRunner,
    SessionStore,
    session_store,
)
from .agents import OrchestratorAgent, orchestrator

__all__ = [
    "settings",
    "DomainInsights",
    "PageResult",
    "ScoreRecord",
    "Session",
    "SessionState",
    "ConsistencyResolver",
    "PageJobRunner",
    "SessionStore",
    "session_store",
    "OrchestratorAgent",
    "orchestrator",
]
