"""Orchestrator for multi-page domain analysis sessions."""
import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from ..config import settings
from ..models import PageResult, Session, SessionState
from ..services import (
    ConsistencyResolver,
    InvalidPageListError,
    LLMPageAnalyzer,
    PageJobRunner,
    SessionStore,
    analysis_store,
    compute_domain_insights,
    session_store,
)
from ..utils.logger import logger


def build_page_urls(domain: str, page_list: List[str]) -> List[str]:
    """Join the domain with each page path.

    Args:
        domain: Root URL, with or without a trailing slash
        page_list: Paths, with or without a leading slash

    Returns:
        Full URLs in page-list order
    """
    root = domain.rstrip("/")
    return [f"{root}{path if path.startswith('/') else '/' + path}" for path in page_list]


class OrchestratorAgent:
    """Owns the lifecycle of multi-page analysis sessions.

    ``start_session`` registers a session and spawns its run as a detached
    asyncio task, returning the session ID before any page is analyzed.
    The run walks the page list sequentially, publishing progress to the
    session store after every step. Page failures become failing page
    results; only a fault in the orchestration itself fails the session.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        page_runner: Optional[PageJobRunner] = None,
        max_pages: Optional[int] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Session store instance. Defaults to the global session_store
            page_runner: Per-page runner. Defaults to a double-check LLM runner
                that records results in the global analysis_store
            max_pages: Page count cap. Defaults to settings.max_pages
        """
        self.store = store if store is not None else session_store
        self.page_runner = page_runner or PageJobRunner(
            ConsistencyResolver(LLMPageAnalyzer()), recorder=analysis_store
        )
        self.max_pages = settings.max_pages if max_pages is None else max_pages
        # Strong references keep detached runs from being garbage-collected
        self._tasks: Dict[str, asyncio.Task] = {}

    def validate_page_list(self, page_list: List[str]) -> None:
        """Reject empty or over-long page lists.

        Raises:
            InvalidPageListError: if the list is empty or exceeds max_pages
        """
        if not page_list:
            raise InvalidPageListError("At least one page is required")
        if len(page_list) > self.max_pages:
            raise InvalidPageListError(f"Maximum {self.max_pages} pages allowed")

    async def start_session(self, domain: str, page_list: List[str]) -> str:
        """Create a session and start analyzing it in the background.

        Args:
            domain: Root site to audit
            page_list: Ordered page paths

        Returns:
            Session ID, available for polling immediately
        """
        self.validate_page_list(page_list)

        page_urls = build_page_urls(domain, page_list)
        session = await self.store.create(domain, page_list, page_urls)

        logger.info(
            f"Starting multi-page analysis {session.session_id} for {domain} "
            f"with {len(page_urls)} pages"
        )

        task = asyncio.create_task(self.run_session(session))
        self._tasks[session.session_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(session.session_id, None))

        return session.session_id

    def get_snapshot(self, session_id: str) -> Optional[Session]:
        """Read the current state of a session.

        Args:
            session_id: The session identifier

        Returns:
            Session snapshot or None if not found
        """
        return self.store.get_snapshot(session_id)

    def get_task(self, session_id: str) -> Optional[asyncio.Task]:
        """Get the running task of a session, if it is still running."""
        return self._tasks.get(session_id)

    async def run_session(self, session: Session) -> None:
        """Analyze every page of a session and attach domain insights.

        Args:
            session: Live session owned by this run
        """
        total = session.total_pages

        def on_progress(step: str, details: str, url: str) -> None:
            self.store.publish(
                session, current_step=step, current_step_details=details, current_page_url=url
            )

        try:
            results: List[PageResult] = []
            for index, (path, url) in enumerate(zip(session.page_list, session.page_urls)):
                self.store.publish(
                    session,
                    current_page_index=index,
                    current_page_url=url,
                    current_step="Starting analysis",
                    current_step_details=f"Beginning analysis of page {index + 1}/{total}",
                )
                logger.info(f"Analyzing page {index + 1}/{total}: {url}")

                result = await self.page_runner.run(url, path, progress=on_progress)
                results.append(result)

                self.store.publish(
                    session,
                    page_results=list(results),
                    completed_page_count=len(results),
                )

            insights = compute_domain_insights(results)
            self.store.publish(
                session,
                state=SessionState.COMPLETED,
                domain_insights=insights,
                current_step="Analysis complete",
                current_step_details=(
                    f"Analyzed {insights.completed_pages}/{total} pages successfully"
                ),
                completed_at=datetime.now(),
            )
            logger.info(
                f"Multi-page analysis {session.session_id} completed: "
                f"{insights.completed_pages}/{total} pages, average score: {insights.average_score}"
            )

        except Exception as e:
            logger.exception(f"Multi-page analysis {session.session_id} failed: {e}")
            self.store.publish(
                session,
                state=SessionState.FAILED,
                error=str(e) or "Unknown error",
                completed_at=datetime.now(),
            )


# Global orchestrator instance
orchestrator = OrchestratorAgent()
