"""Client-side polling of multi-page analysis sessions."""
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from ..config import settings
from ..utils.logger import logger


Snapshot = Dict[str, Any]
TERMINAL_STATES = frozenset({"completed", "failed"})


class SessionNotFoundError(Exception):
    """The server does not know the session (never existed or swept)."""


class ProgressPoller:
    """Repeatedly fetches a session snapshot until it reaches a terminal state.

    Fetch errors and repeated snapshots are tolerated; reads are idempotent.
    ``stop()`` only detaches the poller. The analysis keeps running on the
    server and can be picked up again later with the same session ID.
    """

    def __init__(
        self,
        fetch_snapshot: Callable[[str], Awaitable[Snapshot]],
        interval: Optional[float] = None,
        on_update: Optional[Callable[[Snapshot], None]] = None,
    ):
        """Initialize the poller.

        Args:
            fetch_snapshot: Coroutine returning the snapshot for a session ID
            interval: Seconds between polls. Defaults to settings.poll_interval
            on_update: Optional callback invoked with every snapshot received
        """
        self.fetch_snapshot = fetch_snapshot
        self.interval = settings.poll_interval if interval is None else interval
        self.on_update = on_update
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Stop polling; the server-side run is not affected."""
        self._stop_event.set()

    async def poll(self, session_id: str) -> Optional[Snapshot]:
        """Poll until the session completes or fails, or until stopped.

        Args:
            session_id: Session to follow

        Returns:
            The terminal snapshot, or None if the poller was stopped first

        Raises:
            SessionNotFoundError: if the server does not know the session
        """
        while not self.stopped:
            try:
                snapshot = await self.fetch_snapshot(session_id)
            except SessionNotFoundError:
                raise
            except Exception as e:
                logger.warning(f"Poll for session {session_id} failed: {e}")
                snapshot = None

            if snapshot is not None:
                if self.on_update:
                    self.on_update(snapshot)
                if snapshot.get("state") in TERMINAL_STATES:
                    return snapshot

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        return None


async def start_session(domain: str, page_list: List[str], api_url: str) -> Dict[str, Any]:
    """Start a multi-page analysis on the server.

    Returns:
        Start response with ``session_id`` and ``total_pages``
    """
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{api_url}/api/analyze-multi-page",
            json={"domain": domain, "page_list": page_list},
        )
        response.raise_for_status()
        return response.json()


def http_snapshot_fetcher(api_url: str) -> Callable[[str], Awaitable[Snapshot]]:
    """Build a fetch_snapshot coroutine function that reads from the API."""

    async def fetch(session_id: str) -> Snapshot:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(f"{api_url}/api/analyze-multi-page/{session_id}")
            if response.status_code == 404:
                raise SessionNotFoundError(session_id)
            response.raise_for_status()
            return response.json()

    return fetch
