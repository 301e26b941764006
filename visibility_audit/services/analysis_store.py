"""File-system store for analysis results and the single-page cache."""
import hashlib
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse, urlunparse

from ..config import settings
from ..models import ScoreRecord
from ..utils.logger import logger


def normalize_url(url: str) -> str:
    """Normalize a URL so equivalent spellings share one record.

    - Lowercase scheme and domain
    - Remove trailing slashes and fragments
    - Keep query params (they might be significant)
    """
    if not url:
        return ""

    parsed = urlparse(url)
    path = parsed.path.rstrip("/") or "/"

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        parsed.query,
        "",
    ))


class AnalysisStore:
    """Keeps the latest analysis of every URL as a JSON file.

    Records written here serve two purposes: they are the durable output of
    every successful page analysis, and they back the single-page cache.
    Multi-page runs only ever write.
    """

    def __init__(self, base_path: Optional[Path] = None):
        """Initialize the analysis store.

        Args:
            base_path: Base directory for storage. Defaults to settings.storage_path
        """
        self.base_path = (base_path or settings.storage_path) / "analyses"
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _record_path(self, url: str) -> Path:
        digest = hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()[:32]
        return self.base_path / f"{digest}.json"

    def record_result(self, url: str, record: ScoreRecord, score: Optional[int] = None) -> Path:
        """Persist a successful analysis.

        Args:
            url: Analyzed URL
            record: Score record returned by the analyzer
            score: Weighted overall score

        Returns:
            Path to the saved file
        """
        file_path = self._record_path(url)
        payload = {
            "url": normalize_url(url),
            "recorded_at": datetime.now().isoformat(),
            "score": score,
            "record": record.model_dump(mode="json"),
        }

        # Readers must never see a partially written file
        tmp_path = file_path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        tmp_path.replace(file_path)

        logger.info(f"Recorded analysis for {url} (score: {score})")
        return file_path

    def load_result(self, url: str) -> Optional[Dict[str, Any]]:
        """Load the raw stored entry for a URL, or None if never analyzed."""
        file_path = self._record_path(url)
        if not file_path.exists():
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_cached(self, url: str, max_age_hours: Optional[int] = None) -> Optional[ScoreRecord]:
        """Return the stored record for a URL if it is younger than the TTL.

        Args:
            url: URL to look up
            max_age_hours: Cache TTL. Defaults to settings.cache_ttl_hours

        Returns:
            Cached score record or None
        """
        try:
            entry = self.load_result(url)
            if not entry:
                return None
            recorded_at = datetime.fromisoformat(entry["recorded_at"])
            record = ScoreRecord.model_validate(entry["record"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable cached analysis for {url}: {e}")
            return None

        ttl = timedelta(hours=max_age_hours if max_age_hours is not None else settings.cache_ttl_hours)
        if datetime.now() - recorded_at >= ttl:
            return None

        return record


# Global analysis store instance
analysis_store = AnalysisStore()
