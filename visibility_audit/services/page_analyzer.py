"""Page analyzers: fetch a page and score its AI/LLM visibility."""
import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError

from ..models import ScoreRecord
from ..utils.logger import logger
from .errors import AnalyzerResponseError
from .http_client import HTTPClient
from .llm_provider import LLMProvider, get_analysis_provider


class PageAnalyzer(ABC):
    """Turns a URL into a score record, or raises."""

    @abstractmethod
    async def analyze(self, url: str) -> ScoreRecord:
        """Analyze one page.

        Args:
            url: Page URL

        Returns:
            Structured score record
        """


class LLMPageAnalyzer(PageAnalyzer):
    """Fetches a page, reduces it to text and asks an LLM to score it."""

    SYSTEM_PROMPT = (
        "You are an expert in how AI assistants and large language models "
        "discover, understand and cite web content. You answer with JSON only."
    )

    # Keep prompts well inside model context limits
    MAX_TEXT_LENGTH = 12000

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the analyzer.

        Args:
            provider: LLM provider. Built from settings on first use if omitted
            timeout: Fetch timeout in seconds
            transport: Optional httpx transport for page fetches
        """
        self._provider = provider
        self.timeout = timeout
        self.transport = transport

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_analysis_provider()
        return self._provider

    async def analyze(self, url: str) -> ScoreRecord:
        async with HTTPClient(timeout=self.timeout, transport=self.transport) as client:
            html = await client.fetch_url(url)

        page = self._summarize_html(url, html)
        prompt = self._build_prompt(page)

        logger.info(f"Scoring {url} with {self.provider.get_name()}")
        response_text = await asyncio.to_thread(
            self.provider.complete, prompt, self.SYSTEM_PROMPT
        )
        return self._parse_record(response_text)

    def _summarize_html(self, url: str, html: str) -> Dict[str, Any]:
        """Extract the signals the prompt needs from raw HTML."""
        soup = BeautifulSoup(html, "html.parser")

        json_ld = soup.find_all("script", attrs={"type": "application/ld+json"})
        description = soup.find("meta", attrs={"name": "description"})
        og_tags = sorted(
            tag.get("property")
            for tag in soup.find_all("meta")
            if (tag.get("property") or "").startswith("og:")
        )
        title = soup.title.get_text(strip=True) if soup.title else ""

        for tag in soup(["script", "style", "noscript", "svg"]):
            tag.decompose()
        text = " ".join(soup.get_text(separator=" ").split())

        return {
            "url": url,
            "title": title,
            "meta_description": description.get("content", "") if description else "",
            "json_ld_blocks": len(json_ld),
            "open_graph": og_tags,
            "headings": [h.get_text(strip=True) for h in soup.find_all(["h1", "h2"])][:20],
            "text": text[: self.MAX_TEXT_LENGTH],
        }

    def _build_prompt(self, page: Dict[str, Any]) -> str:
        return f"""Analyze this web page for visibility to AI assistants and LLM-based search.

Page data:
{json.dumps(page, indent=2)}

Score each category from 0 to 100:
- ai_llm_visibility_score: how easily LLMs can find, parse and cite the page
- tech_score: technical SEO (HTTPS, metadata, structured data, crawlability)
- content_score: depth, clarity and answerability of the content
- accessibility_score: semantic structure and readability
- authority_score: authorship, credentials, trust and contact signals

overall_score = ai_llm_visibility_score*0.25 + tech_score*0.20 + content_score*0.25
              + accessibility_score*0.10 + authority_score*0.20

Return ONLY a JSON object with this structure:
{{
  "overall_score": 0,
  "ai_llm_visibility_score": 0,
  "tech_score": 0,
  "content_score": 0,
  "accessibility_score": 0,
  "authority_score": 0,
  "recommendations": {{"high": [{{"title": "", "description": ""}}], "medium": [], "low": []}},
  "red_flags": [{{"title": "", "description": "", "severity": "high"}}],
  "narrative_report": "A few paragraphs explaining the scores"
}}"""

    def _parse_record(self, response_text: str) -> ScoreRecord:
        """Extract and validate the score record from the model's reply."""
        start_idx = response_text.find("{")
        end_idx = response_text.rfind("}") + 1
        if start_idx == -1 or end_idx == 0:
            raise AnalyzerResponseError("AI response did not contain a JSON object")

        try:
            data = json.loads(response_text[start_idx:end_idx])
            return ScoreRecord.model_validate(data)
        except json.JSONDecodeError as e:
            raise AnalyzerResponseError(f"AI response was not valid JSON: {e}") from e
        except ValidationError as e:
            logger.warning(f"Analyzer returned an incomplete score record: {e}")
            raise AnalyzerResponseError("AI response was missing required scores") from e
