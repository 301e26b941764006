"""Page-level error types and classification."""
import asyncio
import re
from typing import Optional, Tuple

import httpx

from ..models import PageErrorType


ERROR_MESSAGES = {
    PageErrorType.TIMEOUT: "Analysis timed out - website may be slow to respond",
    PageErrorType.NETWORK: (
        "Network connection issue - please check your internet connection "
        "and try again with fewer pages"
    ),
    PageErrorType.ACCESS_DENIED: "Access denied - website may be blocking automated requests",
    PageErrorType.NOT_FOUND: "Page not found - please check the URL",
    PageErrorType.QUOTA: "Service quota exceeded - please try again later",
}

# Retrying these cannot change the outcome
NON_TRANSIENT_ERRORS = frozenset({PageErrorType.ACCESS_DENIED, PageErrorType.NOT_FOUND})

_STATUS_TYPES = {
    401: PageErrorType.ACCESS_DENIED,
    403: PageErrorType.ACCESS_DENIED,
    404: PageErrorType.NOT_FOUND,
    410: PageErrorType.NOT_FOUND,
    429: PageErrorType.QUOTA,
}

_KEYWORDS = (
    (PageErrorType.TIMEOUT, ("timeout", "timed out", "aborted")),
    (
        PageErrorType.NETWORK,
        ("network", "fetch", "connection", "econnrefused", "enotfound"),
    ),
    (PageErrorType.ACCESS_DENIED, ("403", "forbidden")),
    (PageErrorType.NOT_FOUND, ("404", "not found")),
    (PageErrorType.QUOTA, ("quota", "limit")),
)


class PageAnalysisError(Exception):
    """A page could not be analyzed; carries its classification."""

    def __init__(self, error_type: PageErrorType, message: str):
        super().__init__(message)
        self.error_type = error_type
        self.message = message


class PageFetchError(Exception):
    """Fetching the page content failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AnalyzerResponseError(Exception):
    """The AI model returned something that is not a usable score record."""


class InvalidPageListError(ValueError):
    """A multi-page request has no pages or too many."""


def classify_error(error: BaseException) -> Tuple[PageErrorType, str]:
    """Map an exception to the page error taxonomy.

    Exception types are checked first, then the message is searched for
    well-known keywords.

    Args:
        error: The terminal exception of a page analysis

    Returns:
        Tuple of (error_type, user-facing message)
    """
    if isinstance(error, PageAnalysisError):
        return error.error_type, error.message

    error_type = _classify_by_type(error)
    if error_type is None:
        error_type = _classify_by_message(str(error))

    if error_type is PageErrorType.OTHER:
        return error_type, str(error) or "Analysis failed"
    return error_type, ERROR_MESSAGES[error_type]


def _classify_by_type(error: BaseException) -> Optional[PageErrorType]:
    if isinstance(error, AnalyzerResponseError):
        return PageErrorType.OTHER
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return PageErrorType.TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return _STATUS_TYPES.get(error.response.status_code)
    if isinstance(error, PageFetchError) and error.status_code is not None:
        return _STATUS_TYPES.get(error.status_code)
    if isinstance(error, (httpx.NetworkError, ConnectionError)):
        return PageErrorType.NETWORK
    return None


def _classify_by_message(message: str) -> PageErrorType:
    lowered = message.lower()
    for error_type, keywords in _KEYWORDS:
        if any(re.search(rf"\b{re.escape(keyword)}", lowered) for keyword in keywords):
            return error_type
    return PageErrorType.OTHER
