"""Connector abstraction, errors, and the default page fetcher."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Optional

import httpx

from mpfeed.utils.logging import get_logger


class ConnectorError(Exception):
    """Base connector error."""


class TransientError(ConnectorError):
    """Retryable error (e.g., rate limit, network hiccup)."""


class PermanentError(ConnectorError):
    """Non-retryable error (e.g., 4xx semantics)."""


PageFetcherFn = Callable[[str], Awaitable[str]]

logger = get_logger(__name__)


class HttpPageFetcher:
    """Fetch a page body over HTTP; one client per call, nothing kept open.

    Failures are mapped onto the connector errors and never retried here.
    """

    def __init__(self, *, timeout_seconds: float, user_agent: str, headers: Optional[Dict[str, str]] = None) -> None:
        self._timeout = httpx.Timeout(timeout_seconds)
        self._headers = {"User-Agent": user_agent}
        if headers:
            self._headers.update(headers)

    async def __call__(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers, follow_redirects=True) as client:
                resp = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("page.fetch.timeout", extra={"url": url})
            raise TransientError(f"Timeout fetching {url}") from exc
        except httpx.HTTPError as exc:
            logger.warning("page.fetch.error", extra={"url": url, "error": str(exc)})
            raise TransientError(f"HTTP error fetching {url}: {exc}") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientError(f"Temporary upstream error {resp.status_code} for {url}")
        if resp.status_code >= 400:
            raise PermanentError(f"Upstream error {resp.status_code} for {url}")
        return resp.text


class BaseConnector(ABC):
    """Abstract async connector: raw page fetch plus source-specific parsing."""

    source: str
    source_type: str

    def __init__(self, fetcher: PageFetcherFn) -> None:
        self._fetcher = fetcher

    async def _fetch_raw(self, url: str) -> str:
        return await self._fetcher(url)

    @abstractmethod
    async def fetch_article(self, url: str):
        """Fetch and parse a single article page."""
