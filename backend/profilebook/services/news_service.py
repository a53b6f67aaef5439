"""
Profilebook Backend — News Proxy Service
=========================================

What:  Relays a search term to the external news API and returns its
       `results` list.
Why:   The API key stays on the server; the web client never sees it.
How:   GET <news_api_url><news_api_key><term> through a shared
       httpx.AsyncClient with a request timeout. Transport errors and
       timeouts are retried with exponential backoff (tenacity). Every
       other failure becomes NewsServiceError, so the route always answers.
Who:   Called by routes/news.py.

Error Handling Chain:
    Connect/read timeout or transport error → tenacity retries
    → retries exhausted → NewsServiceError
    Non-2xx status / invalid JSON / no `results` list → NewsServiceError (no retry)
"""

import logging
import time
from typing import Any, List, Optional

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from profilebook.config import settings
from profilebook.exceptions import NewsServiceError

logger = logging.getLogger(__name__)


class NewsService:
    """
    Thin proxy over the external news search API.

    Args:
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(settings.news_api_url and settings.news_api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.news_timeout),
                transport=self._transport,
            )
        return self._client

    def _build_url(self, term: str) -> str:
        # The upstream API takes the key and the query as one URL suffix
        return f"{settings.news_api_url}{settings.news_api_key}{term}"

    async def search(self, term: str) -> List[Any]:
        """
        Search the news API.

        Returns:
            The upstream `results` array, unmodified.

        Raises:
            NewsServiceError: not configured, upstream unavailable after
            retries, non-2xx response, or malformed body.
        """
        if not self.configured:
            raise NewsServiceError(
                message="News API is not configured",
                context={"missing": "NEWS_API_URL/NEWS_API_KEY"},
            )

        try:
            response = await self._fetch_with_retry(self._build_url(term))
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("News API unreachable after %d attempts: %s", settings.retry_max_attempts, last)
            raise NewsServiceError(context={"error_type": type(last).__name__ if last else "unknown"})
        except httpx.HTTPError as e:
            logger.error("News API request failed: %s", type(e).__name__)
            raise NewsServiceError(context={"error_type": type(e).__name__})

        if response.status_code >= 400:
            logger.error("News API answered HTTP %d", response.status_code)
            raise NewsServiceError(context={"status": response.status_code})

        try:
            body = response.json()
        except ValueError:
            logger.error("News API returned a non-JSON body")
            raise NewsServiceError(context={"reason": "invalid_json"})

        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            logger.error("News API response has no results list")
            raise NewsServiceError(context={"reason": "missing_results"})

        logger.info("News search returned %d results", len(results))
        return results

    async def _fetch_with_retry(self, url: str) -> httpx.Response:
        retrying = retry(
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
            stop=stop_after_attempt(settings.retry_max_attempts),
            wait=wait_exponential(min=settings.retry_min_wait, max=settings.retry_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        return await retrying(self._fetch)(url)

    async def _fetch(self, url: str) -> httpx.Response:
        start_time = time.perf_counter()
        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as e:
            # URL is not logged: it embeds the API key
            logger.warning(
                "News API call failed after %.0fms: %s",
                (time.perf_counter() - start_time) * 1000,
                type(e).__name__,
            )
            raise
        logger.debug(
            "News API answered %d in %.0fms",
            response.status_code,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    async def close(self) -> None:
        """Closes the shared HTTP client (application shutdown)."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


# ── Singleton Instance ────────────────────────────────────────────────────
news_service = NewsService()
