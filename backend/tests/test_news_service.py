"""
Profilebook Backend — News Proxy Tests
=======================================

What:  NewsService against an httpx.MockTransport, and POST /news.
How:   The `news_transport` fixture installs a handler on the shared
       news_service; retries wait 0s in tests (RETRY_*_WAIT=0).
"""

import logging

import httpx
import pytest

from conftest import error_code
from profilebook.config import settings
from profilebook.exceptions import NewsServiceError
from profilebook.services.news_service import news_service

ARTICLES = [
    {"title": "Python 4 announced", "url": "https://news.test/a"},
    {"title": "Async everywhere", "url": "https://news.test/b"},
]


class TestNewsService:

    @pytest.mark.asyncio
    async def test_relays_results(self, news_transport):
        seen = news_transport(lambda request: httpx.Response(200, json={"status": "OK", "results": ARTICLES}))

        results = await news_service.search("python")

        assert results == ARTICLES
        assert len(seen) == 1
        assert str(seen[0].url) == settings.news_api_url + settings.news_api_key + "python"

    @pytest.mark.asyncio
    async def test_upstream_error_status(self, news_transport):
        seen = news_transport(lambda request: httpx.Response(500, json={"fault": "boom"}))

        with pytest.raises(NewsServiceError):
            await news_service.search("python")
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_missing_results(self, news_transport):
        news_transport(lambda request: httpx.Response(200, json={"status": "OK"}))
        with pytest.raises(NewsServiceError):
            await news_service.search("python")

    @pytest.mark.asyncio
    async def test_non_json_body(self, news_transport):
        news_transport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        with pytest.raises(NewsServiceError):
            await news_service.search("python")

    @pytest.mark.asyncio
    async def test_timeouts_are_retried_then_fail(self, news_transport):
        def hang(request):
            raise httpx.ReadTimeout("timed out", request=request)

        seen = news_transport(hang)

        with pytest.raises(NewsServiceError):
            await news_service.search("python")
        assert len(seen) == settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_transient_error_recovers(self, news_transport):
        calls = {"n": 0}

        def flaky(request):
            calls["n"] += 1
            if calls["n"] == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"results": ARTICLES})

        news_transport(flaky)

        assert await news_service.search("python") == ARTICLES
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_unconfigured(self, news_transport, monkeypatch):
        seen = news_transport(lambda request: httpx.Response(200, json={"results": []}))
        monkeypatch.setattr(settings, "news_api_key", "")

        with pytest.raises(NewsServiceError):
            await news_service.search("python")
        assert seen == []

    @pytest.mark.asyncio
    async def test_api_key_never_logged(self, news_transport, caplog):
        def hang(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        news_transport(hang)

        with caplog.at_level(logging.DEBUG, logger="profilebook"):
            with pytest.raises(NewsServiceError):
                await news_service.search("python")
        assert settings.news_api_key not in caplog.text


class TestNewsRoute:

    @pytest.mark.asyncio
    async def test_route_returns_results_array(self, test_client, news_transport):
        news_transport(lambda request: httpx.Response(200, json={"results": ARTICLES}))

        response = await test_client.post("/news", json={"what": "python"})

        assert response.status_code == 200
        assert response.json() == ARTICLES

    @pytest.mark.asyncio
    async def test_route_completes_when_upstream_fails(self, test_client, news_transport):
        def hang(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        news_transport(hang)

        response = await test_client.post("/news", json={"what": "python"})

        assert response.status_code == 200
        assert error_code(response.json()) == "news_service_error"
        assert settings.news_api_key not in response.text
