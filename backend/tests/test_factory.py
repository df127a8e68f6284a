"""Tests for the extractor registry and the fetch collaborator."""

import httpx
import pytest

from app.core.exceptions import FetchError
from app.scrapers.adapters import AmazonExtractor, NeweggExtractor, WalmartExtractor
from app.scrapers.factory import ExtractorFactory
from app.scrapers.fetcher import HttpFetcher
from app.scrapers.register_adapters import KNOWN_SOURCES, build_default_factory


# ============================================================================
# TESTS: FACTORY
# ============================================================================

class TestExtractorFactory:
    """Source registry behaviour."""

    def test_default_factory_registers_builtin_sources_in_order(self):
        factory = build_default_factory()

        assert factory.sources() == ["walmart", "newegg", "amazon"]
        assert list(KNOWN_SOURCES) == factory.sources()
        assert isinstance(factory.create("walmart"), WalmartExtractor)
        assert isinstance(factory.create("newegg"), NeweggExtractor)
        assert isinstance(factory.create("amazon"), AmazonExtractor)

    def test_created_extractors_share_the_fetcher(self):
        fetcher = HttpFetcher()
        factory = build_default_factory(fetcher)

        assert factory.create("newegg").fetcher is fetcher
        assert factory.create("walmart").fetcher is fetcher

    def test_unknown_source(self):
        factory = build_default_factory()

        assert factory.create("bestbuy") is None
        assert not factory.has_source("bestbuy")

    def test_register_rejects_non_extractors(self):
        factory = ExtractorFactory()

        with pytest.raises(ValueError):
            factory.register("bogus", dict)


# ============================================================================
# TESTS: FETCHER
# ============================================================================

class TestHttpFetcher:
    """Error translation and retries."""

    async def test_returns_body_and_status(self, site):
        site.add("https://shop.test/list", "<html>ok</html>")

        response = await site.fetcher().fetch("https://shop.test/list")

        assert response.status == 200
        assert response.body == "<html>ok</html>"

    async def test_non_2xx_is_not_retried(self, site):
        site.add("https://shop.test/list", "busy", status=503)
        fetcher = HttpFetcher(transport=httpx.MockTransport(site.handler), attempts=3)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://shop.test/list")

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "HTTP 503 for https://shop.test/list"
        assert len(site.requests) == 1

    async def test_connect_error_retried_when_attempts_allow(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200, text="recovered")

        fetcher = HttpFetcher(transport=httpx.MockTransport(handler), attempts=2)
        response = await fetcher.fetch("https://shop.test/list")

        assert response.body == "recovered"
        assert len(calls) == 2

    async def test_single_attempt_surfaces_error_text(self, site):
        site.add("https://shop.test/list", error=httpx.ConnectError("Connection refused"))

        with pytest.raises(FetchError) as exc_info:
            await site.fetcher().fetch("https://shop.test/list")

        assert exc_info.value.message == "Connection refused"
        assert exc_info.value.url == "https://shop.test/list"
        assert len(site.requests) == 1
