"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Dict, List, Optional, Type

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.exceptions import FetchError
from app.models import Base, Store
from app.scrapers.base import BaseExtractor, ScrapedListing
from app.scrapers.coordinator import ScrapeCoordinator
from app.scrapers.factory import ExtractorFactory
from app.scrapers.fetcher import HttpFetcher


# ============================================================================
# SETTINGS
# ============================================================================

@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """No politeness delays, no Amazon credentials, no cron secret."""
    monkeypatch.setattr(settings, "SCRAPER_SOURCE_DELAY_MS", "0,0")
    monkeypatch.setattr(settings, "SCRAPER_ENRICH_DELAY_MS", "0,0")
    monkeypatch.setattr(settings, "SCRAPER_FETCH_ATTEMPTS", 1)
    monkeypatch.setattr(settings, "AMAZON_ACCESS_KEY", "")
    monkeypatch.setattr(settings, "AMAZON_SECRET_KEY", "")
    monkeypatch.setattr(settings, "AMAZON_PARTNER_TAG", "")
    monkeypatch.setattr(settings, "CRON_SECRET", "")
    return settings


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def stores(test_db: AsyncSession) -> Dict[str, Store]:
    """Active stores for every built-in source."""
    created = {}
    for slug, name in (("walmart", "Walmart"), ("newegg", "Newegg"), ("amazon", "Amazon")):
        store = Store(name=name, slug=slug, website_url=f"https://www.{slug}.com", is_active=True)
        test_db.add(store)
        created[slug] = store
    await test_db.commit()
    return created


# ============================================================================
# FAKE NETWORK
# ============================================================================

class FakeSite:
    """Routes requests by exact URL for an httpx.MockTransport.

    Unrouted URLs answer 404.
    """

    def __init__(self):
        self.routes: Dict[str, tuple] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, body: str = "", status: int = 200, error: Optional[Exception] = None):
        self.routes[url] = (body, status, error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        body, status, error = route
        if error is not None:
            raise error
        return httpx.Response(status, text=body)

    def fetcher(self) -> HttpFetcher:
        return HttpFetcher(transport=httpx.MockTransport(self.handler))

    def requested_urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


# ============================================================================
# STUB EXTRACTORS
# ============================================================================

def make_listing(
    native_id: str,
    price: str = "10.00",
    original: Optional[str] = None,
    source: str = "newegg",
    **kwargs,
) -> ScrapedListing:
    return ScrapedListing(
        external_id=f"{source}-{native_id}",
        title=kwargs.pop("title", f"Product {native_id}"),
        current_price=Decimal(price),
        original_price=Decimal(original) if original else None,
        product_url=kwargs.pop("product_url", f"https://www.{source}.com/p/{native_id}"),
        **kwargs,
    )


def stub_extractor(
    source: str,
    listings: Optional[List[ScrapedListing]] = None,
    error: Optional[str] = None,
) -> Type[BaseExtractor]:
    """Build an extractor class that returns fixed listings or fails to fetch."""

    class StubExtractor(BaseExtractor):
        async def fetch_listings(self):
            if error is not None:
                raise FetchError(error)
            return list(listings or [])

    StubExtractor.source = source
    return StubExtractor


def make_coordinator(db: AsyncSession, extractors: Dict[str, Type[BaseExtractor]]) -> ScrapeCoordinator:
    factory = ExtractorFactory(fetcher=HttpFetcher())
    for source, extractor_class in extractors.items():
        factory.register(source, extractor_class)
    return ScrapeCoordinator(db, factory=factory, source_delay_range=(0, 0))


@pytest.fixture
def listing_factory():
    return make_listing


@pytest.fixture
def extractor_factory():
    return stub_extractor


@pytest.fixture
def coordinator_factory():
    return make_coordinator


# ============================================================================
# PAGE FIXTURES
# ============================================================================

@pytest.fixture
def newegg_html() -> str:
    return """
    <html><body>
    <div class="item-cells-wrap">
      <div class="item-cell">
        <div class="item-container">
          <a class="item-img" href="https://www.newegg.com/asus-rog-strix-g16/p/N82E16834233441">
            <img class="item-img" src="//c1.neweggimages.com/ProductImage/34-233-441-V01.jpg" alt="ASUS ROG Strix G16">
          </a>
          <div class="item-info">
            <div class="item-branding">
              <a class="item-brand" href="/ASUS/BrandStore/ID-1315"><img alt="ASUS" src="//c1.neweggimages.com/Brandimage/1315.gif"></a>
            </div>
            <a class="item-title" href="https://www.newegg.com/asus-rog-strix-g16/p/N82E16834233441">ASUS ROG Strix G16 Gaming Laptop, 16" FHD 165Hz, RTX 4060</a>
          </div>
          <div class="item-action">
            <ul class="price">
              <li class="price-was">$1,199.99</li>
              <li class="price-current">$<strong>899</strong><sup>.99</sup></li>
            </ul>
          </div>
        </div>
      </div>
      <div class="item-cell">
        <div class="item-container">
          <div class="item-info">
            <a class="item-brand">Keychron</a>
            <a class="item-title" href="/Product/Product.aspx?Item=9SIAKVKJSR4321">Keychron K2 Wireless Mechanical Keyboard</a>
          </div>
          <ul class="price"><li class="price-current">$79.99</li></ul>
        </div>
      </div>
      <div class="item-cell">
        <div class="item-container">
          <a class="item-title" href="https://www.newegg.com/p/N82E16800000001">Sold out item without price</a>
        </div>
      </div>
    </div>
    </body></html>
    """


@pytest.fixture
def walmart_html() -> str:
    return """
    <html><body>
    <div data-testid="item-stack">
      <div data-item-id="AAA111">
        <a href="/ip/Samsung-65-Class-4K-TV/AAA111"><span>Samsung 65" Class 4K Crystal UHD TV</span></a>
        <div data-automation-id="product-price">
          <meta itemprop="price" content="599.99">
        </div>
        <div data-automation-id="strikethrough-price">$799.99</div>
        <img data-testid="productTileImage" src="https://i5.walmartimages.com/seo/aaa111.jpeg">
        <div data-automation-id="product-brand">Samsung</div>
      </div>
      <div data-item-id="BBB222">
        <span data-automation-id="product-title">onn. 32" HD Roku Smart TV</span>
        <div data-automation-id="product-price"><span class="f2">$128.00</span></div>
      </div>
    </div>
    </body></html>
    """


@pytest.fixture
def walmart_next_data_html() -> str:
    return """
    <html><body>
    <div id="__next"></div>
    <script id="__NEXT_DATA__" type="application/json">
    {"props": {"pageProps": {"initialData": {"searchResult": {"itemStacks": [{"title": "Deals", "items": [
      {"usItemId": "123456", "name": "Samsung 55\\" Crystal UHD Smart TV",
       "priceInfo": {"currentPrice": {"price": 499.99}, "wasPrice": {"price": 799.99}},
       "imageUrl": "https://i5.walmartimages.com/123456.jpg", "brand": "Samsung"},
      {"usItemId": "789012", "name": "Sony WH-1000XM5 Headphones",
       "priceInfo": {"currentPrice": {"price": 278.00}},
       "image": "https://i5.walmartimages.com/789012.jpg", "brand": "Sony"},
      {"usItemId": "555555", "name": "No price item"}
    ]}]}}}}}
    </script>
    </body></html>
    """
