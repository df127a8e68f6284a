"""Register the built-in source extractors with a factory."""

from typing import Optional

import structlog

from app.scrapers.adapters import AmazonExtractor, NeweggExtractor, WalmartExtractor
from app.scrapers.factory import ExtractorFactory
from app.scrapers.fetcher import HttpFetcher

logger = structlog.get_logger(__name__)

# Run order for "all sources"
BUILTIN_EXTRACTORS = (
    ("walmart", WalmartExtractor),
    ("newegg", NeweggExtractor),
    ("amazon", AmazonExtractor),
)

KNOWN_SOURCES = tuple(source for source, _ in BUILTIN_EXTRACTORS)


def register_all_extractors(factory: ExtractorFactory) -> ExtractorFactory:
    """Register every built-in extractor on factory and return it."""
    for source, extractor_class in BUILTIN_EXTRACTORS:
        factory.register(source, extractor_class)

    logger.debug("all_extractors_registered", sources=factory.sources())
    return factory


def build_default_factory(fetcher: Optional[HttpFetcher] = None) -> ExtractorFactory:
    """Create a factory with all built-in extractors registered."""
    return register_all_extractors(ExtractorFactory(fetcher))
