"""Factory for creating source extractor instances."""

from typing import Dict, List, Optional, Type

import structlog

from app.config import settings
from app.scrapers.base import BaseExtractor
from app.scrapers.fetcher import HttpFetcher


logger = structlog.get_logger(__name__)


class ExtractorFactory:
    """Registry of extractor classes keyed by source name.

    Injects the shared fetch collaborator into every extractor it builds.
    """

    def __init__(self, fetcher: Optional[HttpFetcher] = None):
        """Initialize the factory.

        Args:
            fetcher: Fetch collaborator shared by created extractors
        """
        self.fetcher = fetcher or HttpFetcher(attempts=settings.SCRAPER_FETCH_ATTEMPTS)
        self._registry: Dict[str, Type[BaseExtractor]] = {}

    def register(self, source: str, extractor_class: Type[BaseExtractor]) -> None:
        """Register an extractor class for a source.

        Args:
            source: Source name (e.g., "newegg")
            extractor_class: Class inheriting from BaseExtractor

        Raises:
            ValueError: If extractor_class is not a BaseExtractor
        """
        if not issubclass(extractor_class, BaseExtractor):
            raise ValueError(f"Extractor class must inherit from BaseExtractor: {extractor_class}")

        self._registry[source] = extractor_class
        logger.debug("extractor_registered", source=source, extractor=extractor_class.__name__)

    def create(self, source: str) -> Optional[BaseExtractor]:
        """Create an extractor for source, or None if it is not registered."""
        extractor_class = self._registry.get(source)
        if not extractor_class:
            logger.warning("extractor_not_found", source=source)
            return None
        return extractor_class(fetcher=self.fetcher)

    def sources(self) -> List[str]:
        """Registered source names in registration order."""
        return list(self._registry.keys())

    def has_source(self, source: str) -> bool:
        return source in self._registry
