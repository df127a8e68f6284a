"""Source-specific extractor implementations.

Markup-based sources inherit from HtmlListingExtractor; credentialed API
sources inherit from BaseAPIExtractor.
"""

from .amazon import AmazonExtractor
from .newegg import NeweggExtractor
from .walmart import WalmartExtractor

__all__ = [
    "AmazonExtractor",
    "NeweggExtractor",
    "WalmartExtractor",
]
