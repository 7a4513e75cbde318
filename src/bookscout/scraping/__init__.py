# ABOUTME: Scraping package: source detection, page fetching, and per-source extractors.
# ABOUTME: Exports the classifier, the Extractor protocol, and the default dispatch table.

from bookscout.scraping.extractor import Extractor
from bookscout.scraping.registry import build_extractors, close_extractors
from bookscout.scraping.sources import SourceVariant, classify_url

__all__ = [
    "Extractor",
    "SourceVariant",
    "build_extractors",
    "close_extractors",
    "classify_url",
]
