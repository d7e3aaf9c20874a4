from .base import SourceAdapter, TextFetcher
from .tabular import CsvSource
from .feeds import JsonFeedSource
from .html import HtmlPageSource

__all__ = [
    "SourceAdapter",
    "TextFetcher",
    "CsvSource",
    "JsonFeedSource",
    "HtmlPageSource",
]
