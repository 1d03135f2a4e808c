"""
Tender Portal Monitor - Tender Sources Package

Each source turns a portal into a list of candidate tenders. Sources
inherit from TenderSource and register themselves by name.
"""

from sources.base import FetchFailure, FetchParseError, FetchTimeoutError, TenderSource
from sources.registry import SourceRegistry, create_source, get_source_class, register_source

__all__ = [
    "TenderSource",
    "FetchFailure",
    "FetchParseError",
    "FetchTimeoutError",
    "SourceRegistry",
    "create_source",
    "get_source_class",
    "register_source",
]
