"""Application layer module.

Contains the catalog walker, filter evaluator, summarizer, result cache
and the service that orchestrates them per request.
"""

from catalog_aggregator.application.cache import ResultCache, get_result_cache
from catalog_aggregator.application.catalog_service import (
    BrowsePage,
    CatalogService,
    get_catalog_service,
)
from catalog_aggregator.application.filters import filter_records
from catalog_aggregator.application.summary import summarize
from catalog_aggregator.application.walker import CatalogWalker, ThrottlePolicy

__all__ = [
    "BrowsePage",
    "CatalogService",
    "CatalogWalker",
    "ResultCache",
    "ThrottlePolicy",
    "filter_records",
    "get_catalog_service",
    "get_result_cache",
    "summarize",
]
