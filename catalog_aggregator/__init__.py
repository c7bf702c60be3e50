"""Catalog Aggregator.

Walks a storefront admin API's paginated product listing, filters the
aggregated catalog and summarizes it for storefront filter widgets.

This package provides:
- REST (link header) and GraphQL (pageInfo) page fetchers
- A bounded catalog walker with throttle backoff
- A multi-clause filter evaluator and a facet summarizer
- A process-wide TTL result cache
- A thin FastAPI surface (`/api/filter`, `/api/meta`)
"""

__version__ = "0.1.0"
