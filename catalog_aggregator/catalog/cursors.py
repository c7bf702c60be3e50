"""Continuation cursor extraction.

Two pagination styles are supported:

- Link header (REST): `<https://...?page_info=abc>; rel="next", <...>; rel="previous"`.
  The cursor is the `page_info` query parameter of the matching descriptor.
- Cursor field (GraphQL): `pageInfo.hasNextPage` plus the cursor of the
  last edge in the page.

Malformed or missing metadata is never fatal: it is logged and treated as
the final page.
"""

import re
from typing import Any

import httpx
import structlog

from catalog_aggregator.domain.exceptions import MalformedPaginationMetadata

logger = structlog.get_logger()

CURSOR_PARAM = "page_info"

# URLs may contain commas (e.g. fields=id,title), so match on the brackets
# rather than splitting the header on commas.
_LINK_PATTERN = re.compile(r"<([^>]*)>\s*((?:;\s*[^;,<]+)*)")
_REL_PATTERN = re.compile(r'rel\s*=\s*"?([^";,]+)"?', re.IGNORECASE)


def parse_link_header(header: str) -> dict[str, str]:
    """Parse a link header into a relation -> URL map.

    Args:
        header: Raw header value.

    Returns:
        Mapping of relation name to target URL.

    Raises:
        MalformedPaginationMetadata: If the header contains no descriptors.
    """
    links: dict[str, str] = {}
    for match in _LINK_PATTERN.finditer(header):
        url, params = match.group(1).strip(), match.group(2)
        rel = _REL_PATTERN.search(params or "")
        if url and rel:
            for name in rel.group(1).split():
                links.setdefault(name.lower(), url)

    if not links and header.strip():
        raise MalformedPaginationMetadata(
            "Link header has no readable descriptors",
            details={"header": header[:200]},
        )
    return links


def extract_link_cursor(header: str | None, rel: str = "next") -> str | None:
    """Extract the cursor for a relation from a link header.

    Args:
        header: Raw link header value, may be None.
        rel: Relation to look for.

    Returns:
        Cursor token, or None when there is no such page.
    """
    if not header:
        return None

    try:
        url = parse_link_header(header).get(rel)
        if url is None:
            return None
        cursor = httpx.URL(url).params.get(CURSOR_PARAM)
    except (MalformedPaginationMetadata, httpx.InvalidURL) as e:
        logger.warning(
            "Unreadable pagination header, treating as last page",
            rel=rel,
            error=str(e),
        )
        return None

    if not cursor:
        logger.warning("Link descriptor without cursor", rel=rel, url=url)
        return None
    return cursor


def extract_page_info_cursor(
    page_info: Any,
    edges: Any = None,
) -> str | None:
    """Extract the next cursor from GraphQL pagination metadata.

    Args:
        page_info: The connection's `pageInfo` object.
        edges: The connection's edges; the last edge's cursor is used.

    Returns:
        Cursor of the last record, or None on the final page.
    """
    if not isinstance(page_info, dict):
        if page_info is not None:
            logger.warning("Malformed pageInfo, treating as last page")
        return None

    if page_info.get("hasNextPage") is not True:
        return None

    cursor = None
    if isinstance(edges, list) and edges and isinstance(edges[-1], dict):
        cursor = edges[-1].get("cursor")
    cursor = cursor or page_info.get("endCursor")

    if not cursor:
        logger.warning("hasNextPage without a cursor, treating as last page")
        return None
    return str(cursor)


def extract_page_info_previous(page_info: Any, edges: Any = None) -> str | None:
    """Extract the cursor for the preceding GraphQL page."""
    if not isinstance(page_info, dict) or page_info.get("hasPreviousPage") is not True:
        return None
    if isinstance(edges, list) and edges and isinstance(edges[0], dict) and edges[0].get("cursor"):
        return str(edges[0]["cursor"])
    start = page_info.get("startCursor")
    return str(start) if start else None
