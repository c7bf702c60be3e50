"""Normalization of upstream product shapes into CatalogRecord.

The REST admin API returns snake_case products with comma-joined tags and
flat variant lists. The GraphQL admin API returns nested connection nodes
(`edges[].node`) with camelCase fields and `selectedOptions`. Both are
adapted here, immediately after fetch, so nothing downstream sees a
transport-specific shape.

Adapters raise ValueError on records they cannot read; the fetcher turns
that into a failure for the whole page.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from catalog_aggregator.domain.models import CatalogRecord, ProductImage, ProductVariant


def split_tags(raw: Any) -> tuple[str, ...]:
    """Split and trim tags.

    Args:
        raw: Comma-joined string, list of strings, or None.

    Returns:
        Non-empty trimmed tags in source order.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        parts = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw]
    else:
        raise ValueError(f"Unsupported tags value: {type(raw).__name__}")
    return tuple(t.strip() for t in parts if t.strip())


def parse_money(raw: Any) -> Decimal | None:
    """Parse an upstream price value.

    Accepts plain strings/numbers and MoneyV2-style `{"amount": ...}`.
    """
    if isinstance(raw, dict):
        raw = raw.get("amount")
    if raw is None or raw == "":
        return None
    try:
        price = Decimal(str(raw))
    except InvalidOperation:
        return None
    return price if price.is_finite() else None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _require_mapping(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"Expected product object, got {type(data).__name__}")
    if data.get("id") in (None, ""):
        raise ValueError("Product is missing an id")
    return data


def _connection_nodes(connection: Any) -> list[dict[str, Any]]:
    """Unwrap a GraphQL connection (`edges[].node` or `nodes[]`)."""
    if connection is None:
        return []
    if isinstance(connection, list):
        return [n for n in connection if isinstance(n, dict)]
    if not isinstance(connection, dict):
        raise ValueError("Malformed connection")
    if "nodes" in connection:
        return [n for n in connection["nodes"] or [] if isinstance(n, dict)]
    return [
        edge["node"]
        for edge in connection.get("edges") or []
        if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
    ]


# ============================================================================
# REST Adapter
# ============================================================================


def from_rest_product(data: Any) -> CatalogRecord:
    """Normalize a REST `products.json` product.

    Args:
        data: Product object from the REST response.

    Returns:
        CatalogRecord instance.
    """
    data = _require_mapping(data)

    images = [
        ProductImage(src=_text(img.get("src")), alt=_text(img.get("alt")))
        for img in data.get("images") or []
        if isinstance(img, dict) and img.get("src")
    ]
    # Field selection may return only the featured image.
    if not images and isinstance(data.get("image"), dict) and data["image"].get("src"):
        images = [ProductImage(src=_text(data["image"]["src"]), alt=_text(data["image"].get("alt")))]

    variants = tuple(
        ProductVariant(
            price=parse_money(v.get("price")),
            option1=_text(v.get("option1")),
            option2=_text(v.get("option2")),
            option3=_text(v.get("option3")),
        )
        for v in data.get("variants") or []
        if isinstance(v, dict)
    )

    return CatalogRecord(
        id=str(data["id"]),
        title=_text(data.get("title")),
        vendor=_text(data.get("vendor")),
        product_type=_text(data.get("product_type")),
        tags=split_tags(data.get("tags")),
        handle=_text(data.get("handle")),
        images=tuple(images),
        variants=variants,
    )


# ============================================================================
# GraphQL Adapter
# ============================================================================


def _graphql_variant(node: dict[str, Any]) -> ProductVariant:
    options = [
        _text(o.get("value"))
        for o in node.get("selectedOptions") or []
        if isinstance(o, dict)
    ]
    options += [""] * (3 - len(options))
    price = node.get("price")
    if price is None:
        price = node.get("priceV2")
    return ProductVariant(
        price=parse_money(price),
        option1=options[0],
        option2=options[1],
        option3=options[2],
    )


def from_graphql_node(node: Any) -> CatalogRecord:
    """Normalize a GraphQL `products` connection node.

    Args:
        node: Product node from `data.products.edges[].node`.

    Returns:
        CatalogRecord instance.
    """
    node = _require_mapping(node)

    images = tuple(
        ProductImage(
            src=_text(img.get("url") or img.get("src")),
            alt=_text(img.get("altText")),
        )
        for img in _connection_nodes(node.get("images"))
        if img.get("url") or img.get("src")
    )

    return CatalogRecord(
        id=str(node["id"]),
        title=_text(node.get("title")),
        vendor=_text(node.get("vendor")),
        product_type=_text(node.get("productType")),
        tags=split_tags(node.get("tags")),
        handle=_text(node.get("handle")),
        images=images,
        variants=tuple(_graphql_variant(v) for v in _connection_nodes(node.get("variants"))),
    )
