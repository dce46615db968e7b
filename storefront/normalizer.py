"""
Conversion of Storefront API product nodes into the internal Product model.

Malformed or missing nested fields degrade to empty defaults; nothing here
raises on bad remote data.
"""
import html
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from storefront.models import Money, Product, SelectedOption, Variant

SIZE_OPTION_NAMES = ("size", "sizes")
SIZE_CHART_KEYS = ("size_chart", "sizechart", "size-chart")
DEFAULT_SIZE_CHART_ALT = "Size chart"


def short_id(global_id: Optional[str]) -> str:
    """Return the substring after the last '/' of a remote global id"""
    if not global_id:
        return ""
    return global_id.rsplit("/", 1)[-1] or global_id


def format_price(amount: Optional[str]) -> str:
    """
    Round a decimal amount string to a whole number string.

    "89.99" becomes "90". Values that do not parse as a finite number are
    returned unchanged.
    """
    if amount is None:
        return "0"
    try:
        value = Decimal(str(amount).strip())
        if not value.is_finite():
            return amount
        # quantize fails past the context precision, e.g. "1e30"
        return str(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return amount


def _nodes(connection: Any) -> List[Dict[str, Any]]:
    """Flatten a GraphQL edges/node connection, skipping empty entries"""
    if not isinstance(connection, dict):
        return []
    edges = connection.get("edges") or []
    return [
        edge["node"]
        for edge in edges
        if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
    ]


def extract_images(product: Dict[str, Any]) -> List[str]:
    return [node["url"] for node in _nodes(product.get("images")) if node.get("url")]


def extract_sizes(product: Dict[str, Any]) -> List[str]:
    for option in product.get("options") or []:
        if not isinstance(option, dict):
            continue
        if (option.get("name") or "").lower() in SIZE_OPTION_NAMES:
            return list(option.get("values") or [])
    return []


def _is_size_chart_field(value: str) -> bool:
    lowered = value.lower()
    if lowered in SIZE_CHART_KEYS:
        return True
    return "size" in lowered and "chart" in lowered


def extract_size_chart(product: Dict[str, Any]) -> Optional[str]:
    """
    Find the size chart among the product's metafields.

    Metafields missing a key or namespace are skipped. The first match wins:
    a referenced image becomes an <img> tag, otherwise the raw value is used.
    """
    for metafield in product.get("metafields") or []:
        if not isinstance(metafield, dict):
            continue
        key = metafield.get("key")
        namespace = metafield.get("namespace")
        if not key or not namespace:
            continue
        if not (_is_size_chart_field(key) or _is_size_chart_field(namespace)):
            continue

        reference = metafield.get("reference") or {}
        image = reference.get("image") if isinstance(reference, dict) else None
        if isinstance(image, dict) and image.get("url"):
            alt = image.get("altText") or DEFAULT_SIZE_CHART_ALT
            return '<img src="{}" alt="{}" />'.format(
                html.escape(image["url"], quote=True),
                html.escape(alt, quote=True),
            )
        return metafield.get("value") or None
    return None


def normalize_variant(node: Dict[str, Any]) -> Variant:
    global_id = node.get("id") or ""
    price = node.get("price") or {}
    return Variant(
        id=global_id,
        short_id=short_id(global_id),
        title=node.get("title") or "",
        price=Money(
            amount=str(price.get("amount") or "0"),
            currency_code=price.get("currencyCode") or "",
        ),
        available_for_sale=bool(node.get("availableForSale")),
        selected_options=[
            SelectedOption(name=opt.get("name") or "", value=opt.get("value") or "")
            for opt in node.get("selectedOptions") or []
            if isinstance(opt, dict)
        ],
    )


def normalize_product(product: Dict[str, Any]) -> Product:
    """Convert a Storefront API product node into a Product"""
    images = extract_images(product)
    variants = [normalize_variant(node) for node in _nodes(product.get("variants"))]
    amount = variants[0].price.amount if variants else "0"
    global_id = product.get("id") or ""

    return Product(
        id=short_id(global_id),
        shopify_id=global_id or None,
        name=product.get("title") or "",
        price=format_price(amount),
        image=images[0] if images else "",
        images=images,
        description=product.get("descriptionHtml") or product.get("description") or "",
        slug=product.get("handle") or "",
        variants=variants,
        sizes=extract_sizes(product),
        size_chart=extract_size_chart(product),
    )
