"""Utility functions for the gift finder."""
import math
from typing import Any, Dict, Optional, Tuple

from .config import PRODUCT_URL_TEMPLATE
from .models import CatalogCandidate, GatheredProduct


def quote_in_budget(
    quote_min: float,
    quote_max: float,
    min_price: Optional[float],
    max_price: Optional[float],
) -> bool:
    """True when the quote range intersects [min_price, max_price].

    An unset bound is open on that side.
    """
    upper = math.inf if max_price is None else max_price
    lower = 0.0 if min_price is None else min_price
    return quote_min <= upper and quote_max >= lower


def narrow_budget(
    min_price: Optional[float],
    max_price: Optional[float],
    hint_min: Optional[float],
    hint_max: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """Apply planner price hints without ever widening the caller's budget.

    Hints that would leave an empty range are ignored.
    """
    lower, upper = min_price, max_price
    if hint_min is not None and hint_min >= 0:
        lower = hint_min if lower is None else max(lower, hint_min)
    if hint_max is not None and hint_max > 0:
        upper = hint_max if upper is None else min(upper, hint_max)
    if lower is not None and upper is not None and lower > upper:
        return min_price, max_price
    return lower, upper


def format_price_range(min_price: Optional[float], max_price: Optional[float]) -> Optional[str]:
    """'200-500', 'minimum 200', 'maximum 500' or None when unbounded."""
    if min_price is not None and max_price is not None:
        return f"{_num(min_price)}-{_num(max_price)}"
    if min_price is not None:
        return f"minimum {_num(min_price)}"
    if max_price is not None:
        return f"maximum {_num(max_price)}"
    return None


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def product_url(candidate: CatalogCandidate, market: str) -> str:
    if candidate.url:
        return candidate.url
    return PRODUCT_URL_TEMPLATE.format(market=market.lower(), product_id=candidate.product_id)


def serialize_product(product: GatheredProduct, market: str) -> Dict[str, Any]:
    """Convert a gathered product to the JSON-shaped suggestion dict (camelCase)."""
    c = product.candidate
    q = product.quote
    return {
        "productId": c.product_id,
        "name": c.name,
        "brand": c.brand,
        "imageUrl": c.image_url,
        "externalUrl": product_url(c, market),
        "price": {"min": q.min_price, "max": q.max_price, "currency": q.currency},
        "reasoning": product.query.rationale,
    }
