"""Response validator/shaper: enforce the output contract on a drafted response.

Steps, in order: schema conformance, budget re-check, de-duplication against
the already-shown set, truncation to the requested count, and the
needsMoreInfo => no products invariant.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import pydantic

from .errors import InvalidResponseError
from .models import AssembledContext
from .schemas import RecommendationResult, SuggestedProduct
from .utils import quote_in_budget

logger = logging.getLogger(__name__)

NOTHING_LEFT_MESSAGE = (
    "I couldn't find gifts that fit those constraints without repeating earlier ideas. "
    "Could you tell me a bit more about them, or adjust the budget?"
)


def shape_response(
    draft: Union[Dict[str, Any], RecommendationResult],
    context: AssembledContext,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> RecommendationResult:
    """Validate and repair ``draft``.

    ``min_price``/``max_price`` default to the session budget; the orchestrator
    passes a narrower effective budget when the plan tightened it.
    """
    constraints = context.constraints
    if min_price is None:
        min_price = constraints.min_price
    if max_price is None:
        max_price = constraints.max_price

    if isinstance(draft, RecommendationResult):
        draft = draft.model_dump(by_alias=True)
    if not isinstance(draft, dict):
        raise InvalidResponseError("Draft is not an object", details=type(draft).__name__)

    raw_products = draft.get("products")
    if raw_products is not None and not isinstance(raw_products, list):
        raise InvalidResponseError("Draft products must be a list", details=type(raw_products).__name__)
    try:
        envelope = RecommendationResult.model_validate({**draft, "products": None})
    except pydantic.ValidationError as e:
        raise InvalidResponseError("Draft does not match the response schema", details=str(e)) from e

    products = _conforming(raw_products or [])
    products = [p for p in products if _in_budget(p, min_price, max_price)]
    products = _unique(products, context.already_shown_ids)
    products = products[: constraints.suggestion_count]

    message = envelope.message.strip()
    needs_more_info = bool(envelope.needs_more_info)
    if needs_more_info:
        products = []
    elif not products:
        # An answer with no products is a question, never an empty success.
        if raw_products:
            logger.warning("All %d drafted products rejected by shaping", len(raw_products))
        needs_more_info = True
        message = NOTHING_LEFT_MESSAGE
    if not message:
        if not needs_more_info:
            raise InvalidResponseError("Draft message is empty")
        message = NOTHING_LEFT_MESSAGE

    return RecommendationResult(
        message=message,
        products=products,
        needs_more_info=needs_more_info,
    )


def _conforming(raw_products: List[Any]) -> List[SuggestedProduct]:
    out: List[SuggestedProduct] = []
    for raw in raw_products:
        try:
            out.append(SuggestedProduct.model_validate(raw))
        except pydantic.ValidationError as e:
            pid = raw.get("productId") if isinstance(raw, dict) else None
            logger.warning("Dropping malformed product %s: %d error(s)", pid, e.error_count())
    return out


def _in_budget(p: SuggestedProduct, min_price: Optional[float], max_price: Optional[float]) -> bool:
    # Never shown without a price.
    if p.price is None:
        return False
    return quote_in_budget(p.price.min, p.price.max, min_price, max_price)


def _unique(products: List[SuggestedProduct], already_shown: Iterable[str]) -> List[SuggestedProduct]:
    seen = set(already_shown)
    out: List[SuggestedProduct] = []
    for p in products:
        if p.product_id in seen:
            continue
        seen.add(p.product_id)
        out.append(p)
    return out
