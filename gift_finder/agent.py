"""Gift finder orchestrator.

One turn runs as Plan -> Gather -> Filter -> Draft -> Validate:
1. Planner (LLM tool calling) decides which catalog searches to run
2. All searches run concurrently; each fans out price lookups for its top candidates
3. Unpriced or out-of-budget candidates are dropped as they arrive
4. Survivors are drafted round-robin across queries, up to the requested count
5. The shaper enforces the output contract

Entry points: GiftFinderAgent.chat()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from .catalog import AbstractCatalogClient, PriceRunnerClient
from .config import (
    CANDIDATES_PER_QUERY,
    CHAT_TIMEOUT_SECONDS,
    DEFAULT_MARKET,
    DEFAULT_SUGGESTIONS,
    MAX_SUGGESTIONS,
    SEARCH_SIZE,
)
from .context import assemble_context
from .errors import ProviderError, RecommendationTimeoutError, ValidationError
from .models import AssembledContext, GatheredProduct, GiftPlan, SearchQuery, SessionConstraints
from .planner import AbstractPlanner, OpenAIPlanner
from .schemas import ConversationTurn, RecommendationResult
from .shaper import shape_response
from .utils import narrow_budget, quote_in_budget, serialize_product

logger = logging.getLogger(__name__)

ASK_MORE_MESSAGE = "Tell me a little about the person: their age, hobbies, or what they love?"
NO_MATCHES_MESSAGE = (
    "I couldn't find any gifts with current prices for that. "
    "Could you share a few more of their interests, or loosen the budget?"
)


@dataclass
class _QueryResult:
    """Outcome of one search and its price lookups."""
    query: SearchQuery
    products: List[GatheredProduct] = field(default_factory=list)
    lookups: int = 0
    lookup_errors: List[ProviderError] = field(default_factory=list)


class GiftFinderAgent:
    """Stateless per call: history and constraints come in, a result goes out."""

    def __init__(
        self,
        catalog_client: AbstractCatalogClient | None = None,
        planner: AbstractPlanner | None = None,
        search_size: int = SEARCH_SIZE,
        candidates_per_query: int = CANDIDATES_PER_QUERY,
    ) -> None:
        # Reuse a single catalog client instance for all lookups.
        self.catalog: AbstractCatalogClient = catalog_client or PriceRunnerClient()
        self.planner: AbstractPlanner = planner or OpenAIPlanner()
        self.search_size = search_size
        self.candidates_per_query = candidates_per_query

    async def chat(
        self,
        message: Any,
        history: Sequence[ConversationTurn] = (),
        market: Any = DEFAULT_MARKET,
        min_price: Any = None,
        max_price: Any = None,
        num_suggestions: Any = DEFAULT_SUGGESTIONS,
        timeout: Optional[float] = CHAT_TIMEOUT_SECONDS,
    ) -> RecommendationResult:
        """Handle one user turn and return the shaped recommendation."""
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message is required")
        constraints = build_constraints(market, min_price, max_price, num_suggestions)

        context = assemble_context(history, message, constraints)
        try:
            return await asyncio.wait_for(self.recommend(context), timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Chat timed out after %ss", timeout)
            raise RecommendationTimeoutError(
                "Gift search took too long", details=f"timeout={timeout}s"
            ) from e

    async def recommend(self, context: AssembledContext) -> RecommendationResult:
        """Run the state machine over an already assembled context."""
        plan = await self.planner.plan(context)
        if plan.needs_more_info or not plan.queries:
            return shape_response(
                {"message": plan.message or ASK_MORE_MESSAGE, "needsMoreInfo": True},
                context,
            )

        c = context.constraints
        min_price, max_price = narrow_budget(c.min_price, c.max_price, plan.min_price, plan.max_price)
        if (min_price, max_price) != (c.min_price, c.max_price):
            logger.info("Plan narrowed budget to %s-%s", min_price, max_price)

        results = await self._gather(plan.queries, context, min_price, max_price)
        draft = self._draft(plan, results, context)
        return shape_response(draft, context, min_price, max_price)

    async def _gather(
        self,
        queries: List[SearchQuery],
        context: AssembledContext,
        min_price: Optional[float],
        max_price: Optional[float],
    ) -> List[_QueryResult]:
        # Shared claim set: a product is priced once even if several queries find it.
        claimed: Set[str] = set(context.already_shown_ids)
        outcomes = await asyncio.gather(
            *[
                self._gather_query(q, context.constraints.market, claimed, min_price, max_price)
                for q in queries
            ],
            return_exceptions=True,
        )

        results: List[_QueryResult] = []
        search_errors: List[ProviderError] = []
        for q, outcome in zip(queries, outcomes):
            if isinstance(outcome, ProviderError):
                logger.warning("Search %r failed: %s", q.query, outcome.message)
                search_errors.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        if not results:
            raise ProviderError.aggregate("All catalog searches failed", search_errors)

        lookups = sum(r.lookups for r in results)
        lookup_errors = [e for r in results for e in r.lookup_errors]
        if lookups and len(lookup_errors) == lookups:
            raise ProviderError.aggregate("All price lookups failed", search_errors + lookup_errors)
        if lookup_errors:
            logger.warning("%d of %d price lookups failed", len(lookup_errors), lookups)
        return results

    async def _gather_query(
        self,
        query: SearchQuery,
        market: str,
        claimed: Set[str],
        min_price: Optional[float],
        max_price: Optional[float],
    ) -> _QueryResult:
        candidates = await self.catalog.search(query.query, market, self.search_size)

        picked = []
        for cand in candidates:
            if cand.product_id in claimed:
                continue
            claimed.add(cand.product_id)
            picked.append(cand)
            if len(picked) >= self.candidates_per_query:
                break

        quotes = await asyncio.gather(
            *[self.catalog.price_offers(cand.product_id, market) for cand in picked],
            return_exceptions=True,
        )

        result = _QueryResult(query=query, lookups=len(picked))
        for cand, quote in zip(picked, quotes):
            if isinstance(quote, ProviderError):
                result.lookup_errors.append(quote)
                continue
            if isinstance(quote, BaseException):
                raise quote
            if quote is None:
                continue  # no current offers, unsellable right now
            if not quote_in_budget(quote.min_price, quote.max_price, min_price, max_price):
                continue
            result.products.append(GatheredProduct(candidate=cand, quote=quote, query=query))
        logger.debug(
            "Query %r: %d candidates, %d priced in budget", query.query, len(candidates), len(result.products)
        )
        return result

    def _draft(
        self,
        plan: GiftPlan,
        results: List[_QueryResult],
        context: AssembledContext,
    ) -> Dict[str, Any]:
        """Pick up to suggestion_count products, one per query per round."""
        count = context.constraints.suggestion_count
        queues = [list(r.products) for r in results]
        picked: List[GatheredProduct] = []
        while len(picked) < count and any(queues):
            for queue in queues:
                if queue and len(picked) < count:
                    picked.append(queue.pop(0))

        if not picked:
            return {"message": NO_MATCHES_MESSAGE, "products": [], "needsMoreInfo": True}

        market = context.constraints.market
        return {
            "message": plan.message or f"Here are {len(picked)} gift ideas I found for them!",
            "products": [serialize_product(p, market) for p in picked],
            "needsMoreInfo": False,
        }

    async def aclose(self) -> None:
        await self.catalog.aclose()


def build_constraints(
    market: Any,
    min_price: Any,
    max_price: Any,
    num_suggestions: Any,
) -> SessionConstraints:
    """Validate caller-supplied session constraints."""
    if not isinstance(market, str) or not market.strip():
        raise ValidationError("Market must be a non-empty market code")
    min_price = _price_arg("minPrice", min_price)
    max_price = _price_arg("maxPrice", max_price)
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("minPrice must not exceed maxPrice", details=f"{min_price} > {max_price}")
    if isinstance(num_suggestions, bool) or not isinstance(num_suggestions, int):
        raise ValidationError("numSuggestions must be an integer")
    if not 1 <= num_suggestions <= MAX_SUGGESTIONS:
        raise ValidationError(f"numSuggestions must be between 1 and {MAX_SUGGESTIONS}")
    return SessionConstraints(
        market=market.strip().upper(),
        min_price=min_price,
        max_price=max_price,
        suggestion_count=num_suggestions,
    )


def _price_arg(name: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    if value < 0:
        raise ValidationError(f"{name} must not be negative")
    return float(value)
