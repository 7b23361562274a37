"""Shared fakes for gift finder tests."""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from gift_finder.catalog import AbstractCatalogClient
from gift_finder.errors import ProviderError
from gift_finder.models import CatalogCandidate, GiftPlan, PriceQuote, SearchQuery
from gift_finder.planner import AbstractPlanner


def cand(product_id: str, name: Optional[str] = None) -> CatalogCandidate:
    return CatalogCandidate(
        product_id=product_id,
        name=name or f"Product {product_id}",
        brand="Acme",
        image_url=f"https://img.example/{product_id}.jpg",
    )


class FakeCatalog(AbstractCatalogClient):
    """In-memory catalog. ``quotes`` maps product id -> (min, max) or None."""

    def __init__(
        self,
        results: Optional[Dict[str, List[CatalogCandidate]]] = None,
        quotes: Optional[Dict[str, Optional[Tuple[float, float]]]] = None,
        failing_searches: Iterable[str] = (),
        failing_offers: Iterable[str] = (),
        fail_all_searches: bool = False,
    ) -> None:
        self.results = results or {}
        self.quotes = quotes or {}
        self.failing_searches = set(failing_searches)
        self.failing_offers = set(failing_offers)
        self.fail_all_searches = fail_all_searches
        self.search_calls: List[str] = []
        self.offer_calls: List[str] = []

    async def search(self, query, market, size=10):
        self.search_calls.append(query)
        await asyncio.sleep(0)
        if self.fail_all_searches or query in self.failing_searches:
            raise ProviderError("Catalog unreachable", details=query)
        return list(self.results.get(query, []))[:size]

    async def price_offers(self, product_id, market):
        self.offer_calls.append(product_id)
        await asyncio.sleep(0)
        if product_id in self.failing_offers:
            raise ProviderError("Catalog request failed", details=product_id)
        q = self.quotes.get(product_id)
        if q is None:
            return None
        return PriceQuote(product_id, market, q[0], q[1], "SEK")


class FakePlanner(AbstractPlanner):
    def __init__(self, plan: GiftPlan) -> None:
        self._plan = plan
        self.contexts = []

    async def plan(self, context):
        self.contexts.append(context)
        return self._plan


def make_plan(*queries: str, message: str = "Here are some ideas!", **kwargs) -> GiftPlan:
    return GiftPlan(
        message=message,
        queries=[SearchQuery(query=q, rationale=f"They would love {q}.") for q in queries],
        **kwargs,
    )


@pytest.fixture
def gardening_catalog():
    return FakeCatalog(
        results={
            "gardening gloves": [cand("G1", "Leather gloves"), cand("G2", "Rose gloves"), cand("G3", "Cheap gloves")],
            "pruning shears": [cand("S1", "Felco 2"), cand("S2", "Budget shears")],
            "plant pots": [cand("T1", "Terracotta set"), cand("G1", "Leather gloves")],
        },
        quotes={
            "G1": (249.0, 299.0),
            "G2": (180.0, 220.0),
            "G3": (59.0, 99.0),
            "S1": (450.0, 620.0),
            "S2": (520.0, 700.0),
            "T1": (300.0, 380.0),
        },
    )
