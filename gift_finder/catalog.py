"""Catalog gateway over the external product search / price comparison API.

Provides:
- AbstractCatalogClient: the two capabilities the orchestrator may call
- PriceRunnerClient: httpx adapter with normalized ProviderError failures

No caching and no retries here; both are caller policy.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import CATALOG_API_KEY, CATALOG_BASE_URL, CATALOG_TIMEOUT_SECONDS
from .errors import ProviderError
from .models import CatalogCandidate, PriceQuote

logger = logging.getLogger(__name__)


class AbstractCatalogClient:
    """Interface for catalog clients."""

    async def search(self, query: str, market: str, size: int = 10) -> List[CatalogCandidate]:
        # Return candidates in provider rank order; [] when nothing matches
        raise NotImplementedError

    async def price_offers(self, product_id: str, market: str) -> Optional[PriceQuote]:
        # Return the current price range, or None when there are no offers
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class PriceRunnerClient(AbstractCatalogClient):
    """Async adapter for the price comparison HTTP/JSON API."""

    def __init__(
        self,
        api_key: str = CATALOG_API_KEY,
        base_url: str = CATALOG_BASE_URL,
        timeout: float = CATALOG_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def search(self, query: str, market: str, size: int = 10) -> List[CatalogCandidate]:
        data = await self._get(
            "/search", params={"q": query, "market": market, "size": size}
        )
        items = data.get("products") if isinstance(data, dict) else data
        if items is None:
            return []
        if not isinstance(items, list):
            raise ProviderError("Unexpected search payload", details=f"query={query!r}")

        candidates: List[CatalogCandidate] = []
        for item in items:
            cand = _parse_candidate(item)
            if cand is not None:
                candidates.append(cand)
        return candidates[:size]

    async def price_offers(self, product_id: str, market: str) -> Optional[PriceQuote]:
        data = await self._get(
            f"/products/{product_id}/offers",
            params={"market": market},
            missing_ok=True,
        )
        if not data:
            return None
        return _parse_quote(data, product_id, market)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(
        self,
        path: str,
        params: Dict[str, Any],
        missing_ok: bool = False,
    ) -> Any:
        if not self._api_key:
            raise ProviderError("Catalog API key is not configured")
        try:
            resp = await self._client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.TimeoutException as e:
            raise ProviderError("Catalog request timed out", details=path) from e
        except httpx.RequestError as e:
            raise ProviderError("Catalog unreachable", details=f"{path}: {type(e).__name__}") from e

        if missing_ok and resp.status_code == 404:
            return None
        if resp.status_code in (401, 403):
            raise ProviderError("Catalog rejected credentials", details=f"HTTP {resp.status_code}")
        try:
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError("Catalog request failed", details=f"{path}: HTTP {resp.status_code}") from e
        except ValueError as e:
            raise ProviderError("Catalog returned invalid JSON", details=path) from e


def _parse_candidate(item: Any) -> Optional[CatalogCandidate]:
    """Map one raw search hit to a CatalogCandidate; None if it has no identity."""
    if not isinstance(item, dict):
        return None
    product_id = item.get("id") or item.get("productId")
    if isinstance(product_id, int) and not isinstance(product_id, bool):
        product_id = str(product_id)
    product_id = _text(product_id)
    name = _text(item.get("name")) or _text(item.get("title"))
    if not product_id or not name:
        return None

    brand = item.get("brand")
    if isinstance(brand, dict):
        brand = brand.get("name")
    image = item.get("image") or item.get("imageUrl")
    if isinstance(image, dict):
        image = image.get("url")
    url = item.get("url")
    if isinstance(url, dict):
        url = url.get("href")
    brand, image, url = _text(brand), _text(image), _text(url)

    return CatalogCandidate(
        product_id=product_id,
        name=name,
        brand=brand,
        image_url=image,
        url=url,
    )


def _parse_quote(data: Any, product_id: str, market: str) -> Optional[PriceQuote]:
    """Reduce an offers payload to its price range.

    Accepts a list of offers (``{"price": {"amount", "currency"}}``) or an
    already aggregated ``{"lowestPrice", "highestPrice", "currency"}``.
    """
    if isinstance(data, dict) and "lowestPrice" in data:
        try:
            low = float(_amount(data["lowestPrice"]))
            high = float(_amount(data.get("highestPrice", data["lowestPrice"])))
        except (TypeError, ValueError) as e:
            raise ProviderError("Unexpected offers payload", details=product_id) from e
        currency = _text(data.get("currency")) or _currency(data["lowestPrice"]) or ""
        return PriceQuote(product_id, market, min(low, high), max(low, high), currency)

    offers = data.get("offers") if isinstance(data, dict) else data
    if not isinstance(offers, list):
        raise ProviderError("Unexpected offers payload", details=product_id)

    amounts: List[float] = []
    currency: Optional[str] = None
    for offer in offers:
        if not isinstance(offer, dict):
            continue
        price = offer.get("price")
        try:
            amount = float(_amount(price))
        except (TypeError, ValueError):
            continue
        amounts.append(amount)
        currency = currency or _currency(price) or _text(offer.get("currency"))

    if not amounts:
        return None
    return PriceQuote(product_id, market, min(amounts), max(amounts), currency or "")


def _text(value: Any) -> Optional[str]:
    # Provider fields of any other type are treated as missing.
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _amount(price: Any) -> Any:
    if isinstance(price, dict):
        return price.get("amount")
    return price


def _currency(price: Any) -> Optional[str]:
    if isinstance(price, dict):
        return _text(price.get("currency"))
    return None
