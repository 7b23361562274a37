# Internal data models for one recommendation call.
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import DEFAULT_SUGGESTIONS


@dataclass(frozen=True)
class SessionConstraints:
    """Per-call constraints supplied by the caller on every turn.

    Never derived from history; an unset bound means unbounded on that side.
    """

    market: str
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    suggestion_count: int = DEFAULT_SUGGESTIONS


@dataclass(frozen=True)
class CatalogCandidate:
    """Search result from the catalog, not yet confirmed to have a price."""
    product_id: str
    name: str
    brand: Optional[str] = None
    image_url: Optional[str] = None
    url: Optional[str] = None  # provider product page, when returned


@dataclass(frozen=True)
class PriceQuote:
    """Price range across current offers for one product in one market."""
    product_id: str
    market: str
    min_price: float
    max_price: float
    currency: str


@dataclass(frozen=True)
class ShownProduct:
    """A product surfaced in a prior assistant turn."""
    product_id: str
    name: str
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class SearchQuery:
    """One catalog query the planner wants issued, with why it fits the person."""
    query: str
    rationale: str


@dataclass
class GiftPlan:
    """Planner output.

    ``min_price``/``max_price`` are hints from the conversation ("something
    cheaper"); the orchestrator only lets them narrow the session budget.
    """

    message: str
    needs_more_info: bool = False
    queries: List[SearchQuery] = field(default_factory=list)
    min_price: Optional[float] = None
    max_price: Optional[float] = None


@dataclass(frozen=True)
class GatheredProduct:
    """Priced, in-budget candidate tagged with the query that found it."""
    candidate: CatalogCandidate
    quote: PriceQuote
    query: SearchQuery


@dataclass(frozen=True)
class AssembledContext:
    """Bounded reasoning input for one turn."""
    constraints: SessionConstraints
    already_shown: Tuple[ShownProduct, ...]
    transcript: Tuple[Tuple[str, str], ...]  # (role, rendered text), chronological
    user_text: str

    @property
    def already_shown_ids(self) -> frozenset:
        return frozenset(p.product_id for p in self.already_shown)
