from .agent import GiftFinderAgent
from .catalog import AbstractCatalogClient, PriceRunnerClient
from .errors import (
    GiftFinderError,
    InvalidResponseError,
    PlannerError,
    ProviderError,
    RecommendationTimeoutError,
    ValidationError,
)
from .planner import AbstractPlanner, OpenAIPlanner
from .schemas import ConversationTurn, RecommendationResult, SuggestedProduct

__all__ = [
    "GiftFinderAgent",
    "AbstractCatalogClient",
    "PriceRunnerClient",
    "AbstractPlanner",
    "OpenAIPlanner",
    "ConversationTurn",
    "RecommendationResult",
    "SuggestedProduct",
    "GiftFinderError",
    "InvalidResponseError",
    "PlannerError",
    "ProviderError",
    "RecommendationTimeoutError",
    "ValidationError",
]
