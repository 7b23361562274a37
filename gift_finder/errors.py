"""Error taxonomy for the gift finder core."""

from typing import List, Optional


class GiftFinderError(Exception):
    """Base class for every failure surfaced to callers."""

    code = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GiftFinderError):
    """Caller input is malformed. Raised before any catalog call."""

    code = "invalid_request"


class ProviderError(GiftFinderError):
    """The catalog/price service is unreachable or returned an error.

    When several lookups failed, ``errors`` holds the individual causes.
    """

    code = "provider_unavailable"

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        errors: Optional[List["ProviderError"]] = None,
    ) -> None:
        super().__init__(message, details)
        self.errors: List[ProviderError] = list(errors or [])

    @classmethod
    def aggregate(cls, message: str, errors: List["ProviderError"]) -> "ProviderError":
        details = "; ".join(sorted({e.message for e in errors})) or None
        return cls(message, details=details, errors=errors)


class InvalidResponseError(GiftFinderError):
    """The drafted response violates the output contract and cannot be repaired."""

    code = "invalid_response"


class PlannerError(GiftFinderError):
    """The reasoning model could not be reached or failed."""

    code = "planner_failed"


class RecommendationTimeoutError(GiftFinderError, TimeoutError):
    """The call exceeded its time budget. No partial result is returned."""

    code = "timeout"
