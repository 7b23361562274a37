"""Wire models exchanged with callers (camelCase JSON)."""

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_MARKET, DEFAULT_SUGGESTIONS


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductPrice(WireModel):
    min: float = Field(strict=True, ge=0)
    max: float = Field(strict=True, ge=0)
    currency: str

    @model_validator(mode="after")
    def _ordered(self) -> "ProductPrice":
        if self.min > self.max:
            raise ValueError("price min exceeds max")
        return self


class SuggestedProduct(WireModel):
    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    image_url: Optional[str] = None
    external_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("externalUrl", "external_url", "pricerunnerUrl"),
        serialization_alias="externalUrl",
    )
    price: Optional[ProductPrice] = None
    reasoning: str = Field(description="Why this gift is a good match for the person")

    @field_validator("reasoning")
    @classmethod
    def _reasoning_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reasoning must not be empty")
        return v.strip()


class ConversationTurn(WireModel):
    """One prior message. Older clients send the text as ``content``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    role: Literal["user", "assistant"]
    text: str = Field(
        default="",
        validation_alias=AliasChoices("text", "content"),
        serialization_alias="text",
    )
    products: Optional[List[SuggestedProduct]] = None


class RecommendationResult(WireModel):
    message: str
    products: Optional[List[SuggestedProduct]] = None
    needs_more_info: Optional[bool] = None


class ChatRequest(WireModel):
    # Optional here so a missing message maps to a 400, not a schema error.
    message: Optional[str] = None
    history: List[ConversationTurn] = Field(default_factory=list)
    market: str = DEFAULT_MARKET
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    num_suggestions: int = DEFAULT_SUGGESTIONS


class CandidateOut(WireModel):
    product_id: str
    name: str
    brand: Optional[str] = None
    image_url: Optional[str] = None
    url: Optional[str] = None


class QuoteOut(WireModel):
    product_id: str
    market: str
    min_price: float
    max_price: float
    currency: str
