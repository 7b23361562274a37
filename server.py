import logging
import os
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gift_finder import GiftFinderAgent
from gift_finder.config import CORS_ORIGINS, DEFAULT_MARKET, PORT
from gift_finder.errors import (
    GiftFinderError,
    ProviderError,
    RecommendationTimeoutError,
    ValidationError,
)
from gift_finder.schemas import CandidateOut, ChatRequest, QuoteOut, RecommendationResult

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("gift_finder.server")

# Shared agent instance. It holds no conversation state, only the catalog client.
agent = GiftFinderAgent()


def get_agent() -> GiftFinderAgent:
    return agent


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Gift finder API on port %s (catalog key %s, OpenAI key %s)",
        PORT,
        "set" if os.getenv("CATALOG_API_KEY") or os.getenv("KLARNA_API_KEY") else "missing",
        "set" if os.getenv("OPENAI_API_KEY") else "missing",
    )
    try:
        yield
    finally:
        await agent.aclose()


app = FastAPI(title="Gift Finder API", lifespan=lifespan)

# Enable CORS for the chat frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_BY_ERROR = {
    ValidationError: 400,
    ProviderError: 502,
    RecommendationTimeoutError: 504,
}

FAILURE_BY_PATH = {
    "chat": "Failed to process chat",
    "search": "Search failed",
    "offers": "Failed to get offers",
}


def _failure_message(request: Request) -> str:
    return FAILURE_BY_PATH.get(request.url.path.rstrip("/").rsplit("/", 1)[-1], "Request failed")


@app.exception_handler(GiftFinderError)
async def gift_finder_error_handler(request: Request, exc: GiftFinderError):
    status = next((s for cls, s in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)
    if status == 400:
        error = exc.message
    else:
        error = _failure_message(request)
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(
        status_code=status,
        content={"error": error, "code": exc.code, "details": exc.details or exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": _failure_message(request),
            "code": GiftFinderError.code,
            "details": str(exc) or type(exc).__name__,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": ValidationError.code, "details": str(exc.errors())},
    )


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post(
    "/chat",
    response_model=RecommendationResult,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def chat_endpoint(request: ChatRequest, agent: GiftFinderAgent = Depends(get_agent)):
    """Multi-turn conversation with the gift finder."""
    if not request.message or not request.message.strip():
        raise ValidationError("Message is required")

    logger.info("Chat: %r market=%s", request.message[:50], request.market)
    if request.min_price is not None or request.max_price is not None:
        logger.info("Chat: price range %s - %s", request.min_price or 0, request.max_price or "inf")

    result = await agent.chat(
        request.message,
        history=request.history,
        market=request.market,
        min_price=request.min_price,
        max_price=request.max_price,
        num_suggestions=request.num_suggestions,
    )
    logger.info("Chat: %d products, needsMoreInfo=%s", len(result.products or []), result.needs_more_info)
    return result


@router.get("/search", response_model=List[CandidateOut], response_model_by_alias=True)
async def search_endpoint(
    q: Optional[str] = None,
    market: str = DEFAULT_MARKET,
    size: int = Query(10, ge=1, le=50),
    agent: GiftFinderAgent = Depends(get_agent),
):
    """Direct product search, bypassing the planner."""
    if not q or not q.strip():
        raise ValidationError("Query parameter 'q' is required")
    logger.info("Search: %r market=%s", q, market)
    candidates = await agent.catalog.search(q.strip(), market.upper(), size)
    return [CandidateOut(**asdict(c)) for c in candidates]


@router.get("/offers", response_model=Optional[QuoteOut], response_model_by_alias=True)
async def offers_endpoint(
    product_id: Optional[str] = Query(None, alias="productId"),
    market: str = DEFAULT_MARKET,
    agent: GiftFinderAgent = Depends(get_agent),
):
    """Price range for one product."""
    if not product_id:
        raise ValidationError("Query parameter 'productId' is required")
    logger.info("Offers: product=%s market=%s", product_id, market)
    quote = await agent.catalog.price_offers(product_id, market.upper())
    if quote is None:
        return None
    return QuoteOut(**asdict(quote))


app.include_router(router)
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
