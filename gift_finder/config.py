import os

MODEL_NAME = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
MAX_TURNS = int(os.getenv("MAX_TURNS", "6"))  # Maximum number of recent user/assistant turns to keep in context.
MAX_TURN_CHARS = 2000  # Per-turn text cap in the rendered transcript

MAX_QUERIES = 6  # Search queries accepted from one plan
SEARCH_SIZE = int(os.getenv("SEARCH_SIZE", "10"))  # Raw results requested per search query
CANDIDATES_PER_QUERY = 4  # Candidates per query that get a price lookup

DEFAULT_MARKET = os.getenv("DEFAULT_MARKET", "SE")
DEFAULT_SUGGESTIONS = 5
MAX_SUGGESTIONS = 20
CHAT_TIMEOUT_SECONDS = float(os.getenv("CHAT_TIMEOUT_SECONDS", "90"))

CATALOG_BASE_URL = os.getenv("CATALOG_BASE_URL", "https://api.klarna.com/price-comparison/v1")
CATALOG_API_KEY = os.getenv("CATALOG_API_KEY") or os.getenv("KLARNA_API_KEY", "")
CATALOG_TIMEOUT_SECONDS = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "15"))
# Fallback link when the provider does not return a product URL
PRODUCT_URL_TEMPLATE = os.getenv(
    "PRODUCT_URL_TEMPLATE", "https://www.pricerunner.com/{market}/pl/{product_id}"
)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "3001"))
