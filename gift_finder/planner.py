"""Plan step: the reasoning model picks which catalog searches to run.

This is the only model-driven step of a turn. The model gets one declared
tool, ``search_gifts``; a plain text reply (no tool call) means it needs
more information from the user.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from .config import MAX_QUERIES, MODEL_NAME
from .context import render_context
from .errors import PlannerError
from .models import AssembledContext, GiftPlan, SearchQuery

logger = logging.getLogger(__name__)

SYSTEM_PLANNER_PROMPT = (
    "You are Santa's cheerful helper, finding thoughtful, real gifts people can actually buy.\n\n"
    "When the user describes a person, think about which gift categories suit their interests, "
    "age and personality, and call search_gifts with 3-5 diverse product search queries "
    "(short product keywords, in the language of the market). For every query, write a rationale: "
    "one or two warm sentences telling the user why that kind of gift fits this particular person.\n\n"
    "When the user gives feedback:\n"
    "- 'too expensive' or 'something cheaper': search budget alternatives and set max_price below "
    "the prices already suggested\n"
    "- 'they don't like X': avoid that category and try something else\n"
    "- 'something more personal': look for customizable or hobby-specific items\n"
    "- 'more options like X': search for similar products\n\n"
    "Never search for products that were already suggested. Respect the budget constraint. "
    "Put a short, festive message to the user in 'message'.\n"
    "If the description is too vague to derive any search, do not call the tool: reply with a "
    "friendly follow-up question instead."
)


tools = [
    {
        "type": "function",
        "function": {
            "name": "search_gifts",
            "description": "Search the price comparison catalog for gift ideas.",
            "parameters": {
                "type": "object",
                "properties": {
                    "message": {
                        "type": "string",
                        "description": "Conversational message shown above the suggestions.",
                    },
                    "queries": {
                        "type": "array",
                        "description": "Independent product searches, one per gift category.",
                        "items": {
                            "type": "object",
                            "properties": {
                                "query": {
                                    "type": "string",
                                    "description": "Product search keywords, e.g. 'gardening gloves', 'pruning shears'.",
                                },
                                "rationale": {
                                    "type": "string",
                                    "description": "Why this kind of gift matches the person.",
                                },
                            },
                            "required": ["query", "rationale"],
                        },
                    },
                    "min_price": {
                        "type": "number",
                        "description": "Optional lower price bound inferred from the conversation.",
                    },
                    "max_price": {
                        "type": "number",
                        "description": "Optional upper price bound inferred from the conversation.",
                    },
                },
                "required": ["message", "queries"],
            },
        },
    }
]


class AbstractPlanner:
    """Interface for planners."""

    async def plan(self, context: AssembledContext) -> GiftPlan:
        raise NotImplementedError


class OpenAIPlanner(AbstractPlanner):
    """Planner backed by OpenAI tool calling."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = MODEL_NAME) -> None:
        self._client = client
        self._model = model

    @property
    def client(self) -> AsyncOpenAI:
        # Created on first use so importing the package does not need an API key.
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def plan(self, context: AssembledContext) -> GiftPlan:
        try:
            resp = await self.client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PLANNER_PROMPT},
                    {"role": "user", "content": render_context(context)},
                ],
                tools=tools,
                tool_choice="auto",
            )
        except OpenAIError as e:
            raise PlannerError("Reasoning model request failed", details=type(e).__name__) from e

        msg = resp.choices[0].message
        for tc in msg.tool_calls or []:
            # Ignore unknown tool calls
            if tc.function.name != "search_gifts":
                continue
            try:
                args: Dict[str, Any] = json.loads(tc.function.arguments)
            except json.JSONDecodeError as e:
                logger.warning("Failed to parse planner tool args: %s", e)
                args = {}
            return plan_from_args(args, fallback_message=msg.content or "")

        return GiftPlan(
            message=(msg.content or "").strip() or "Could you tell me a bit more about the person?",
            needs_more_info=True,
        )


def plan_from_args(args: Dict[str, Any], fallback_message: str = "") -> GiftPlan:
    """Build a GiftPlan from ``search_gifts`` arguments, dropping unusable queries."""
    queries: List[SearchQuery] = []
    seen: set[str] = set()
    for raw in args.get("queries") or []:
        if not isinstance(raw, dict):
            continue
        query = raw.get("query")
        if not isinstance(query, str) or not query.strip():
            continue
        key = query.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        rationale = raw.get("rationale")
        if not isinstance(rationale, str) or not rationale.strip():
            rationale = f"A good pick given their interest in {query.strip()}."
        queries.append(SearchQuery(query=query.strip(), rationale=rationale.strip()))
        if len(queries) >= MAX_QUERIES:
            break

    message = args.get("message")
    if not isinstance(message, str) or not message.strip():
        message = fallback_message
    return GiftPlan(
        message=(message or "").strip(),
        needs_more_info=not queries,
        queries=queries,
        min_price=_price(args.get("min_price")),
        max_price=_price(args.get("max_price")),
    )


def _price(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
