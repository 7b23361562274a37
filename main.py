"""Simple CLI entry point for the gift finder."""

import argparse
import asyncio
import logging
from typing import List

from dotenv import load_dotenv

load_dotenv()

from gift_finder import ConversationTurn, GiftFinderAgent, GiftFinderError
from gift_finder.config import DEFAULT_MARKET, DEFAULT_SUGGESTIONS


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the gift finder.")
    parser.add_argument("--market", default=DEFAULT_MARKET, help="market code, e.g. SE, GB, DK")
    parser.add_argument("--min-price", type=float, default=None)
    parser.add_argument("--max-price", type=float, default=None)
    parser.add_argument("--count", type=int, default=DEFAULT_SUGGESTIONS, help="number of suggestions")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    agent = GiftFinderAgent()
    # The core is stateless; the conversation lives here.
    history: List[ConversationTurn] = []
    print("Gift finder is ready. Describe who you're shopping for. Type 'exit' or 'quit' to stop.")

    try:
        while True:
            try:
                user_input = input("You: ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nExiting.")
                break

            if not user_input:
                continue
            if user_input.lower() in {"exit", "quit"}:
                print("Goodbye.")
                break
            if user_input.lower() == "clear":
                history.clear()
                print("Conversation cleared.\n")
                continue

            try:
                result = await agent.chat(
                    user_input,
                    history=history,
                    market=args.market,
                    min_price=args.min_price,
                    max_price=args.max_price,
                    num_suggestions=args.count,
                )
            except GiftFinderError as e:
                print(f"Error ({e.code}): {e.message}\n")
                continue

            print(f"Agent: {result.message}")
            for i, p in enumerate(result.products or [], start=1):
                print(f"{i}. {p.name}" + (f" ({p.brand})" if p.brand else ""))
                if p.price:
                    print(f"   - Price: {p.price.min:g}-{p.price.max:g} {p.price.currency}")
                print(f"   - URL: {p.external_url}")
                print(f"   - Reason: {p.reasoning}")
            print()

            history.append(ConversationTurn(role="user", text=user_input))
            history.append(ConversationTurn(role="assistant", text=result.message, products=result.products))
    finally:
        await agent.aclose()

    print("Session ended.")


if __name__ == "__main__":
    asyncio.run(main())
