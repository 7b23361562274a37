"""Context assembly: history + new utterance + constraints -> one bounded reasoning input.

The already-shown set is replayed from history on every call, never stored.
"""

from typing import Dict, List, Sequence, Tuple

from .config import MAX_TURN_CHARS, MAX_TURNS
from .models import AssembledContext, SessionConstraints, ShownProduct
from .schemas import ConversationTurn, SuggestedProduct
from .utils import format_price_range


def assemble_context(
    history: Sequence[ConversationTurn],
    user_text: str,
    constraints: SessionConstraints,
) -> AssembledContext:
    """Build the reasoning input for one turn."""
    return AssembledContext(
        constraints=constraints,
        already_shown=collect_already_shown(history),
        transcript=_transcript(history),
        user_text=user_text.strip(),
    )


def collect_already_shown(history: Sequence[ConversationTurn]) -> Tuple[ShownProduct, ...]:
    """Every product suggested by any assistant turn, first occurrence wins."""
    seen: Dict[str, ShownProduct] = {}
    for turn in history:
        if turn.role != "assistant" or not turn.products:
            continue
        for p in turn.products:
            if p.product_id in seen:
                continue
            seen[p.product_id] = ShownProduct(
                product_id=p.product_id,
                name=p.name,
                min_price=p.price.min if p.price else None,
                max_price=p.price.max if p.price else None,
                currency=p.price.currency if p.price else None,
            )
    return tuple(seen.values())


def _transcript(history: Sequence[ConversationTurn]) -> Tuple[Tuple[str, str], ...]:
    # Keep only the most recent MAX_TURNS user/assistant pairs.
    recent = list(history)[-2 * MAX_TURNS:]
    lines: List[Tuple[str, str]] = []
    for turn in recent:
        text = _clip(turn.text)
        if turn.role == "assistant" and turn.products:
            text += f"\n[Previously suggested products: {_product_summary(turn.products)}]"
        lines.append((turn.role, text))
    return tuple(lines)


def _product_summary(products: Sequence[SuggestedProduct]) -> str:
    parts = []
    for p in products:
        if p.price:
            parts.append(f"{p.name} ({p.price.min:g}-{p.price.max:g} {p.price.currency})")
        else:
            parts.append(p.name)
    return ", ".join(parts)


def _clip(text: str) -> str:
    text = (text or "").strip()
    if len(text) <= MAX_TURN_CHARS:
        return text
    return text[:MAX_TURN_CHARS].rstrip() + "..."


def render_context(ctx: AssembledContext) -> str:
    """Render the assembled context as the model's input text."""
    c = ctx.constraints
    header = [f"[Market: {c.market}]"]
    price_range = format_price_range(c.min_price, c.max_price)
    if price_range:
        header.append(f"[Budget constraint: {price_range}. Filter results to stay within this range.]")
    header.append(f"[Provide {c.suggestion_count} gift suggestions.]")
    if ctx.already_shown:
        shown = ", ".join(f"{p.name} (id {p.product_id})" for p in ctx.already_shown)
        header.append(f"[Already suggested, do not repeat: {shown}]")

    blocks = ["\n".join(header)]
    if ctx.transcript:
        convo = "\n\n".join(
            f"{'User' if role == 'user' else 'Assistant'}: {text}" for role, text in ctx.transcript
        )
        blocks.append(f"Previous conversation:\n{convo}")
    blocks.append(f"User: {ctx.user_text}")
    return "\n\n".join(blocks)
