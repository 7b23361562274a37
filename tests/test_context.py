from gift_finder.config import MAX_TURNS
from gift_finder.context import assemble_context, collect_already_shown, render_context
from gift_finder.models import SessionConstraints
from gift_finder.schemas import ConversationTurn, ProductPrice, SuggestedProduct


def product(pid, low=100.0, high=150.0):
    return SuggestedProduct(
        product_id=pid,
        name=f"Item {pid}",
        external_url=f"https://example.com/{pid}",
        price=ProductPrice(min=low, max=high, currency="SEK"),
        reasoning="Fits.",
    )


def history():
    return [
        ConversationTurn(role="user", text="gift for my brother, he climbs"),
        ConversationTurn(role="assistant", text="Try these", products=[product("P1"), product("P2")]),
        ConversationTurn(role="user", text="more like P2"),
        ConversationTurn(role="assistant", text="Sure", products=[product("P2"), product("P3")]),
    ]


def test_empty_history_has_only_constraints_and_utterance():
    ctx = assemble_context([], "  gift for my mom  ", SessionConstraints(market="SE"))

    assert ctx.already_shown == ()
    assert ctx.transcript == ()
    assert ctx.user_text == "gift for my mom"
    text = render_context(ctx)
    assert "Previous conversation" not in text
    assert "[Market: SE]" in text
    assert "[Provide 5 gift suggestions.]" in text
    assert text.endswith("User: gift for my mom")


def test_already_shown_replayed_from_all_assistant_turns():
    shown = collect_already_shown(history())

    assert [p.product_id for p in shown] == ["P1", "P2", "P3"]
    assert shown[0].min_price == 100.0 and shown[0].currency == "SEK"


def test_already_shown_is_deterministic():
    h = history()
    first = assemble_context(h, "next", SessionConstraints(market="SE"))
    second = assemble_context(h, "next", SessionConstraints(market="SE"))

    assert first.already_shown_ids == second.already_shown_ids == {"P1", "P2", "P3"}


def test_transcript_is_bounded_but_already_shown_is_not():
    h = [ConversationTurn(role="assistant", text="old", products=[product("OLD")])]
    for i in range(MAX_TURNS * 3):
        h.append(ConversationTurn(role="user", text=f"message {i}"))

    ctx = assemble_context(h, "latest", SessionConstraints(market="SE"))

    assert len(ctx.transcript) == 2 * MAX_TURNS
    assert ctx.transcript[-1] == ("user", f"message {MAX_TURNS * 3 - 1}")
    assert "OLD" in ctx.already_shown_ids


def test_render_orders_transcript_and_lists_products():
    ctx = assemble_context(history(), "cheaper please", SessionConstraints(market="GB", max_price=300))
    text = render_context(ctx)

    assert "[Budget constraint: maximum 300." in text
    assert "[Already suggested, do not repeat: Item P1 (id P1), Item P2 (id P2), Item P3 (id P3)]" in text
    assert text.index("he climbs") < text.index("more like P2") < text.index("User: cheaper please")
    assert "[Previously suggested products: Item P1 (100-150 SEK), Item P2 (100-150 SEK)]" in text


def test_budget_directive_for_closed_range():
    ctx = assemble_context([], "x", SessionConstraints(market="SE", min_price=200, max_price=500))

    assert "[Budget constraint: 200-500. Filter results to stay within this range.]" in render_context(ctx)


def test_turn_accepts_content_alias():
    turn = ConversationTurn.model_validate({"role": "user", "content": "hello"})

    assert turn.text == "hello"
