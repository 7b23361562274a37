import pytest

from gift_finder.models import CatalogCandidate
from gift_finder.utils import format_price_range, narrow_budget, product_url, quote_in_budget


@pytest.mark.parametrize(
    "quote,bounds,expected",
    [
        ((100, 150), (None, None), True),
        ((50, 99), (100, 200), False),
        ((90, 110), (100, 200), True),
        ((190, 260), (100, 200), True),
        ((201, 260), (100, 200), False),
        ((0, 10), (None, 5), True),
        ((10, 20), (25, None), False),
    ],
)
def test_quote_in_budget(quote, bounds, expected):
    assert quote_in_budget(*quote, *bounds) is expected


def test_narrow_budget_only_tightens():
    assert narrow_budget(100, 500, None, 300) == (100, 300)
    assert narrow_budget(100, 500, 50, 900) == (100, 500)
    assert narrow_budget(None, None, 20, 80) == (20, 80)
    # A hint that empties the range is ignored.
    assert narrow_budget(100, 500, 600, None) == (100, 500)


def test_format_price_range():
    assert format_price_range(200, 500) == "200-500"
    assert format_price_range(200, None) == "minimum 200"
    assert format_price_range(None, 99.5) == "maximum 99.50"
    assert format_price_range(None, None) is None


def test_product_url_prefers_provider_url():
    assert product_url(CatalogCandidate("1", "x", url="https://p/1"), "SE") == "https://p/1"
    assert product_url(CatalogCandidate("1", "x"), "SE").endswith("/se/pl/1")
