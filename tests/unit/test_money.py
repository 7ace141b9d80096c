from decimal import Decimal

import pytest

from listing_crawler.utils.money import parse_price, strip_currency_symbol


def test_strip_currency_symbol() -> None:
    assert strip_currency_symbol("$19.99") == "19.99"
    assert strip_currency_symbol(" £7 ") == "7"


def test_parse_price() -> None:
    assert parse_price("2,089.00") == Decimal("2089.00")
    assert parse_price("19.99") == Decimal("19.99")


@pytest.mark.parametrize("value", ["", "-", "N/A", "abc", "NaN", "Infinity"])
def test_parse_price_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        parse_price(value)
