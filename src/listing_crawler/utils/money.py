from __future__ import annotations

from decimal import Decimal, InvalidOperation


def strip_currency_symbol(raw_price: str) -> str:
    """
    Drops the leading currency symbol from a price such as "$19.99".
    Exactly one character is removed, whatever the symbol is.
    """
    return raw_price.strip()[1:]


def parse_price(value: str) -> Decimal:
    """
    Converts a price string such as "2,089.00" or "2089.00" to Decimal.
    Raises ValueError when it cannot be interpreted.
    """
    cleaned = (
        value.strip().replace(",", "").replace(" ", "")  # thousands separators
    )

    if cleaned in {"", "-", "—", "N/A"}:
        raise ValueError(f"Empty/invalid price: {value!r}")

    try:
        price = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid price format: {value!r}") from exc

    if not price.is_finite():
        raise ValueError(f"Invalid price format: {value!r}")
    return price
