"""
Money Representation

DESIGN DECISION: Every amount in the ledger is an integer number of cents.
Floats only appear transiently (asset quantities, price x quantity) and are
rounded back to cents with round_half_up before they touch state.

round_half_up reproduces the rounding the ledger has always used for
installments and average prices: x.5 rounds up. Amounts are never negative
where we divide, so the behaviour for negative halves does not matter.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Cents = int
Number = Union[int, float, Decimal, str]

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "US$",
}

_CENT = Decimal("0.01")


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves going up."""
    if isinstance(value, int):
        return value
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
        return int(dec.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Cannot round non-numeric value: {value!r}")


def divide_cents(amount: Number, divisor: Number) -> int:
    """Divide and round half up. Exact for int/Decimal inputs."""
    divisor_dec = Decimal(str(divisor))
    if divisor_dec == 0:
        raise ZeroDivisionError("Cannot divide an amount by zero")
    return round_half_up(Decimal(str(amount)) / divisor_dec)


def to_decimal(cents: Cents) -> Decimal:
    """Cents -> Decimal in currency units (12345 -> Decimal('123.45'))."""
    return (Decimal(cents) / 100).quantize(_CENT)


def format_cents(cents: Cents, currency: str = "BRL") -> str:
    """
    Format cents for display.

    BRL uses the Brazilian convention (R$ 1.234,56), everything else uses
    dot decimals (US$ 1,234.56). Negative values carry a leading minus.
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    sign = "-" if cents < 0 else ""
    body = f"{to_decimal(abs(cents)):,.2f}"
    if currency == "BRL":
        body = body.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{symbol} {body}"


def parse_amount(value: Number) -> Cents:
    """
    Parse a display amount into cents.

    Accepts ints/floats/Decimals (currency units) and strings such as
    "1234.56", "1,234.56", "1.234,56" or "R$ 10,00".

    Raises:
        ValueError: If the value cannot be read as an amount
    """
    if isinstance(value, bool):
        raise ValueError("Booleans are not amounts")
    if isinstance(value, (int, float, Decimal)):
        return round_half_up(Decimal(str(value)) * 100)

    text = str(value).strip()
    for symbol in CURRENCY_SYMBOLS.values():
        text = text.replace(symbol, "")
    text = text.replace(" ", "")
    if not text:
        raise ValueError("Empty amount")

    # Whichever separator comes last is the decimal separator
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        head, _, tail = text.rpartition(",")
        if len(tail) == 3 and head:
            text = text.replace(",", "")
        else:
            text = head.replace(",", "") + "." + tail

    try:
        return round_half_up(Decimal(text) * 100)
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a valid amount: {value!r}")
