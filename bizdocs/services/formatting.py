"""
Display formatting for amounts and dates on generated documents.

Numbers are formatted by the assemblers, never by the table renderer.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union


Number = Union[Decimal, int, float]

_CENTS = Decimal("0.01")

_ONES = [
    "",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def to_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Optional[Number]) -> Decimal:
    return to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def money(value: Optional[Number], prefix: str = "") -> str:
    """`money(1234.5, "Rs. ")` -> "Rs. 1,234.50"."""
    return f"{prefix}{quantize(value):,.2f}"


def plain_amount(value: Optional[Number]) -> str:
    """Two decimals, no grouping (ledger columns)."""
    return f"{quantize(value):.2f}"


def whole_number(value: Optional[Number]) -> str:
    d = to_decimal(value)
    if d == d.to_integral_value():
        return f"{int(d):,}"
    return f"{d:,.2f}"


def format_date(value: Optional[Union[date, datetime, str]], fallback: str = "No date") -> str:
    """Day/month/year, matching how the ledger and invoice print dates."""
    if value is None or value == "":
        return fallback
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def _convert(n: int) -> str:
    if n < 20:
        return _ONES[n]
    if n < 100:
        return _TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")
    if n < 1000:
        rest = n % 100
        return _ONES[n // 100] + " Hundred" + (" " + _convert(rest) if rest else "")
    if n < 100000:
        rest = n % 1000
        return _convert(n // 1000) + " Thousand" + (
            " " + _convert(rest) if rest else ""
        )
    if n < 10000000:
        rest = n % 100000
        return _convert(n // 100000) + " Lakh" + (
            " " + _convert(rest) if rest else ""
        )
    rest = n % 10000000
    return _convert(n // 10000000) + " Crore" + (
        " " + _convert(rest) if rest else ""
    )


def number_to_words(n: int) -> str:
    """Indian numbering system (Thousand, Lakh, Crore)."""
    if n < 0:
        return "Minus " + number_to_words(-n)
    return _convert(n) or "Zero"


def amount_in_words(amount: Optional[Number], currency: str = "Rupees", fraction: str = "Paise") -> str:
    """
    Spell out a currency amount.

    `amount_in_words(Decimal("1250.50"))` -> "Rupees One Thousand Two Hundred Fifty and Fifty Paise".
    """
    q = quantize(amount)
    whole = int(abs(q))
    cents = int((abs(q) - whole) * 100)
    words = f"{currency} {number_to_words(whole)}"
    if cents:
        words += f" and {number_to_words(cents)} {fraction}"
    if q < 0:
        words = "Minus " + words
    return words
