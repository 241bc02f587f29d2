"""
Text sanitizer for the standard PDF fonts.

Helvetica and friends only carry the single-byte WinAnsi (cp1252) repertoire.
Drawing anything outside it fails inside reportlab, so every string passes
through `safe()` before it reaches the canvas.
"""

from __future__ import annotations

from typing import Dict, Optional


FONT_ENCODING = "cp1252"

# Currency glyphs missing from cp1252 and their fixed ASCII stand-ins.
CURRENCY_TOKENS: Dict[str, str] = {
    "₹": "Rs.",  # Indian rupee
    "₨": "Rs.",  # rupee sign
    "₦": "NGN",
    "₱": "PHP",
    "₩": "KRW",
    "₺": "TRY",
    "₽": "RUB",
    "₴": "UAH",
    "₫": "VND",
    "₪": "ILS",
    "₸": "KZT",
    "₵": "GHS",
    "฿": "THB",
    "₿": "BTC",
}

REPLACEMENT = "?"


def _encodable(ch: str) -> bool:
    try:
        ch.encode(FONT_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def safe(text: Optional[object]) -> str:
    """
    Return `text` rewritten so that every character can be drawn.

    Known currency glyphs become their ASCII token; any other character the
    font cannot encode becomes "?". The output is pure cp1252, so applying
    `safe` twice is the same as applying it once.
    """
    if text is None:
        return ""
    out = []
    for ch in str(text):
        token = CURRENCY_TOKENS.get(ch)
        if token is not None:
            out.append(token)
        elif _encodable(ch):
            out.append(ch)
        else:
            out.append(REPLACEMENT)
    return "".join(out)
