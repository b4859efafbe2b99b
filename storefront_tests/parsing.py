"""Pure text helpers for values scraped from storefront pages."""
from __future__ import annotations

import re
from typing import Optional, Sequence

_NUMBER_RE = re.compile(r"[-+]?\d*\.?\d+")
_DIGITS_RE = re.compile(r"\d+")


def parse_price(text: Optional[str]) -> float:
    """Parse a currency string such as ``"$1,590.00"``; 0.0 when nothing numeric is present."""
    if not text:
        return 0.0
    match = _NUMBER_RE.search(text.replace("$", "").replace(",", ""))
    return float(match.group()) if match else 0.0


def parse_quantity(text: Optional[str]) -> int:
    """Parse a header cart counter like ``"(3)"``."""
    if not text:
        return 0
    match = _DIGITS_RE.search(re.sub(r"[()]", "", text).strip())
    return int(match.group()) if match else 0


def extract_order_number(text: Optional[str]) -> Optional[str]:
    """First run of digits in ``text``, or None."""
    if not text:
        return None
    match = _DIGITS_RE.search(text)
    return match.group() if match else None


def match_product_index(titles: Sequence[str], query: str) -> Optional[int]:
    """Index of the first title equal to or containing ``query`` (case-insensitive)."""
    needle = query.strip().lower()
    for index, title in enumerate(titles):
        candidate = title.strip().lower()
        if candidate == needle or needle in candidate:
            return index
    return None


def shipping_option_index(values: Sequence[Optional[str]], method: str) -> int:
    """Index of the first shipping option whose value contains ``method``.

    Falls back to the first option when nothing matches.
    """
    if not values:
        raise ValueError("No shipping options available")
    needle = method.lower()
    for index, value in enumerate(values):
        if value and needle in value.lower():
            return index
    return 0


def payment_method_index(values: Sequence[Optional[str]], method: str) -> Optional[int]:
    """Index of the payment radio whose value equals ``method`` (case-insensitive)."""
    needle = method.lower()
    for index, value in enumerate(values):
        if value and value.lower() == needle:
            return index
    return None


def is_sorted_asc(values: Sequence) -> bool:
    return all(values[i - 1] <= values[i] for i in range(1, len(values)))


def is_sorted_desc(values: Sequence) -> bool:
    return all(values[i - 1] >= values[i] for i in range(1, len(values)))
