"""Structured prices parsed from display strings.

Pricing plans are authored as free-form strings ("$0", "$20/month",
"Custom", "¥99/月"). ``parse_price`` is the only place that interprets
them; everything else works with :class:`Price`.
"""

import re
from typing import Optional

from pydantic import BaseModel

_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")

CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "CNY",
    "₹": "INR",
}

# Display strings that mean "talk to sales" rather than a number
CUSTOM_MARKERS = ("custom", "contact", "定制", "询价")


class Price(BaseModel):
    """A plan price: numeric amount when one could be extracted."""

    display: str
    amount: Optional[float] = None
    currency: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.amount == 0

    @property
    def is_custom(self) -> bool:
        lowered = self.display.lower()
        return any(marker in lowered for marker in CUSTOM_MARKERS)

    @property
    def sort_amount(self) -> float:
        """Amount for ordering; unknown prices sort last."""
        return self.amount if self.amount is not None else float("inf")

    def __str__(self) -> str:
        return self.display


def parse_price(display: str) -> Price:
    """Parse a display string into a :class:`Price`.

    The first numeric token is the amount ("$1,200/year" -> 1200.0).
    Strings without digits keep ``amount=None``.
    """
    display = (display or "").strip()

    amount = None
    match = _NUMBER.search(display)
    if match:
        amount = float(match.group(0).replace(",", ""))

    currency = None
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in display:
            currency = code
            break

    return Price(display=display, amount=amount, currency=currency)
