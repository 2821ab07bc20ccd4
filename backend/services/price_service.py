"""
Price extraction for receipts printed in either numeric convention.

    "$15,000.00"  → 15000.0   (thousands comma, decimal dot)
    "15.000,00"   → 15000.0   (thousands dot, decimal comma)
    "¥1500"       → 1500.0    (no-decimal currency)
    "1,500"       → 1500.0

A separator followed by exactly two trailing digits is the decimal point;
every other separator is a thousands separator.  Without such a group the
amount has no fractional part.
"""
import logging
import re
from typing import Optional

logger = logging.getLogger("billsplit.price")

# OCR often reads "$" as "S", so a lone S not glued to a word counts as a symbol.
CURRENCY_SYMBOL = r'(?:[$¥₩₱€£]|(?<![A-Za-z])S)'

# A currency-prefixed amount may be a single digit ("$5") or start with a
# separator ("$.99"); a bare number needs at least two characters so stray
# digits in names ("7UP") are not read as prices.
PRICE_RE = re.compile(
    rf'(?:{CURRENCY_SYMBOL}\s?(?P<prefixed>[.,]?\d(?:[\d.,]*\d)?))'
    r'|(?P<bare>\d[\d.,]*\d)'
)

DECIMAL_TAIL_RE = re.compile(r'([.,])(\d{2})$')


def find_price(text: str) -> Optional[re.Match]:
    """Return the first price-looking match in `text`, or None."""
    return PRICE_RE.search(text)


def match_number(match: re.Match) -> str:
    return match.group("prefixed") or match.group("bare")


def parse_number(number: str) -> Optional[float]:
    """Convert a digits-and-separators token into a float (see module docstring)."""
    tail = DECIMAL_TAIL_RE.search(number)
    if tail:
        cents = tail.group(2)
        integer_part = number[:tail.start()].replace(".", "").replace(",", "")
        candidate = f"{integer_part or '0'}.{cents}"
    else:
        candidate = number.replace(".", "").replace(",", "")

    try:
        return float(candidate)
    except ValueError:
        logger.debug("Unparseable amount %r", number)
        return None


def extract_price(text: str) -> Optional[float]:
    """Extract the first amount in `text`; None when there is none."""
    match = find_price(text)
    if match is None:
        return None
    return parse_number(match_number(match))
