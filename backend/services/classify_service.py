"""
Line classifier — labels every OCR fragment before spatial matching.

Rules are evaluated in order and the first one that applies wins:

  1. boilerplate keyword or fewer than 3 characters   → ignorable
  2. mentions TAX                                     → tax_label
  3. quantity prefix + price on the same fragment     → item_with_qty_and_price
     the fragment is (almost) nothing but a price     → price_only
     quantity prefix, no price                        → item_with_qty
     no price, not a "*"/"-" modifier line            → item_name_only
     anything else                                    → unclassified
"""
import logging
import re
from typing import Iterable, Optional

from models.schemas import ClassifiedLine, LineCategory, MatchConfig, TextFragment
from services.price_service import find_price, parse_number, match_number

logger = logging.getLogger("billsplit.classify")

# Printed boilerplate that never names an item; any line containing one of
# these is dropped.
IGNORE_KEYWORDS = (
    "SUBTOTAL", "TOTAL", "CASH", "CHANGE", "ORDER", "TABLE", "TIP", "GRATUITY",
    "THANK", "VISITING", "DINE IN", "UNPAID", "SUGGESTIONS", "TERMINAL",
    "GUESTS", "DESCRIPTION", "CLERK", "SERVER", "INV#", "PRICE", "BALANCE",
    "AMOUNT", "VISA", "MASTERCARD", "AMEX", "APPROVED",
    # tip-suggestion printouts
    "15%", "18%", "20%",
)

# AM/PM only as a time marker ("12:41 PM", "7:45PM"), so "LAMB" stays an item.
TIME_MARKER_RE = re.compile(r'(?<![A-Z])[AP]M(?![A-Z])')


def is_ignorable_text(upper: str) -> bool:
    return any(k in upper for k in IGNORE_KEYWORDS) or bool(TIME_MARKER_RE.search(upper))


# "1 Beef Tofu", "2x Coke", "12H| Galbi" — a count followed by the name.
# The lookahead keeps prices such as "32.49" or "1,500" from reading as counts.
QTY_RE = re.compile(r'^\d+(?![\d.,])\S{0,2}(?=\s+\S)')

MODIFIER_MARKERS = ("*", "-")
MIN_LINE_LENGTH = 3


def clean_name(text: str) -> str:
    """Collapse whitespace and trim stray punctuation left by OCR."""
    return re.sub(r'\s+', ' ', text).strip(" \t:|-")


def strip_quantity(text: str) -> str:
    return clean_name(QTY_RE.sub("", text.strip(), count=1))


def classify_line(fragment: TextFragment, config: Optional[MatchConfig] = None) -> ClassifiedLine:
    config = config or MatchConfig()
    stripped = fragment.text.strip()
    upper = stripped.upper()

    def result(category: LineCategory, name=None, price=None) -> ClassifiedLine:
        return ClassifiedLine(fragment=fragment, category=category, name=name, price=price)

    if len(stripped) < MIN_LINE_LENGTH or is_ignorable_text(upper):
        logger.debug("Ignoring keyword/junk line: %r", stripped)
        return result(LineCategory.IGNORABLE)

    if "TAX" in upper:
        logger.debug("Found tax label: %r", stripped)
        return result(LineCategory.TAX_LABEL)

    qty = QTY_RE.match(stripped)
    rest = stripped[qty.end():] if qty else stripped

    price_match = find_price(rest)
    price = parse_number(match_number(price_match)) if price_match else None

    if price is not None and qty:
        name = clean_name(rest[:price_match.start()] + " " + rest[price_match.end():])
        if name:
            return result(LineCategory.ITEM_WITH_QTY_AND_PRICE, name=name, price=price)

    if price is not None:
        covered = len(price_match.group(0))
        if covered >= len(stripped) - config.price_slack:
            return result(LineCategory.PRICE_ONLY, price=price)

    if price is None and qty:
        name = clean_name(rest)
        if name:
            return result(LineCategory.ITEM_WITH_QTY, name=name)

    if price is None and not stripped.startswith(MODIFIER_MARKERS):
        return result(LineCategory.ITEM_NAME_ONLY, name=clean_name(stripped))

    logger.debug("Unclassified/modifier line: %r", stripped)
    return result(LineCategory.UNCLASSIFIED)


def classify_lines(fragments: Iterable[TextFragment],
                   config: Optional[MatchConfig] = None) -> list[ClassifiedLine]:
    return [classify_line(f, config) for f in fragments]
