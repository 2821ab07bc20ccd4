"""
Spatial matcher — pairs item fragments with price fragments using only their
bounding boxes.

Receipts lay out prices in one of two ways relative to the item name:

    Seafood Ramen ........ $14.99      side-by-side (same row, to the right)

    Seafood Pancake
    $16.99                             stacked (next line, same column)

Side-by-side is tried first; stacked only when no same-row price exists.
Price fragments live in a fixed, indexed pool with a parallel `used` flag per
slot, so a price is consumed by at most one item or by the tax line, and the
outcome does not depend on the order the OCR engine reported fragments in.

Matching order:
  1. tax label → nearest unused price on the same row, strictly to its right
  2. quantity-tagged items, in reading order (top, then left)
  3. name-only items, in reading order
"""
import logging
import os
from typing import Iterable, Optional, Sequence

from models.schemas import (
    ClassifiedLine, LineCategory, MatchConfig, ParsedItem, ParseResult, Rect, TextFragment,
)
from services.classify_service import classify_lines, clean_name
from services.geometry import (
    horizontal_gap, is_right_of, is_vertically_below, vertical_gap, vertically_overlaps,
)

logger = logging.getLogger("billsplit.match")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s=%r", name, os.environ.get(name))
        return default


def default_match_config() -> MatchConfig:
    """Thresholds from the environment (MATCH_OVERLAP_RATIO, MATCH_STACK_RATIO, MATCH_PRICE_SLACK)."""
    return MatchConfig(
        overlap_ratio=_env_float("MATCH_OVERLAP_RATIO", 0.5),
        stack_ratio=_env_float("MATCH_STACK_RATIO", 2.0),
        price_slack=int(_env_float("MATCH_PRICE_SLACK", 2)),
    )


def _reading_order(line: ClassifiedLine) -> tuple[float, float]:
    return (line.box.top, line.box.left)


def _of(lines: Iterable[ClassifiedLine], category: LineCategory) -> list[ClassifiedLine]:
    return sorted((l for l in lines if l.category == category), key=_reading_order)


def _same_row_right(anchor: Rect, box: Rect, config: MatchConfig) -> bool:
    return vertically_overlaps(anchor, box, config.overlap_ratio) and is_right_of(box, anchor)


def _nearest(candidates: list[tuple[float, int]]) -> Optional[int]:
    """Slot with the smallest distance; ties go to the earlier slot."""
    if not candidates:
        return None
    return min(candidates)[1]


def _resolve_tax(tax_labels: Sequence[ClassifiedLine], prices: Sequence[ClassifiedLine],
                 used: list[bool], config: MatchConfig) -> Optional[float]:
    for label in tax_labels:
        slot = _nearest([
            (horizontal_gap(label.box, p.box), i)
            for i, p in enumerate(prices)
            if not used[i] and _same_row_right(label.box, p.box, config)
        ])
        if slot is not None:
            used[slot] = True
            logger.debug("Matched tax label %r to price %r", label.text, prices[slot].text)
            return prices[slot].price
        logger.debug("Tax label %r has no price beside it", label.text)
    return None


def _side_by_side(box: Rect, prices: Sequence[ClassifiedLine], used: list[bool],
                  config: MatchConfig) -> Optional[int]:
    return _nearest([
        (horizontal_gap(box, p.box), i)
        for i, p in enumerate(prices)
        if not used[i] and _same_row_right(box, p.box, config)
    ])


def _stacked(box: Rect, prices: Sequence[ClassifiedLine], used: list[bool],
             config: MatchConfig) -> Optional[int]:
    return _nearest([
        (vertical_gap(box, p.box), i)
        for i, p in enumerate(prices)
        if not used[i] and is_vertically_below(box, p.box, config.stack_ratio)
    ])


def match_lines(lines: Sequence[ClassifiedLine], config: Optional[MatchConfig] = None) -> ParseResult:
    """Pair classified lines into (name, price) items and resolve the tax amount."""
    config = config or MatchConfig()

    prices = _of(lines, LineCategory.PRICE_ONLY)
    used = [False] * len(prices)

    tax = _resolve_tax(_of(lines, LineCategory.TAX_LABEL), prices, used, config)

    found: list[tuple[Rect, ParsedItem]] = [
        (l.box, ParsedItem(name=l.name, price=l.price))
        for l in _of(lines, LineCategory.ITEM_WITH_QTY_AND_PRICE)
    ]

    qty_items = _of(lines, LineCategory.ITEM_WITH_QTY)
    names = _of(lines, LineCategory.ITEM_NAME_ONLY)
    taken = [False] * len(names)   # name fragments already used as an item or merged

    queue = [(line, None) for line in qty_items] + [(line, i) for i, line in enumerate(names)]
    for line, name_slot in queue:
        if name_slot is not None:
            if taken[name_slot]:
                continue
            taken[name_slot] = True

        name, box = line.name or "", line.box

        # "12H| (D) Galbi Combo": a second name column beside this one
        partner = _nearest([
            (horizontal_gap(box, n.box), i)
            for i, n in enumerate(names)
            if not taken[i] and _same_row_right(box, n.box, config)
        ])
        if partner is not None:
            taken[partner] = True
            name = clean_name(f"{name} {names[partner].name}")
            box = box.union(names[partner].box)
            logger.debug("Merged item name: %r", name)

        if not name:
            continue

        slot = _side_by_side(box, prices, used, config)
        how = "side"
        if slot is None:
            slot = _stacked(box, prices, used, config)
            how = "stack"
        if slot is None:
            logger.debug("No side-by-side or stacked price for %r", name)
            continue

        used[slot] = True
        logger.debug("Matched (%s) %r with %r", how, name, prices[slot].text)
        found.append((line.box, ParsedItem(name=name, price=prices[slot].price)))

    found.sort(key=lambda pair: (pair[0].top, pair[0].left))
    logger.info("Parsed %d items (tax=%s) from %d lines", len(found), tax, len(lines))
    return ParseResult(items=[item for _, item in found], tax=tax)


def parse_fragments(fragments: Iterable[TextFragment],
                    config: Optional[MatchConfig] = None) -> ParseResult:
    """
    Full pipeline: classify every fragment, then match.

    Never raises — an unexpected failure is logged and yields an empty result,
    which the caller presents as an editable, empty item list.
    """
    config = config or default_match_config()
    try:
        return match_lines(classify_lines(fragments, config), config)
    except Exception:
        logger.exception("Receipt parsing failed; returning no items")
        return ParseResult()
