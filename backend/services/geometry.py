"""
Row / column predicates over bounding boxes.

Receipts are photographed, so "same line" and "next line" have to be inferred
from box centres and heights rather than from exact coordinates.
"""
from models.schemas import Rect


def vertically_overlaps(a: Rect, b: Rect, ratio: float = 0.5) -> bool:
    """True when the two boxes sit on the same visual row."""
    max_height = max(a.height, b.height)
    return abs(a.center_y - b.center_y) < max_height * ratio


def horizontally_overlaps(a: Rect, b: Rect) -> bool:
    return a.left < b.right and a.right > b.left


def is_right_of(box: Rect, anchor: Rect) -> bool:
    """Strictly to the right: starts after the anchor ends."""
    return box.left > anchor.right


def is_vertically_below(item_box: Rect, price_box: Rect, ratio: float = 2.0) -> bool:
    """
    True when the price sits on the next line(s) directly under the item:
    the columns overlap, the price does not start above the item, and its
    centre is below the item's centre by less than `ratio` line heights.
    """
    if not horizontally_overlaps(item_box, price_box):
        return False
    if price_box.top < item_box.top:
        return False

    distance = price_box.center_y - item_box.center_y
    if distance <= 0:
        return False

    max_height = max(item_box.height, price_box.height)
    return distance < max_height * ratio


def horizontal_gap(item_box: Rect, price_box: Rect) -> float:
    return abs(price_box.left - item_box.right)


def vertical_gap(item_box: Rect, price_box: Rect) -> float:
    return abs(price_box.top - item_box.bottom)
