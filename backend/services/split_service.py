"""
Split Service — turns assigned items, tax and a tip choice into what each
participant owes.

  1. compute_totals_before_tip: each item's price is divided evenly among the
     participants assigned to it; tax is shared in proportion to subtotals.
  2. resolve_tip: a percentage tip is taken on the post-tax total.
  3. apply_tip: the tip is shared in proportion to each post-tax total.

All functions are pure and return fresh lists.
"""
import logging
from typing import Iterable, Optional, Sequence

from models.schemas import (
    AmountTip, BreakdownLine, Item, Participant, PercentTip, PersonTotal,
)

logger = logging.getLogger("billsplit.split")

TIP_PRESETS = (5.0, 10.0, 15.0, 18.0)
DEFAULT_TIP = PercentTip(value=15.0)


def compute_totals_before_tip(
    participants: Sequence[Participant],
    items: Iterable[Item],
    tax_amount: Optional[float] = 0.0,
) -> list[PersonTotal]:
    """
    Per-participant subtotal and tax share.  Participants with nothing
    assigned are left out; when nothing at all is assigned the result is [].
    """
    tax_amount = tax_amount or 0.0
    subtotals: dict[str, float] = {p.id: 0.0 for p in participants}

    for item in items:
        assigned = item.assigned_participants
        if not assigned:
            continue
        share = item.price / len(assigned)
        for pid in assigned:
            if pid not in subtotals:
                logger.warning("Item %r assigned to unknown participant %s", item.name, pid)
                continue
            subtotals[pid] += share

    assigned_subtotal = sum(subtotals.values())
    if assigned_subtotal == 0:
        return []

    totals = []
    for participant in participants:
        subtotal = subtotals[participant.id]
        if subtotal <= 0:
            continue
        tax_share = tax_amount * (subtotal / assigned_subtotal)
        totals.append(PersonTotal(
            participant=participant,
            subtotal=subtotal,
            tax_share=tax_share,
            tip_share=0.0,
            total_owed=subtotal + tax_share,
        ))
    return totals


def grand_total(totals: Iterable[PersonTotal]) -> float:
    """Sum of what everyone owes."""
    return sum(t.total_owed for t in totals)


def resolve_tip(option, base_total: float) -> float:
    """Absolute tip amount for a PercentTip / AmountTip choice."""
    if isinstance(option, PercentTip):
        return base_total * (option.value / 100.0)
    if isinstance(option, AmountTip):
        return option.value
    raise TypeError(f"Unsupported tip option: {option!r}")


def apply_tip(totals_before_tip: Sequence[PersonTotal], tip_amount: float) -> list[PersonTotal]:
    """Share `tip_amount` in proportion to each participant's post-tax total."""
    base = grand_total(totals_before_tip)
    result = []
    for t in totals_before_tip:
        tip_share = tip_amount * (t.total_owed / base) if base > 0 else 0.0
        result.append(t.model_copy(update={
            "tip_share": tip_share,
            "total_owed": t.total_owed + tip_share,
        }))
    return result


# ── Per-person views ──────────────────────────────────────────────────────────

def items_for_participants(items: Iterable[Item], participant_ids: Iterable[str]) -> list[Item]:
    """Items shared by at least one of the given participants."""
    wanted = set(participant_ids)
    return [i for i in items if wanted.intersection(i.assigned_participants)]


def person_breakdown(participant_id: str, items: Iterable[Item]) -> list[BreakdownLine]:
    """Itemised lines behind one participant's subtotal."""
    return [
        BreakdownLine(
            item_id=item.id,
            name=item.name,
            price=item.price,
            share=item.price / len(item.assigned_participants),
            split_between=len(item.assigned_participants),
        )
        for item in items
        if participant_id in item.assigned_participants
    ]
