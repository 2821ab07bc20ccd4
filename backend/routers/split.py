"""
Split Router

POST /api/split/totals       — per-person subtotal + tax share
POST /api/split/tip          — add a tip on top of the before-tip totals
GET  /api/split/tip-presets  — tip percentages offered to the user
POST /api/split/breakdown    — the items behind one person's subtotal
"""
from fastapi import APIRouter, HTTPException

from models.schemas import BreakdownLine, BreakdownRequest, PersonTotal, TipRequest, TipResult, TotalsRequest
from services.split_service import (
    DEFAULT_TIP, TIP_PRESETS, apply_tip, compute_totals_before_tip, grand_total,
    person_breakdown, resolve_tip,
)

router = APIRouter()


@router.post("/totals", response_model=list[PersonTotal])
async def split_totals(body: TotalsRequest):
    known = {p.id for p in body.participants}
    for item in body.items:
        unknown = [pid for pid in item.assigned_participants if pid not in known]
        if unknown:
            raise HTTPException(
                status_code=422,
                detail=f"Item '{item.name}' is assigned to unknown participant(s): {', '.join(unknown)}",
            )
    return compute_totals_before_tip(body.participants, body.items, body.tax)


@router.post("/tip", response_model=TipResult)
async def split_tip(body: TipRequest):
    base = grand_total(body.totals_before_tip)
    tip_amount = resolve_tip(body.tip, base)
    totals = apply_tip(body.totals_before_tip, tip_amount)
    return TipResult(
        tip_amount=tip_amount,
        total_before_tip=base,
        grand_total=grand_total(totals),
        totals=totals,
    )


@router.get("/tip-presets")
async def tip_presets():
    return {"presets": list(TIP_PRESETS), "default": DEFAULT_TIP.model_dump()}


@router.post("/breakdown", response_model=list[BreakdownLine])
async def split_breakdown(body: BreakdownRequest):
    return person_breakdown(body.participant_id, body.items)
