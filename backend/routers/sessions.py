"""
Sessions Router

POST   /api/sessions                                   — open a bill session
GET    /api/sessions/{id}                              — current participants, items, tax
DELETE /api/sessions/{id}                              — discard a session
POST   /api/sessions/{id}/participants                 — add a participant
PATCH  /api/sessions/{id}/participants/{pid}           — rename a participant
DELETE /api/sessions/{id}/participants/{pid}           — remove a participant (not the last)
GET    /api/sessions/{id}/items?participant=...        — items, optionally filtered by person
PUT    /api/sessions/{id}/items/{item_id}              — add or replace an item
DELETE /api/sessions/{id}/items/{item_id}              — remove an item
POST   /api/sessions/{id}/items/{item_id}/toggle/{pid} — assign / unassign a participant
PUT    /api/sessions/{id}/tax                          — set or clear the tax amount
POST   /api/sessions/{id}/receipt                      — replace items with a parse result
POST   /api/sessions/{id}/clear                        — back to a single "Person 1"
GET    /api/sessions/{id}/totals                       — per-person totals before tip
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from models.schemas import Item, Participant, ParseResult, PersonTotal, SessionState
from services.session_service import BillSession, close_session, get_session, open_session
from services.split_service import items_for_participants

logger = logging.getLogger("billsplit.sessions")
router = APIRouter()


class NameUpdate(BaseModel):
    name: str


class ItemUpdate(BaseModel):
    name: str
    price: float = Field(ge=0)
    assigned_participants: List[str] = []


class TaxUpdate(BaseModel):
    tax: Optional[float] = Field(None, ge=0)


def _session(session_id: str) -> BillSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _state(session: BillSession) -> SessionState:
    return SessionState(
        id=session.id,
        participants=session.participants,
        items=session.items,
        tax=session.tax,
    )


def _require_participant(session: BillSession, participant_id: str) -> None:
    if not any(p.id == participant_id for p in session.participants):
        raise HTTPException(status_code=404, detail="Participant not found")


def _require_item(session: BillSession, item_id: str) -> Item:
    for item in session.items:
        if item.id == item_id:
            return item
    raise HTTPException(status_code=404, detail="Item not found")


@router.post("", response_model=SessionState, status_code=201)
async def create_session():
    return _state(open_session())


@router.get("/{session_id}", response_model=SessionState)
async def read_session(session: BillSession = Depends(_session)):
    return _state(session)


@router.delete("/{session_id}")
async def delete_session(session: BillSession = Depends(_session)):
    close_session(session.id)
    return {"status": "ok", "session_id": session.id}


# ── Participants ─────────────────────────────────────────────────────────────

@router.post("/{session_id}/participants", response_model=Participant, status_code=201)
async def add_participant(body: NameUpdate, session: BillSession = Depends(_session)):
    try:
        return session.add_participant(body.name)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/{session_id}/participants/{participant_id}", response_model=Participant)
async def rename_participant(
    participant_id: str,
    body: NameUpdate,
    session: BillSession = Depends(_session),
):
    _require_participant(session, participant_id)
    try:
        session.rename_participant(participant_id, body.name)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return next(p for p in session.participants if p.id == participant_id)


@router.delete("/{session_id}/participants/{participant_id}", response_model=SessionState)
async def delete_participant(participant_id: str, session: BillSession = Depends(_session)):
    _require_participant(session, participant_id)
    if not session.delete_participant(participant_id):
        raise HTTPException(status_code=409, detail="At least one participant must remain")
    return _state(session)


# ── Items ────────────────────────────────────────────────────────────────────

@router.get("/{session_id}/items", response_model=list[Item])
async def list_items(
    participant: List[str] = Query(default=[]),
    session: BillSession = Depends(_session),
):
    if not participant:
        return session.items
    return items_for_participants(session.items, participant)


@router.put("/{session_id}/items/{item_id}", response_model=Item)
async def upsert_item(item_id: str, body: ItemUpdate, session: BillSession = Depends(_session)):
    known = {p.id for p in session.participants}
    unknown = [pid for pid in body.assigned_participants if pid not in known]
    if unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown participant(s): {', '.join(unknown)}",
        )
    try:
        item = Item(id=item_id, **body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session.upsert_item(item)
    return item


@router.delete("/{session_id}/items/{item_id}")
async def delete_item(item_id: str, session: BillSession = Depends(_session)):
    _require_item(session, item_id)
    session.delete_item(item_id)
    return {"status": "ok", "item_id": item_id}


@router.post("/{session_id}/items/{item_id}/toggle/{participant_id}", response_model=Item)
async def toggle_assignment(
    item_id: str,
    participant_id: str,
    session: BillSession = Depends(_session),
):
    _require_item(session, item_id)
    try:
        session.toggle_assignment(item_id, participant_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Participant not found")
    return _require_item(session, item_id)


# ── Tax, receipt, lifecycle ──────────────────────────────────────────────────

@router.put("/{session_id}/tax", response_model=SessionState)
async def set_tax(body: TaxUpdate, session: BillSession = Depends(_session)):
    session.tax = body.tax
    return _state(session)


@router.post("/{session_id}/receipt", response_model=SessionState)
async def load_receipt(body: ParseResult, session: BillSession = Depends(_session)):
    try:
        session.load_parse_result(body)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Session %s loaded %d parsed items", session.id, len(session.items))
    return _state(session)


@router.post("/{session_id}/clear", response_model=SessionState)
async def clear_session(session: BillSession = Depends(_session)):
    session.clear()
    return _state(session)


@router.get("/{session_id}/totals", response_model=list[PersonTotal])
async def session_totals(session: BillSession = Depends(_session)):
    return session.totals_before_tip()
