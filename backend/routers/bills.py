"""
Bills Router

POST   /api/bills        — save a finished split
GET    /api/bills        — list saved bills (newest first)
GET    /api/bills/{id}   — get one bill with its items
PATCH  /api/bills/{id}   — rename a bill
DELETE /api/bills/{id}   — remove a bill
"""
import logging
import time
import uuid

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException
from pydantic import TypeAdapter

from db.database import get_db
from models.schemas import (
    Item, PersonTotal, SavedBill, SavedBillCreate, SavedBillRename, SavedBillSummary,
)
from services.split_service import grand_total

logger = logging.getLogger("billsplit.bills")
router = APIRouter()

_totals_adapter = TypeAdapter(list[PersonTotal])
_items_adapter = TypeAdapter(list[Item])


def _summary(row: aiosqlite.Row) -> SavedBillSummary:
    return SavedBillSummary(
        id=row["id"],
        description=row["description"],
        timestamp=row["timestamp"],
        grand_total=row["grand_total"],
        person_totals=_totals_adapter.validate_json(row["person_totals"]),
    )


async def _fetch(db: aiosqlite.Connection, bill_id: str) -> aiosqlite.Row:
    async with db.execute("SELECT * FROM saved_bills WHERE id = ?", (bill_id,)) as cur:
        row = await cur.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Bill not found")
    return row


@router.post("", response_model=SavedBill, status_code=201)
async def save_bill(body: SavedBillCreate, db: aiosqlite.Connection = Depends(get_db)):
    if not body.person_totals:
        raise HTTPException(status_code=422, detail="Nothing to save: no participant totals")

    bill = SavedBill(
        id=str(uuid.uuid4()),
        description=body.description.strip(),
        timestamp=int(time.time() * 1000),
        grand_total=round(grand_total(body.person_totals), 2),
        person_totals=body.person_totals,
        items=body.items,
    )
    await db.execute(
        """INSERT OR REPLACE INTO saved_bills
           (id, description, timestamp, grand_total, person_totals, items)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (bill.id, bill.description, bill.timestamp, bill.grand_total,
         _totals_adapter.dump_json(bill.person_totals).decode(),
         _items_adapter.dump_json(bill.items).decode()),
    )
    await db.commit()
    logger.info("Saved bill %s (%d people, total %.2f)",
                bill.id, len(bill.person_totals), bill.grand_total)
    return bill


@router.get("", response_model=list[SavedBillSummary])
async def list_bills(
    limit: int = 50,
    offset: int = 0,
    db: aiosqlite.Connection = Depends(get_db),
):
    async with db.execute(
        "SELECT * FROM saved_bills ORDER BY timestamp DESC LIMIT ? OFFSET ?",
        (limit, offset),
    ) as cur:
        rows = await cur.fetchall()
    return [_summary(r) for r in rows]


@router.get("/{bill_id}", response_model=SavedBill)
async def get_bill(bill_id: str, db: aiosqlite.Connection = Depends(get_db)):
    row = await _fetch(db, bill_id)
    return SavedBill(
        **_summary(row).model_dump(),
        items=_items_adapter.validate_json(row["items"]),
    )


@router.patch("/{bill_id}")
async def rename_bill(
    bill_id: str,
    body: SavedBillRename,
    db: aiosqlite.Connection = Depends(get_db),
):
    await _fetch(db, bill_id)
    description = body.description.strip()
    await db.execute(
        "UPDATE saved_bills SET description = ? WHERE id = ?", (description, bill_id)
    )
    await db.commit()
    return {"status": "ok", "bill_id": bill_id, "description": description}


@router.delete("/{bill_id}")
async def delete_bill(bill_id: str, db: aiosqlite.Connection = Depends(get_db)):
    await _fetch(db, bill_id)
    await db.execute("DELETE FROM saved_bills WHERE id = ?", (bill_id,))
    await db.commit()
    logger.info("Deleted bill %s", bill_id)
    return {"status": "ok", "bill_id": bill_id}
