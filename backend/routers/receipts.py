"""
Receipts Router

POST /api/receipts/parse   — pair already-recognised text fragments into items + tax
POST /api/receipts/upload  — upload a receipt photo, run OCR, then parse

Neither endpoint fails on an unreadable receipt: the response simply carries
fewer (or no) items and no tax, for the user to correct by hand.
"""
import logging

from fastapi import APIRouter, File, UploadFile

from models.schemas import ParseRequest, ParseResult
from services.matching_service import parse_fragments
from services.ocr_service import parse_receipt_image

logger = logging.getLogger("billsplit.receipts")
router = APIRouter()


@router.post("/parse", response_model=ParseResult)
async def parse_receipt(body: ParseRequest):
    return parse_fragments(body.fragments)


@router.post("/upload", response_model=ParseResult)
async def upload_receipt(file: UploadFile = File(...)):
    contents = await file.read()
    logger.info("Received %s (%d KB)", file.filename, len(contents) // 1024)
    return parse_receipt_image(contents)
