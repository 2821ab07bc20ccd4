"""
OCR Service — turns a receipt photo into positioned text fragments.

Tesseract reports words with bounding boxes grouped into (block, paragraph,
line).  A receipt row such as

    1 Beef Tofu                 $17.99

comes back as one Tesseract line, but the matcher expects the name and price
columns as separate fragments, so each line is split wherever the gap between
neighbouring words is wide compared to the text height.
"""
import io
import logging
import os
from itertools import groupby

import numpy as np
import pytesseract
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from models.schemas import ParseResult, Rect, TextFragment
from services.matching_service import parse_fragments

logger = logging.getLogger("billsplit.ocr")

OCR_MIN_CONF = int(os.environ.get("OCR_MIN_CONF", "30"))
OCR_COLUMN_GAP = float(os.environ.get("OCR_COLUMN_GAP", "2.0"))
TESSERACT_CONFIG = "--oem 1 --psm 6"


class OcrError(RuntimeError):
    """Raised when the image cannot be read or Tesseract fails."""
    pass


def preprocess_image(image: Image.Image) -> Image.Image:
    """
    Improve OCR accuracy by preprocessing the receipt image:
    - Convert to grayscale
    - Upscale if small
    - Invert dark-background bands (white-on-black totals)
    - Enhance contrast and sharpen
    """
    img = image.convert("L")

    w, h = img.size
    if w < 800:
        scale = 800 / w
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

    # ~40 horizontal bands; a band averaging below 80 is mostly dark → invert it
    arr = np.array(img)
    band_height = max(1, arr.shape[0] // 40)
    for y in range(0, arr.shape[0], band_height):
        band = arr[y:y + band_height, :]
        if band.mean() < 80:
            arr[y:y + band_height, :] = 255 - band
    img = Image.fromarray(arr)

    img = ImageEnhance.Contrast(img).enhance(2.0)
    return img.filter(ImageFilter.SHARPEN)


def _words(data: dict, scale: float) -> list[dict]:
    """Non-empty, confident words from image_to_data output, in original-image pixels."""
    words = []
    for i, text in enumerate(data["text"]):
        text = (text or "").strip()
        if not text:
            continue
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1
        if conf < OCR_MIN_CONF:
            continue
        left, top = data["left"][i] / scale, data["top"][i] / scale
        words.append({
            "key": (data["block_num"][i], data["par_num"][i], data["line_num"][i]),
            "text": text,
            "box": Rect(left=left, top=top,
                        right=left + data["width"][i] / scale,
                        bottom=top + data["height"][i] / scale),
        })
    return words


def _split_columns(line_words: list[dict]) -> list[TextFragment]:
    """Split one Tesseract line into fragments at wide horizontal gaps."""
    line_words = sorted(line_words, key=lambda w: w["box"].left)
    height = max(w["box"].height for w in line_words)

    fragments: list[TextFragment] = []
    texts, box = [], None
    for word in line_words:
        if box is not None and word["box"].left - box.right > height * OCR_COLUMN_GAP:
            fragments.append(TextFragment(text=" ".join(texts), box=box))
            texts, box = [], None
        texts.append(word["text"])
        box = word["box"] if box is None else box.union(word["box"])
    if texts:
        fragments.append(TextFragment(text=" ".join(texts), box=box))
    return fragments


def fragments_from_ocr_data(data: dict, scale: float = 1.0) -> list[TextFragment]:
    """Group `pytesseract.image_to_data(..., output_type=DICT)` output into fragments."""
    words = _words(data, scale)
    words.sort(key=lambda w: w["key"])
    fragments: list[TextFragment] = []
    for _, group in groupby(words, key=lambda w: w["key"]):
        fragments.extend(_split_columns(list(group)))
    return fragments


def extract_fragments_from_image(image_bytes: bytes) -> list[TextFragment]:
    """Run Tesseract on image bytes and return positioned text fragments."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image = ImageOps.exif_transpose(image)
    except Exception as e:
        raise OcrError(f"Cannot open image: {e}") from e

    if image.mode not in ("RGB", "L", "RGBA"):
        image = image.convert("RGB")

    processed = preprocess_image(image)
    scale = processed.size[0] / image.size[0]

    try:
        data = pytesseract.image_to_data(
            processed, output_type=pytesseract.Output.DICT, config=TESSERACT_CONFIG,
        )
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
        raise OcrError(f"Tesseract failed: {e}") from e

    fragments = fragments_from_ocr_data(data, scale)
    logger.debug("OCR produced %d fragments", len(fragments))
    for f in fragments:
        logger.debug("Fragment %r at %s", f.text, f.box)
    return fragments


def parse_receipt_image(image_bytes: bytes) -> ParseResult:
    """OCR + parse.  OCR failure is treated as "no fragments" → empty result."""
    try:
        fragments = extract_fragments_from_image(image_bytes)
    except OcrError as e:
        logger.warning("OCR failed, returning no items: %s", e)
        return ParseResult()
    return parse_fragments(fragments)
