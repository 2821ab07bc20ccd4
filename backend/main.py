from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import time

import pytesseract

from db.database import init_db
from routers import bills, receipts, sessions, split
from services.matching_service import default_match_config

VERSION = "0.1.0"

# ── Logging setup ─────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Quiet noisy libraries unless we're in DEBUG
if LOG_LEVEL != "DEBUG":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger("billsplit")

app = FastAPI(
    title="Billsplit — Receipt Splitter",
    description="Reads restaurant receipts and splits the bill between friends",
    version=VERSION,
)

_cors_origins = os.environ.get("CORS_ORIGINS", "").strip()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins.split(",") if _cors_origins else ["*"],
    allow_credentials=bool(_cors_origins),  # only send credentials when origins are explicit
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(receipts.router, prefix="/api/receipts", tags=["receipts"])
app.include_router(split.router,    prefix="/api/split",    tags=["split"])
app.include_router(bills.router,    prefix="/api/bills",    tags=["bills"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if LOG_LEVEL == "DEBUG" or response.status_code >= 400:
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.DEBUG,
            "%s %s → %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
    return response

@app.on_event("startup")
async def on_startup():
    config = default_match_config()
    logger.info("Starting Billsplit v%s  LOG_LEVEL=%s  DB=%s", VERSION,
                LOG_LEVEL, os.environ.get("DB_PATH", "(default)"))
    logger.info("Matcher thresholds: overlap=%.2f stack=%.2f slack=%d",
                config.overlap_ratio, config.stack_ratio, config.price_slack)
    await init_db()

@app.get("/api/health")
async def health():
    """Liveness plus whether photo upload can work (Tesseract on PATH)."""
    try:
        tesseract = str(pytesseract.get_tesseract_version())
    except pytesseract.TesseractNotFoundError:
        tesseract = None
    return {"status": "ok", "version": VERSION, "ocr_available": tesseract is not None,
            "tesseract": tesseract}
