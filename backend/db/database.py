import logging
import aiosqlite
import os

logger = logging.getLogger("billsplit.db")
DB_PATH = os.environ.get("DB_PATH", "/data/billsplit.db")

async def get_db() -> aiosqlite.Connection:
    """Dependency: yields an open DB connection."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        yield db

async def init_db():
    """Create all tables if they don't exist."""
    os.makedirs(os.path.dirname(DB_PATH) or ".", exist_ok=True)
    async with aiosqlite.connect(DB_PATH) as db:
        await db.executescript(SCHEMA)
        await db.commit()
    logger.info("Initialized at %s", DB_PATH)


SCHEMA = """
-- Completed bills, kept for the history screen
CREATE TABLE IF NOT EXISTS saved_bills (
    id              TEXT PRIMARY KEY,      -- uuid4
    description     TEXT NOT NULL DEFAULT '',
    timestamp       INTEGER NOT NULL,      -- epoch milliseconds
    grand_total     REAL NOT NULL,
    person_totals   TEXT NOT NULL,         -- JSON list of PersonTotal
    items           TEXT NOT NULL          -- JSON list of Item
);

CREATE INDEX IF NOT EXISTS idx_saved_bills_timestamp ON saved_bills(timestamp DESC);
"""
