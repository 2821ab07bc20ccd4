"""
Shared fixtures for backend tests.

Every test gets a fresh in-memory SQLite database with the production schema,
plus a small builder for positioned OCR fragments.
"""
import pytest
import aiosqlite

from db.database import SCHEMA
from models.schemas import Rect, TextFragment


@pytest.fixture
async def db():
    """Yield a fresh in-memory SQLite connection with the full schema."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.executescript(SCHEMA)
        yield conn


def frag(text, left, top, right, bottom):
    """Build a TextFragment from raw coordinates."""
    return TextFragment(text=text, box=Rect(left=left, top=top, right=right, bottom=bottom))


