"""Smoke tests for the assembled app: routers mounted, health endpoint up."""
import pytest
import pytesseract
from httpx import ASGITransport, AsyncClient

import main


def client_for(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestHealth:

    @pytest.mark.asyncio
    async def test_reports_tesseract(self, monkeypatch):
        monkeypatch.setattr(main.pytesseract, "get_tesseract_version", lambda: "5.3.0")
        async with client_for(main.app) as client:
            resp = await client.get("/api/health")
        assert resp.json() == {"status": "ok", "version": "0.1.0",
                               "ocr_available": True, "tesseract": "5.3.0"}

    @pytest.mark.asyncio
    async def test_missing_tesseract(self, monkeypatch):
        def missing():
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(main.pytesseract, "get_tesseract_version", missing)
        async with client_for(main.app) as client:
            resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["ocr_available"] is False

    @pytest.mark.asyncio
    async def test_routers_mounted(self):
        async with client_for(main.app) as client:
            resp = await client.get("/api/split/tip-presets")
        assert resp.status_code == 200
