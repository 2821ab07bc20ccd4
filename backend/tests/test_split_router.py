"""
Tests for the split router — totals, tip application, presets and the
per-person breakdown over HTTP.
"""
import pytest
from httpx import ASGITransport, AsyncClient


@pytest.fixture
def app():
    from fastapi import FastAPI
    from routers.split import router

    test_app = FastAPI()
    test_app.include_router(router, prefix="/api/split")
    return test_app


def client_for(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


PEOPLE = [{"id": "p1", "name": "Ana"}, {"id": "p2", "name": "Ben"}]
ITEMS = [
    {"id": "a", "name": "Bulgogi", "price": 10.0, "assigned_participants": ["p1", "p2"]},
    {"id": "b", "name": "Soju", "price": 5.0, "assigned_participants": ["p1"]},
]


class TestTotals:

    @pytest.mark.asyncio
    async def test_totals(self, app):
        async with client_for(app) as client:
            resp = await client.post("/api/split/totals",
                                     json={"participants": PEOPLE, "items": ITEMS, "tax": 1.5})
        assert resp.status_code == 200
        totals = {t["participant"]["id"]: t for t in resp.json()}
        assert totals["p1"]["subtotal"] == pytest.approx(10.0)
        assert totals["p2"]["tax_share"] == pytest.approx(0.5)
        assert totals["p1"]["total_owed"] == pytest.approx(11.0)

    @pytest.mark.asyncio
    async def test_nothing_assigned(self, app):
        items = [{"name": "Rice", "price": 3.0}]
        async with client_for(app) as client:
            resp = await client.post("/api/split/totals",
                                     json={"participants": PEOPLE, "items": items})
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_unknown_participant_rejected(self, app):
        items = [{"name": "Rice", "price": 3.0, "assigned_participants": ["ghost"]}]
        async with client_for(app) as client:
            resp = await client.post("/api/split/totals",
                                     json={"participants": PEOPLE, "items": items})
        assert resp.status_code == 422
        assert "ghost" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, app):
        items = [{"name": "Refund", "price": -3.0, "assigned_participants": ["p1"]}]
        async with client_for(app) as client:
            resp = await client.post("/api/split/totals",
                                     json={"participants": PEOPLE, "items": items})
        assert resp.status_code == 422


class TestTip:

    async def _before_tip(self, client):
        resp = await client.post("/api/split/totals",
                                 json={"participants": PEOPLE, "items": ITEMS, "tax": 1.5})
        return resp.json()

    @pytest.mark.asyncio
    async def test_percent_tip(self, app):
        async with client_for(app) as client:
            before = await self._before_tip(client)
            resp = await client.post("/api/split/tip", json={
                "totals_before_tip": before,
                "tip": {"kind": "percent", "value": 20},
            })
        body = resp.json()
        assert resp.status_code == 200
        assert body["total_before_tip"] == pytest.approx(16.5)
        assert body["tip_amount"] == pytest.approx(3.3)
        assert body["grand_total"] == pytest.approx(19.8)
        assert sum(t["tip_share"] for t in body["totals"]) == pytest.approx(3.3)

    @pytest.mark.asyncio
    async def test_amount_tip(self, app):
        async with client_for(app) as client:
            before = await self._before_tip(client)
            resp = await client.post("/api/split/tip", json={
                "totals_before_tip": before,
                "tip": {"kind": "amount", "value": 4},
            })
        assert resp.json()["tip_amount"] == 4
        assert resp.json()["grand_total"] == pytest.approx(20.5)

    @pytest.mark.asyncio
    async def test_unknown_tip_kind(self, app):
        async with client_for(app) as client:
            resp = await client.post("/api/split/tip", json={
                "totals_before_tip": [],
                "tip": {"kind": "round_up", "value": 1},
            })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_presets(self, app):
        async with client_for(app) as client:
            resp = await client.get("/api/split/tip-presets")
        assert resp.json() == {
            "presets": [5.0, 10.0, 15.0, 18.0],
            "default": {"kind": "percent", "value": 15.0},
        }

    @pytest.mark.asyncio
    async def test_inconsistent_total_rejected(self, app):
        bad = {"participant": {"id": "p1", "name": "Ana"}, "subtotal": 10.0,
               "tax_share": 1.0, "tip_share": 0.0, "total_owed": 50.0}
        async with client_for(app) as client:
            resp = await client.post("/api/split/tip", json={
                "totals_before_tip": [bad],
                "tip": {"kind": "percent", "value": 15},
            })
        assert resp.status_code == 422


class TestBreakdown:

    @pytest.mark.asyncio
    async def test_breakdown(self, app):
        async with client_for(app) as client:
            resp = await client.post("/api/split/breakdown",
                                     json={"participant_id": "p1", "items": ITEMS})
        lines = resp.json()
        assert [l["item_id"] for l in lines] == ["a", "b"]
        assert lines[0]["share"] == pytest.approx(5.0)
        assert lines[1]["split_between"] == 1
