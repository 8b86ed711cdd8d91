"""Tests for the FastAPI server."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from switchboard.api.server import app

pytestmark = pytest.mark.anyio


@pytest.fixture(autouse=True)
def home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("SWITCHBOARD_HOME", str(tmp_path))
    monkeypatch.delenv("SWITCHBOARD_TIMEOUT", raising=False)
    return tmp_path


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_health() -> None:
    async with _client() as client:
        response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert "uptime_seconds" in data


async def test_handlers() -> None:
    async with _client() as client:
        response = await client.get("/api/handlers")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == len(data["handlers"])
    assert data["handlers"][0]["name"] == "kubernetes-sme"


async def test_classify() -> None:
    async with _client() as client:
        response = await client.post("/api/classify", json={"task": "terraform the AKS cluster"})
    assert response.status_code == 200
    handlers = [m["handler"] for m in response.json()["matches"]]
    assert handlers == ["kubernetes-sme", "terraform-expert"]


async def test_plan() -> None:
    async with _client() as client:
        response = await client.post(
            "/api/plan", json={"task": "Build a docker image and deploy it to AKS"}
        )
    assert response.status_code == 200
    plan = response.json()["plan"]
    assert plan["pattern"] == "sequential"
    assert plan["stages"] == [["docker-expert"], ["kubernetes-sme"]]


async def test_plan_requires_task() -> None:
    async with _client() as client:
        response = await client.post("/api/plan", json={})
    assert response.status_code == 422


async def test_route_no_match() -> None:
    async with _client() as client:
        response = await client.post("/api/route", json={"task": "bake bread"})
    assert response.status_code == 404
    assert "NoMatch" in response.json()["detail"]


async def test_route_and_history(home: Path) -> None:
    async with _client() as client:
        response = await client.post(
            "/api/route", json={"task": "write docs", "domain_hints": ["cloud"]}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["pattern"] == "parallel"
        assert [r["handler"] for r in data["results"]] == ["azure-architect", "documentation-writer"]

        response = await client.get("/api/history")
    assert response.status_code == 200
    history = response.json()
    assert history["count"] == 1
    assert history["requests"][0]["request_id"] == data["request_id"]


async def test_route_without_record(home: Path) -> None:
    async with _client() as client:
        response = await client.post("/api/route", json={"task": "write docs", "record": False})
    assert response.status_code == 200
    assert not (home / "data" / "ledger.db").exists()


async def test_history_empty() -> None:
    async with _client() as client:
        response = await client.get("/api/history")
    assert response.status_code == 200
    assert response.json()["requests"] == []


@pytest.mark.parametrize(
    "body",
    [
        {"task": None},
        {"task": 42},
        {"task": "   "},
        {"task": "write docs", "domain_hints": [1, 2]},
        {"task": "write docs", "domain_hints": {"cloud": True}},
    ],
)
async def test_route_rejects_malformed_body(body: dict[str, object], home: Path) -> None:
    async with _client() as client:
        response = await client.post("/api/route", json=body)
    assert response.status_code == 422
    assert not (home / "data" / "ledger.db").exists()
