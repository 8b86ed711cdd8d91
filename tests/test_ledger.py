"""Tests for the routing ledger."""

from __future__ import annotations

from pathlib import Path

import pytest

from switchboard.models import (
    AggregatedResponse,
    HandlerResult,
    OverallStatus,
    Pattern,
    Request,
    ResultStatus,
)
from switchboard.storage.ledger import RoutingLedger

pytestmark = pytest.mark.anyio


def _response(*statuses: ResultStatus, overall: OverallStatus = OverallStatus.SUCCESS) -> AggregatedResponse:
    results = [
        HandlerResult(
            handler=f"h{i}",
            status=s,
            stage=i,
            started_at=10.0,
            finished_at=10.5,
            error=None if s == ResultStatus.SUCCESS else "broke",
        )
        for i, s in enumerate(statuses)
    ]
    return AggregatedResponse(
        status=overall, results=results, summary="summary", pattern=Pattern.SEQUENTIAL
    )


class TestRoutingLedger:
    async def test_record_and_recent(self) -> None:
        async with RoutingLedger(":memory:") as ledger:
            first = Request("first task")
            second = Request("second task")
            await ledger.record(first, _response(ResultStatus.SUCCESS))
            await ledger.record(second, _response(ResultStatus.SUCCESS))

            rows = await ledger.recent()
            assert [r["request_id"] for r in rows] == [second.request_id, first.request_id]
            assert rows[0]["pattern"] == "sequential"
            assert rows[0]["cancelled"] is False

    async def test_results_for(self) -> None:
        async with RoutingLedger(":memory:") as ledger:
            request = Request("task")
            await ledger.record(
                request,
                _response(ResultStatus.SUCCESS, ResultStatus.TIMEOUT, overall=OverallStatus.PARTIAL),
            )
            results = await ledger.results_for(request.request_id)

        assert [(r["handler"], r["status"]) for r in results] == [
            ("h0", "success"),
            ("h1", "timeout"),
        ]
        assert results[1]["error"] == "broke"
        assert results[0]["duration"] == pytest.approx(0.5)

    async def test_stats(self) -> None:
        async with RoutingLedger(":memory:") as ledger:
            await ledger.record(Request("a"), _response(ResultStatus.SUCCESS))
            await ledger.record(
                Request("b"),
                _response(ResultStatus.FAILURE, overall=OverallStatus.FAILURE),
            )
            stats = await ledger.stats()

        assert stats["total_requests"] == 2
        assert stats["by_status"] == {"success": 1, "failure": 1}
        assert stats["handlers"]["h0"]["total"] == 2
        assert stats["handlers"]["h0"]["success_rate"] == 0.5

    async def test_file_backed(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "ledger.db"
        request = Request("persist me")
        async with RoutingLedger(str(db_path)) as ledger:
            await ledger.record(request, _response(ResultStatus.SUCCESS))

        async with RoutingLedger(str(db_path)) as ledger:
            rows = await ledger.recent(limit=1)
        assert rows[0]["text"] == "persist me"
