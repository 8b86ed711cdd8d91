"""
Routing Ledger — Request History with Per-Handler Outcomes

Stores one row per routed request and one row per handler invocation so past
routing decisions can be inspected from the CLI and API.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from switchboard.models import AggregatedResponse, Request


class RoutingLedger:
    """
    Persistent history of routed requests.

    Usage:
        async with RoutingLedger(path) as ledger:
            await ledger.record(request, response)
            rows = await ledger.recent(20)
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or str(Path.home() / ".switchboard" / "data" / "ledger.db")
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db: Optional[aiosqlite.Connection] = None

    async def __aenter__(self) -> "RoutingLedger":
        await self._init_db()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        await self.close()

    async def _init_db(self) -> None:
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS requests (
                request_id TEXT PRIMARY KEY,
                text TEXT NOT NULL,
                pattern TEXT,
                status TEXT NOT NULL,
                cancelled INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                summary TEXT
            )
        """)
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS handler_results (
                request_id TEXT NOT NULL,
                handler TEXT NOT NULL,
                stage INTEGER NOT NULL,
                status TEXT NOT NULL,
                error TEXT,
                duration REAL NOT NULL DEFAULT 0.0,
                PRIMARY KEY (request_id, handler),
                CHECK (duration >= 0.0)
            )
        """)
        await self._db.execute("""
            CREATE INDEX IF NOT EXISTS idx_requests_created
            ON requests(created_at DESC)
        """)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def record(self, request: Request, response: AggregatedResponse) -> None:
        """Store a completed request and its handler outcomes."""
        assert self._db is not None
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime())

        await self._db.execute(
            """INSERT OR REPLACE INTO requests
               (request_id, text, pattern, status, cancelled, created_at, summary)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                request.request_id,
                request.text,
                response.pattern.value if response.pattern else None,
                response.status.value,
                int(response.cancelled),
                timestamp,
                response.summary,
            ),
        )
        await self._db.executemany(
            """INSERT OR REPLACE INTO handler_results
               (request_id, handler, stage, status, error, duration)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (request.request_id, r.handler, r.stage, r.status.value, r.error, r.duration)
                for r in response.results
            ],
        )
        await self._db.commit()

    async def recent(self, limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        """Most recent requests first."""
        assert self._db is not None
        cursor = await self._db.execute(
            """SELECT request_id, text, pattern, status, cancelled, created_at
               FROM requests ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?""",
            (limit, offset),
        )
        rows = await cursor.fetchall()
        return [
            {
                "request_id": row["request_id"],
                "text": row["text"],
                "pattern": row["pattern"],
                "status": row["status"],
                "cancelled": bool(row["cancelled"]),
                "created_at": row["created_at"],
            }
            for row in rows
        ]

    async def results_for(self, request_id: str) -> List[Dict[str, Any]]:
        """Handler outcomes for one request, in stage order."""
        assert self._db is not None
        cursor = await self._db.execute(
            """SELECT handler, stage, status, error, duration
               FROM handler_results WHERE request_id = ?
               ORDER BY stage, rowid""",
            (request_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def stats(self) -> Dict[str, Any]:
        """Counts by overall status and per-handler success rates."""
        assert self._db is not None
        by_status: Dict[str, int] = {}
        cursor = await self._db.execute(
            "SELECT status, COUNT(*) AS n FROM requests GROUP BY status"
        )
        for row in await cursor.fetchall():
            by_status[row["status"]] = row["n"]

        handlers: Dict[str, Dict[str, Any]] = {}
        cursor = await self._db.execute(
            """SELECT handler,
                      COUNT(*) AS total,
                      SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) AS ok,
                      AVG(duration) AS avg_duration
               FROM handler_results GROUP BY handler"""
        )
        for row in await cursor.fetchall():
            handlers[row["handler"]] = {
                "total": row["total"],
                "success_rate": row["ok"] / row["total"] if row["total"] else 0.0,
                "avg_duration": row["avg_duration"] or 0.0,
            }

        return {
            "total_requests": sum(by_status.values()),
            "by_status": by_status,
            "handlers": handlers,
        }
