"""SQLite database via aiosqlite."""
import aiosqlite
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from shared.schemas import Opportunity, Position, Trade, utcnow
from storage.models import ALL_TABLES, BALANCE_KEY

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor, rows) -> list[dict]:
    columns = [d[0] for d in cursor.description]
    return [dict(zip(columns, row)) for row in rows]


class Transaction:
    """Write handle valid only inside ``Database.transaction()``.

    Every statement issued here lands in the same BEGIN/COMMIT unit, so a
    failure anywhere rolls back balance, trade, position and log together.
    """

    def __init__(self, conn: aiosqlite.Connection, log_retention: int):
        self._conn = conn
        self._log_retention = log_retention

    async def fetch_one(self, sql: str, params: tuple = ()) -> Optional[dict]:
        cursor = await self._conn.execute(sql, params)
        row = await cursor.fetchone()
        if row is None:
            return None
        return _rows_to_dicts(cursor, [row])[0]

    async def get_balance(self) -> float:
        row = await self.fetch_one(
            "SELECT value FROM settings WHERE key = ?", (BALANCE_KEY,)
        )
        return float(row["value"]) if row else 0.0

    async def adjust_balance(self, delta_sol: float):
        cursor = await self._conn.execute(
            "UPDATE settings SET value = value + ? WHERE key = ?",
            (delta_sol, BALANCE_KEY),
        )
        if cursor.rowcount != 1:
            raise RuntimeError("Virtual balance row missing")

    async def get_open_position(self, token_address: str) -> Optional[dict]:
        return await self.fetch_one(
            "SELECT * FROM positions WHERE token_address = ? AND status = 'OPEN'",
            (token_address,),
        )

    async def insert_trade(self, trade: Trade) -> int:
        cursor = await self._conn.execute(
            """INSERT INTO trades
               (token_address, token_symbol, side, amount_sol, amount_token,
                price_usd, is_simulated, timestamp)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                trade.token_address, trade.token_symbol, trade.side.value,
                trade.amount_sol, trade.amount_token, trade.price_usd,
                1 if trade.is_simulated else 0, trade.timestamp.isoformat(),
            ),
        )
        return cursor.lastrowid

    async def insert_position(self, position: Position) -> int:
        cursor = await self._conn.execute(
            """INSERT INTO positions
               (token_address, token_symbol, entry_price, amount_token,
                amount_sol, market_cap_usd, status, pnl_percent,
                is_simulated, degraded_fill, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                position.token_address, position.token_symbol,
                position.entry_price, position.amount_token,
                position.amount_sol, position.market_cap_usd,
                position.status.value, position.pnl_percent,
                1 if position.is_simulated else 0,
                1 if position.degraded_fill else 0,
                position.created_at.isoformat(),
            ),
        )
        return cursor.lastrowid

    async def update_position_pnl(
        self, position_id: int, pnl_percent: float, market_cap_usd: Optional[float] = None
    ) -> bool:
        cursor = await self._conn.execute(
            """UPDATE positions
               SET pnl_percent = ?, market_cap_usd = COALESCE(?, market_cap_usd)
               WHERE id = ? AND status = 'OPEN'""",
            (pnl_percent, market_cap_usd, position_id),
        )
        return cursor.rowcount == 1

    async def close_position(self, position_id: int, pnl_percent: float):
        cursor = await self._conn.execute(
            """UPDATE positions SET status = 'CLOSED', pnl_percent = ?, closed_at = ?
               WHERE id = ? AND status = 'OPEN'""",
            (pnl_percent, utcnow().isoformat(), position_id),
        )
        if cursor.rowcount != 1:
            raise RuntimeError(f"Position {position_id} is not open")

    async def append_log(self, level: str, message: str):
        await self._conn.execute(
            "INSERT INTO logs (level, message, timestamp) VALUES (?, ?, ?)",
            (level, message, utcnow().isoformat()),
        )
        await self._conn.execute(
            """DELETE FROM logs WHERE id <= (
                 SELECT id FROM logs ORDER BY id DESC LIMIT 1 OFFSET ?
               )""",
            (self._log_retention,),
        )

    async def upsert_opportunity(self, opp: Opportunity):
        await self._conn.execute(
            """INSERT INTO opportunities
               (token_address, token_symbol, liquidity_usd, volume_24h,
                price_usd, safety_score, is_safe, source, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(token_address) DO UPDATE SET
                 token_symbol = excluded.token_symbol,
                 liquidity_usd = excluded.liquidity_usd,
                 volume_24h = excluded.volume_24h,
                 price_usd = excluded.price_usd,
                 safety_score = excluded.safety_score,
                 is_safe = excluded.is_safe,
                 source = excluded.source,
                 updated_at = excluded.updated_at""",
            (
                opp.token_address, opp.token_symbol, opp.liquidity_usd,
                opp.volume_24h, opp.price_usd, opp.safety_score,
                1 if opp.is_safe else 0, opp.source,
                opp.updated_at.isoformat(),
            ),
        )


class Database:
    """Async SQLite store for positions, trades, balance, logs and opportunities.

    One connection is shared by every task, so all access goes through a
    single asyncio lock: readers never observe half of a transaction.
    """

    def __init__(self, db_path: str = "data/trading_agent.db", log_retention: int = 500):
        self.db_path = db_path
        self.log_retention = log_retention
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def init(self, initial_balance: float = 10.0):
        """Initialize database, create tables and seed the virtual balance."""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path, isolation_level=None)
        for ddl in ALL_TABLES:
            await self._db.execute(ddl)
        await self._db.execute(
            "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
            (BALANCE_KEY, initial_balance),
        )
        logger.info("Database initialized", extra={"path": self.db_path})

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Run a unit of writes atomically; roll back on any exception."""
        async with self._lock:
            await self._db.execute("BEGIN IMMEDIATE")
            try:
                yield Transaction(self._db, self.log_retention)
            except BaseException:
                await self._db.execute("ROLLBACK")
                raise
            else:
                await self._db.execute("COMMIT")

    async def _fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        async with self._lock:
            cursor = await self._db.execute(sql, params)
            rows = await cursor.fetchall()
            return _rows_to_dicts(cursor, rows)

    async def append_log(self, level: str, message: str):
        async with self.transaction() as tx:
            await tx.append_log(level, message)

    async def upsert_opportunity(self, opp: Opportunity):
        async with self.transaction() as tx:
            await tx.upsert_opportunity(opp)

    async def get_balance(self) -> float:
        rows = await self._fetch_all(
            "SELECT value FROM settings WHERE key = ?", (BALANCE_KEY,)
        )
        return float(rows[0]["value"]) if rows else 0.0

    async def get_open_positions(self) -> list[dict]:
        """Get all OPEN positions, oldest first."""
        return await self._fetch_all(
            "SELECT * FROM positions WHERE status = 'OPEN' ORDER BY id ASC"
        )

    async def get_open_position(self, token_address: str) -> Optional[dict]:
        rows = await self._fetch_all(
            "SELECT * FROM positions WHERE token_address = ? AND status = 'OPEN'",
            (token_address,),
        )
        return rows[0] if rows else None

    async def get_positions(self, token_address: str) -> list[dict]:
        """Every position ever held for a token, newest first."""
        return await self._fetch_all(
            "SELECT * FROM positions WHERE token_address = ? ORDER BY id DESC",
            (token_address,),
        )

    async def get_recent_trades(self, limit: int = 50) -> list[dict]:
        return await self._fetch_all(
            "SELECT * FROM trades ORDER BY id DESC LIMIT ?", (limit,)
        )

    async def get_recent_logs(self, limit: int = 20) -> list[dict]:
        return await self._fetch_all(
            "SELECT * FROM logs ORDER BY id DESC LIMIT ?", (limit,)
        )

    async def get_recent_opportunities(self, limit: int = 5) -> list[dict]:
        return await self._fetch_all(
            "SELECT * FROM opportunities ORDER BY updated_at DESC LIMIT ?", (limit,)
        )

    async def get_pnl_summary(self) -> dict:
        """Aggregate realized PnL over closed positions."""
        rows = await self._fetch_all(
            """SELECT
                 COUNT(*) as closed_positions,
                 SUM(CASE WHEN pnl_percent > 0 THEN 1 ELSE 0 END) as wins,
                 SUM(CASE WHEN pnl_percent < 0 THEN 1 ELSE 0 END) as losses,
                 COALESCE(AVG(pnl_percent), 0) as avg_pnl_percent
               FROM positions WHERE status = 'CLOSED'"""
        )
        result = rows[0]
        result["wins"] = result["wins"] or 0
        result["losses"] = result["losses"] or 0
        total = result["wins"] + result["losses"]
        result["win_rate"] = (result["wins"] / total * 100) if total > 0 else 0
        return result
