"""Tests for storage.db."""
import pytest
import sqlite3

from shared.schemas import Opportunity, Position, Trade, TradeSide
from storage.db import Database


@pytest.mark.asyncio
async def test_init_seeds_balance_once(tmp_path):
    path = str(tmp_path / "nested" / "seed.db")
    db = Database(path)
    await db.init(initial_balance=5.0)
    async with db.transaction() as tx:
        await tx.adjust_balance(-1.0)
    await db.close()

    db = Database(path)
    await db.init(initial_balance=5.0)
    assert await db.get_balance() == pytest.approx(4.0)
    await db.close()


@pytest.mark.asyncio
async def test_transaction_rolls_back_every_write(db):
    with pytest.raises(RuntimeError):
        async with db.transaction() as tx:
            await tx.adjust_balance(-1.0)
            await tx.insert_trade(Trade(
                token_address="T", token_symbol="T", side=TradeSide.BUY,
                amount_sol=1.0, amount_token=100.0, price_usd=1.5,
            ))
            await tx.append_log("INFO", "half written")
            raise RuntimeError("disk on fire")

    assert await db.get_balance() == pytest.approx(10.0)
    assert await db.get_recent_trades() == []
    assert await db.get_recent_logs() == []


@pytest.mark.asyncio
async def test_second_open_position_for_token_violates_index(db):
    position = Position(token_address="T", token_symbol="T", entry_price=1.0, amount_token=1.0)
    async with db.transaction() as tx:
        await tx.insert_position(position)
    with pytest.raises(sqlite3.IntegrityError):
        async with db.transaction() as tx:
            await tx.insert_position(position)
    assert len(await db.get_open_positions()) == 1


@pytest.mark.asyncio
async def test_opportunity_upsert_is_last_write_wins(db):
    await db.upsert_opportunity(Opportunity(
        token_address="T", token_symbol="OLD", liquidity_usd=1.0, safety_score=50,
    ))
    await db.upsert_opportunity(Opportunity(
        token_address="T", token_symbol="NEW", liquidity_usd=2.0, safety_score=100, is_safe=True,
    ))
    rows = await db.get_recent_opportunities(limit=10)
    assert len(rows) == 1
    assert rows[0]["token_symbol"] == "NEW"
    assert rows[0]["liquidity_usd"] == 2.0
    assert rows[0]["is_safe"] == 1


@pytest.mark.asyncio
async def test_log_retention_caps_rows(tmp_path):
    db = Database(str(tmp_path / "logs.db"), log_retention=5)
    await db.init()
    for i in range(12):
        await db.append_log("INFO", f"line {i}")
    logs = await db.get_recent_logs(limit=100)
    assert len(logs) == 5
    assert logs[0]["message"] == "line 11"
    assert logs[-1]["message"] == "line 7"
    await db.close()
