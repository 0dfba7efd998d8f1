"""Tests for execution.ledger."""
import asyncio

import pytest
from helpers import SlowOracle

from execution.ledger import PLACEHOLDER_PRICE_USD, PositionLedger, pnl_percent
from shared.schemas import PositionStatus, PriceQuote, TradeSide

TOKEN = "Mint1111111111111111111111111111111111111111"


@pytest.mark.asyncio
async def test_open_debits_balance_and_records_buy(ledger, oracle, db):
    oracle.set(TOKEN, 1.0)
    fill = await ledger.open(TOKEN, "AAA", 0.1)

    assert fill is not None
    assert fill.side == TradeSide.BUY
    assert fill.price_usd == 1.0
    assert fill.amount_token == pytest.approx(15.0)  # 0.1 SOL * $150 / $1
    assert fill.degraded is False

    balance = await ledger.get_balance()
    assert balance.sol == pytest.approx(9.9)
    assert balance.usd == pytest.approx(9.9 * 150)

    trades = await ledger.list_recent_trades()
    assert len(trades) == 1
    assert trades[0].side == TradeSide.BUY
    assert trades[0].amount_sol == pytest.approx(0.1)
    assert trades[0].is_simulated is True

    positions = await ledger.list_open()
    assert len(positions) == 1
    assert positions[0].status == PositionStatus.OPEN
    assert positions[0].entry_price == 1.0

    logs = await ledger.list_recent_logs()
    assert any("Virtual Buy" in entry.message for entry in logs)


@pytest.mark.asyncio
async def test_open_duplicate_is_noop(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    assert await ledger.open(TOKEN, "AAA", 0.1) is not None
    assert await ledger.open(TOKEN, "AAA", 0.1) is None

    assert len(await ledger.list_open()) == 1
    assert len(await ledger.list_recent_trades()) == 1
    assert (await ledger.get_balance()).sol == pytest.approx(9.9)


@pytest.mark.asyncio
async def test_concurrent_opens_create_one_position(db):
    oracle = SlowOracle({TOKEN: 2.0})
    ledger = PositionLedger(db, oracle)
    attempts = [asyncio.create_task(ledger.open(TOKEN, "AAA", 0.1)) for _ in range(5)]
    await asyncio.sleep(0)
    oracle.release.set()
    fills = await asyncio.gather(*attempts)

    assert sum(1 for f in fills if f is not None) == 1
    assert len(await ledger.list_open()) == 1
    assert len(await ledger.list_recent_trades()) == 1
    assert (await ledger.get_balance()).sol == pytest.approx(9.9)


@pytest.mark.asyncio
async def test_open_unknown_price_uses_placeholder(ledger):
    fill = await ledger.open(TOKEN, "NOPRICE", 0.1)
    assert fill is not None
    assert fill.degraded is True
    assert fill.price_usd == PLACEHOLDER_PRICE_USD

    positions = await ledger.list_open()
    assert positions[0].degraded_fill is True


@pytest.mark.asyncio
async def test_open_insufficient_balance_is_noop(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    assert await ledger.open(TOKEN, "AAA", 50.0) is None
    assert await ledger.list_open() == []
    assert (await ledger.get_balance()).sol == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_open_rejects_non_positive_amount(ledger):
    with pytest.raises(ValueError):
        await ledger.open(TOKEN, "AAA", 0)


@pytest.mark.asyncio
async def test_close_credits_balance_and_records_sell(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    oracle.set(TOKEN, 0.8)

    fill = await ledger.close(TOKEN, 15.0)

    assert fill is not None
    assert fill.side == TradeSide.SELL
    assert fill.pnl_percent == pytest.approx(-20.0)
    assert fill.amount_sol == pytest.approx(0.08)  # 15 * 0.8 / 150

    assert await ledger.list_open() == []
    assert (await ledger.get_balance()).sol == pytest.approx(9.9 + 0.08)

    trades = await ledger.list_recent_trades()
    sells = [t for t in trades if t.side == TradeSide.SELL]
    assert len(sells) == 1
    assert sells[0].amount_sol == pytest.approx(0.08)
    assert sells[0].token_address == TOKEN


@pytest.mark.asyncio
async def test_close_defaults_to_full_position(ledger, oracle, db):
    oracle.set(TOKEN, 2.0)
    opened = await ledger.open(TOKEN, "AAA", 0.1)
    oracle.set(TOKEN, 3.0)
    fill = await ledger.close(TOKEN)
    assert fill.amount_token == pytest.approx(opened.amount_token)
    assert fill.pnl_percent == pytest.approx(50.0)

    rows = await db.get_positions(TOKEN)
    assert rows[0]["status"] == "CLOSED"
    assert rows[0]["pnl_percent"] == pytest.approx(50.0)
    assert rows[0]["closed_at"] is not None


@pytest.mark.asyncio
async def test_close_without_position_is_noop(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    logs_before = await ledger.list_recent_logs()

    assert await ledger.close(TOKEN, 10.0) is None

    assert await ledger.list_recent_trades() == []
    assert (await ledger.get_balance()).sol == pytest.approx(10.0)
    assert len(await ledger.list_recent_logs()) == len(logs_before)


@pytest.mark.asyncio
async def test_close_twice_sells_once(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    first, second = await asyncio.gather(ledger.close(TOKEN), ledger.close(TOKEN))

    assert [f is not None for f in (first, second)].count(True) == 1
    sells = [t for t in await ledger.list_recent_trades() if t.side == TradeSide.SELL]
    assert len(sells) == 1


@pytest.mark.asyncio
async def test_close_with_unknown_price_is_deferred(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    oracle.set(TOKEN, 0.0)

    assert await ledger.close(TOKEN) is None
    assert len(await ledger.list_open()) == 1


@pytest.mark.asyncio
async def test_close_uses_supplied_quote(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    calls = len(oracle.calls)

    fill = await ledger.close(TOKEN, quote=PriceQuote(price_usd=1.5, source="monitor"))

    assert fill.pnl_percent == pytest.approx(50.0)
    assert len(oracle.calls) == calls


@pytest.mark.asyncio
async def test_reopen_after_close(ledger, oracle, db):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    await ledger.close(TOKEN)
    assert await ledger.open(TOKEN, "AAA", 0.1) is not None
    assert len(await db.get_positions(TOKEN)) == 2
    assert len(await ledger.list_open()) == 1


@pytest.mark.asyncio
async def test_refresh_pnl_updates_open_position(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    position = (await ledger.list_open())[0]

    pnl = await ledger.refresh_pnl(position, 1.1, market_cap=1_100_000.0)

    assert pnl == pytest.approx(10.0)
    refreshed = (await ledger.list_open())[0]
    assert refreshed.pnl_percent == pytest.approx(10.0)
    assert refreshed.market_cap_usd == pytest.approx(1_100_000.0)
    assert len(await ledger.list_recent_trades()) == 1


@pytest.mark.asyncio
async def test_refresh_pnl_ignores_unknown_price(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    position = (await ledger.list_open())[0]
    assert await ledger.refresh_pnl(position, 0.0) is None
    assert (await ledger.list_open())[0].pnl_percent == 0.0


@pytest.mark.asyncio
async def test_refresh_pnl_on_closed_position_returns_none(ledger, oracle):
    oracle.set(TOKEN, 1.0)
    await ledger.open(TOKEN, "AAA", 0.1)
    position = (await ledger.list_open())[0]
    await ledger.close(TOKEN)
    assert await ledger.refresh_pnl(position, 2.0) is None


@pytest.mark.asyncio
async def test_pnl_summary_counts_closed(ledger, oracle):
    for i, exit_price in enumerate([1.5, 0.5, 2.0]):
        token = f"T{i}"
        oracle.set(token, 1.0)
        await ledger.open(token, f"S{i}", 0.1)
        oracle.set(token, exit_price)
        await ledger.close(token)

    summary = await ledger.pnl_summary()
    assert summary["closed_positions"] == 3
    assert summary["wins"] == 2
    assert summary["losses"] == 1
    assert summary["win_rate"] == pytest.approx(66.666, abs=0.01)


def test_pnl_percent_formula():
    assert pnl_percent(1.0, 0.8) == pytest.approx(-20.0)
    assert pnl_percent(2.0, 2.6) == pytest.approx(30.0)
    assert pnl_percent(0.0, 1.0) == 0.0
