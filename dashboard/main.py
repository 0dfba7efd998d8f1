"""FastAPI read-only status API for the scout agent."""
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException

from execution.ledger import PositionLedger
from shared.config import Config

app = FastAPI(title="Solana Scout Status")

# Shared instances (set by agent.py)
_ledger: PositionLedger | None = None
_config: Config | None = None


def set_ledger(ledger: PositionLedger | None, config: Config | None = None):
    global _ledger, _config
    _ledger = ledger
    _config = config


def _get_ledger() -> PositionLedger:
    if _ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not initialized")
    return _ledger


def _get_config() -> Config:
    return _config or Config()


@app.get("/api/health")
async def api_health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/stats")
async def api_stats():
    ledger = _get_ledger()
    balance = await ledger.get_balance()
    positions = await ledger.list_open()
    trades = await ledger.list_recent_trades(limit=10)
    logs = await ledger.list_recent_logs(limit=20)
    opportunities = await ledger.list_recent_opportunities(limit=5)
    return {
        "balance": {
            "sol": balance.sol,
            "usd": balance.usd,
            "virtual_sol": balance.sol,
            "virtual_usd": balance.usd,
        },
        "isPaperTrading": _get_config().PAPER_TRADING_MODE,
        "activePositions": [p.model_dump(mode="json") for p in positions],
        "recentTrades": [t.model_dump(mode="json") for t in trades],
        "logs": [entry.model_dump(mode="json") for entry in logs],
        "opportunities": [o.model_dump(mode="json") for o in opportunities],
    }


@app.get("/api/positions")
async def api_positions():
    ledger = _get_ledger()
    positions = await ledger.list_open()
    return {"positions": [p.model_dump(mode="json") for p in positions]}


@app.get("/api/trades")
async def api_trades(limit: int = 50):
    ledger = _get_ledger()
    trades = await ledger.list_recent_trades(limit=max(1, min(limit, 500)))
    return {"trades": [t.model_dump(mode="json") for t in trades]}


@app.get("/api/pnl")
async def api_pnl():
    ledger = _get_ledger()
    return await ledger.pnl_summary()


@app.get("/api/config")
async def api_config():
    config = _get_config()
    return {
        "paperTrading": config.PAPER_TRADING_MODE,
        "scanners": config.scanners_list,
        "strategy": {
            "stopLoss": config.STOP_LOSS_PCT,
            "takeProfit": config.TAKE_PROFIT_PCT,
            "minLiquidityUsd": config.MIN_LIQUIDITY_USD,
            "minVolume24h": config.MIN_VOLUME_24H,
            "safetyThreshold": config.SAFETY_THRESHOLD,
            "autoBuyThreshold": config.AUTO_BUY_THRESHOLD,
            "tradeSizeSol": config.TRADE_SIZE_SOL,
        },
    }
