"""Main entry point - wires all layers together."""
import asyncio
import logging
import signal

import httpx
from dotenv import load_dotenv

load_dotenv()

from shared.config import Config
from shared.logging import setup_logging
from feeds.dexscreener import DexScreenerSource
from feeds.discovery import DiscoveryScanner
from feeds.price_oracle import PriceOracle
from feeds.pumpfun import PumpFunSource, supply_pricer
from strategy.confidence import RandomConfidence
from strategy.decision import DecisionEngine
from execution.ledger import PositionLedger
from execution.pnl_monitor import PnLMonitor
from storage.db import Database
from dashboard.main import app as dashboard_app, set_ledger

logger = logging.getLogger("solana-scout")


def build_sources(config: Config) -> tuple[DexScreenerSource, PumpFunSource]:
    dexscreener = DexScreenerSource(
        base_url=config.DEXSCREENER_API,
        chain_id=config.CHAIN_ID,
        min_liquidity_usd=config.MIN_LIQUIDITY_USD,
        min_volume_24h=config.MIN_VOLUME_24H,
        max_age_seconds=config.max_coin_age_seconds,
        max_candidates=config.MARKET_MAX_CANDIDATES,
    )
    pumpfun = PumpFunSource(
        base_url=config.PUMPFUN_API,
        batch_limit=config.PUMP_BATCH_LIMIT,
        price_from_market_cap=supply_pricer(config.PUMP_TOKEN_SUPPLY),
        liquidity_ratio=config.PUMP_LIQUIDITY_RATIO,
    )
    return dexscreener, pumpfun


def build_scanners(
    config: Config,
    dexscreener: DexScreenerSource,
    pumpfun: PumpFunSource,
    engine: DecisionEngine,
    ledger: PositionLedger,
    client: httpx.AsyncClient,
) -> list[DiscoveryScanner]:
    """One scanner per name in SCANNERS; unknown names are logged and ignored."""
    variants = {
        "market": (dexscreener, config.MARKET_SCAN_INTERVAL),
        "pump": (pumpfun, config.PUMP_SCAN_INTERVAL),
    }
    scanners = []
    for name in config.scanners_list:
        if name not in variants:
            logger.warning("Unknown scanner ignored", extra={"scanner": name})
            continue
        source, interval = variants[name]
        scanners.append(DiscoveryScanner(
            source,
            engine,
            ledger,
            interval=interval,
            trade_size_sol=config.TRADE_SIZE_SOL,
            paper_trading=config.PAPER_TRADING_MODE,
            client=client,
            none_log_sample_rate=config.NONE_LOG_SAMPLE_RATE,
        ))
    return scanners


class TradingAgent:
    """Main trading agent orchestrating all components."""

    def __init__(self, config: Config):
        self.config = config
        self._shutdown = asyncio.Event()

        # Components (initialized in start())
        self.db: Database | None = None
        self.client: httpx.AsyncClient | None = None
        self.oracle: PriceOracle | None = None
        self.ledger: PositionLedger | None = None
        self.scanners: list[DiscoveryScanner] = []
        self.monitor: PnLMonitor | None = None

    async def start(self):
        """Initialize and run all components."""
        logger.info(
            "Starting scout agent",
            extra={
                "paper_trading": self.config.PAPER_TRADING_MODE,
                "scanners": self.config.scanners_list,
                "trade_size_sol": self.config.TRADE_SIZE_SOL,
            },
        )

        # Database
        self.db = Database(self.config.DB_PATH, log_retention=self.config.LOG_RETENTION)
        await self.db.init(initial_balance=self.config.INITIAL_VIRTUAL_BALANCE)

        # Shared HTTP client with a bounded timeout on every call
        self.client = httpx.AsyncClient(timeout=self.config.HTTP_TIMEOUT)
        dexscreener, pumpfun = build_sources(self.config)
        self.oracle = PriceOracle(dexscreener, pumpfun, client=self.client)

        # Ledger
        self.ledger = PositionLedger(
            self.db,
            self.oracle,
            sol_usd_rate=self.config.SOL_USD_RATE,
            simulated=True,
        )
        await self.ledger.log("INFO", "Agent started. Scanning for new tokens...")

        # Strategy
        engine = DecisionEngine(
            self.config.thresholds,
            RandomConfidence(self.config.CONFIDENCE_MIN, self.config.CONFIDENCE_MAX),
        )

        # Loops
        self.scanners = build_scanners(
            self.config, dexscreener, pumpfun, engine, self.ledger, self.client
        )
        self.monitor = PnLMonitor(
            self.ledger,
            self.oracle,
            interval=self.config.MONITOR_INTERVAL,
            stop_loss_pct=self.config.STOP_LOSS_PCT,
            take_profit_pct=self.config.TAKE_PROFIT_PCT,
        )

        # Dashboard
        set_ledger(self.ledger, self.config)

        loops = [*self.scanners, self.monitor]
        tasks = [asyncio.create_task(loop.start(), name=loop.name) for loop in loops]
        tasks.append(asyncio.create_task(self._status_loop(), name="status"))
        tasks.append(asyncio.create_task(self._run_dashboard(), name="dashboard"))

        logger.info("All components started")

        # Wait for shutdown signal
        await self._shutdown.wait()

        # Cleanup
        logger.info("Shutting down...")
        for loop in loops:
            loop.stop()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        set_ledger(None)
        for scanner in self.scanners:
            await scanner.close()
        await self.client.aclose()
        await self.db.close()
        logger.info("Shutdown complete")

    async def _status_loop(self):
        """Periodically log status."""
        while not self._shutdown.is_set():
            await asyncio.sleep(60)
            try:
                balance = await self.ledger.get_balance()
                positions = await self.ledger.list_open()
                summary = await self.ledger.pnl_summary()
                logger.info(
                    "Status update",
                    extra={
                        "balance_sol": round(balance.sol, 4),
                        "balance_usd": f"${balance.usd:.2f}",
                        "open_positions": len(positions),
                        "closed_positions": summary["closed_positions"],
                        "win_rate": f"{summary['win_rate']:.1f}%",
                    },
                )
            except Exception as e:
                logger.error(f"Status loop error: {e}")

    async def _run_dashboard(self):
        """Run the FastAPI status API."""
        import uvicorn
        config = uvicorn.Config(
            dashboard_app,
            host="0.0.0.0",
            port=self.config.DASHBOARD_PORT,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        logger.info(
            "Dashboard starting",
            extra={"port": self.config.DASHBOARD_PORT},
        )
        await server.serve()

    def shutdown(self):
        self._shutdown.set()


def main():
    config = Config.from_env()
    setup_logging(config.LOG_LEVEL.upper())

    agent = TradingAgent(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def handle_signal(sig, frame):
        logger.info(f"Received signal {sig}")
        agent.shutdown()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        loop.run_until_complete(agent.start())
    except KeyboardInterrupt:
        agent.shutdown()
        loop.run_until_complete(asyncio.sleep(1))
    finally:
        loop.close()


if __name__ == "__main__":
    main()
