"""Configuration management for solana-scout."""
import os
from pydantic import BaseModel

from strategy.thresholds import GateThresholds


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config(BaseModel):
    """Application configuration loaded from environment variables."""
    PAPER_TRADING_MODE: bool = True
    DB_PATH: str = "data/trading_agent.db"
    INITIAL_VIRTUAL_BALANCE: float = 10.0
    TRADE_SIZE_SOL: float = 0.1
    SOL_USD_RATE: float = 150.0
    MIN_LIQUIDITY_USD: float = 10000.0
    MIN_VOLUME_24H: float = 50000.0
    SAFETY_THRESHOLD: int = 80
    AUTO_BUY_THRESHOLD: int = 80
    CONFIDENCE_MIN: int = 81
    CONFIDENCE_MAX: int = 100
    STOP_LOSS_PCT: float = 15.0
    TAKE_PROFIT_PCT: float = 30.0
    MARKET_SCAN_INTERVAL: float = 60.0
    PUMP_SCAN_INTERVAL: float = 30.0
    MONITOR_INTERVAL: float = 15.0
    MAX_COIN_AGE_DAYS: float = 14.0
    MARKET_MAX_CANDIDATES: int = 10
    PUMP_BATCH_LIMIT: int = 20
    PUMP_TOKEN_SUPPLY: float = 1_000_000_000.0
    PUMP_LIQUIDITY_RATIO: float = 0.2
    SCANNERS: str = "market,pump"
    CHAIN_ID: str = "solana"
    DEXSCREENER_API: str = "https://api.dexscreener.com/latest/dex"
    PUMPFUN_API: str = "https://frontend-api.pump.fun"
    HTTP_TIMEOUT: float = 10.0
    NONE_LOG_SAMPLE_RATE: float = 0.1
    LOG_RETENTION: int = 500
    DASHBOARD_PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            PAPER_TRADING_MODE=_env_bool("PAPER_TRADING_MODE", "true"),
            DB_PATH=os.getenv("DB_PATH", "data/trading_agent.db"),
            INITIAL_VIRTUAL_BALANCE=float(os.getenv("INITIAL_VIRTUAL_BALANCE", "10.0")),
            TRADE_SIZE_SOL=float(os.getenv("TRADE_SIZE_SOL", "0.1")),
            SOL_USD_RATE=float(os.getenv("SOL_USD_RATE", "150")),
            MIN_LIQUIDITY_USD=float(os.getenv("MIN_LIQUIDITY_USD", "10000")),
            MIN_VOLUME_24H=float(os.getenv("MIN_VOLUME_24H", "50000")),
            SAFETY_THRESHOLD=int(os.getenv("SAFETY_THRESHOLD", "80")),
            AUTO_BUY_THRESHOLD=int(os.getenv("AUTO_BUY_THRESHOLD", "80")),
            CONFIDENCE_MIN=int(os.getenv("CONFIDENCE_MIN", "81")),
            CONFIDENCE_MAX=int(os.getenv("CONFIDENCE_MAX", "100")),
            STOP_LOSS_PCT=float(os.getenv("STOP_LOSS_PCT", "15")),
            TAKE_PROFIT_PCT=float(os.getenv("TAKE_PROFIT_PCT", "30")),
            MARKET_SCAN_INTERVAL=float(os.getenv("MARKET_SCAN_INTERVAL", "60")),
            PUMP_SCAN_INTERVAL=float(os.getenv("PUMP_SCAN_INTERVAL", "30")),
            MONITOR_INTERVAL=float(os.getenv("MONITOR_INTERVAL", "15")),
            MAX_COIN_AGE_DAYS=float(os.getenv("MAX_COIN_AGE_DAYS", "14")),
            MARKET_MAX_CANDIDATES=int(os.getenv("MARKET_MAX_CANDIDATES", "10")),
            PUMP_BATCH_LIMIT=int(os.getenv("PUMP_BATCH_LIMIT", "20")),
            PUMP_TOKEN_SUPPLY=float(os.getenv("PUMP_TOKEN_SUPPLY", "1000000000")),
            PUMP_LIQUIDITY_RATIO=float(os.getenv("PUMP_LIQUIDITY_RATIO", "0.2")),
            SCANNERS=os.getenv("SCANNERS", "market,pump"),
            CHAIN_ID=os.getenv("CHAIN_ID", "solana"),
            DEXSCREENER_API=os.getenv("DEXSCREENER_API", "https://api.dexscreener.com/latest/dex"),
            PUMPFUN_API=os.getenv("PUMPFUN_API", "https://frontend-api.pump.fun"),
            HTTP_TIMEOUT=float(os.getenv("HTTP_TIMEOUT", "10")),
            NONE_LOG_SAMPLE_RATE=float(os.getenv("NONE_LOG_SAMPLE_RATE", "0.1")),
            LOG_RETENTION=int(os.getenv("LOG_RETENTION", "500")),
            DASHBOARD_PORT=int(os.getenv("DASHBOARD_PORT", "3000")),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def scanners_list(self) -> list[str]:
        return [s.strip().lower() for s in self.SCANNERS.split(",") if s.strip()]

    @property
    def max_coin_age_seconds(self) -> float:
        return self.MAX_COIN_AGE_DAYS * 24 * 60 * 60

    @property
    def thresholds(self) -> GateThresholds:
        return GateThresholds(
            min_liquidity_usd=self.MIN_LIQUIDITY_USD,
            min_volume_24h=self.MIN_VOLUME_24H,
            safety_threshold=self.SAFETY_THRESHOLD,
            auto_buy_threshold=self.AUTO_BUY_THRESHOLD,
        )
