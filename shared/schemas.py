"""Pydantic models for all data flowing through the pipeline."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Candidate(BaseModel):
    """A normalized token produced by one scan cycle. Never persisted as-is."""
    address: str
    symbol: str = "UNKNOWN"
    name: str = "Unknown Token"
    price_usd: float = 0.0
    liquidity_usd: float = 0.0
    volume_24h: float = 0.0
    mint_disabled: bool = False
    lp_burnt: bool = False
    market_cap_usd: Optional[float] = None
    created_at: Optional[datetime] = None


class SafetySignals(BaseModel):
    mint_disabled: bool = False
    lp_burnt: bool = False


class Opportunity(BaseModel):
    """Scored candidate, upserted by token address on every scan."""
    token_address: str
    token_symbol: str
    liquidity_usd: float = 0.0
    volume_24h: float = 0.0
    price_usd: float = 0.0
    safety_score: int = Field(default=0, ge=0, le=100)
    is_safe: bool = False
    source: str = ""
    updated_at: datetime = Field(default_factory=utcnow)


class DecisionAction(str, Enum):
    SKIP = "SKIP"
    BUY = "BUY"
    NONE = "NONE"


class Decision(BaseModel):
    """Output of the decision engine."""
    action: DecisionAction
    reason: str = ""
    confidence: Optional[float] = None
    safety_score: int = 0


class PriceQuote(BaseModel):
    """Price oracle answer. A zero price means "unknown", not worthless."""
    price_usd: float = 0.0
    market_cap_usd: Optional[float] = None
    source: str = ""

    @property
    def is_known(self) -> bool:
        return self.price_usd > 0


class PositionStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class Position(BaseModel):
    """Persisted position row."""
    id: Optional[int] = None
    token_address: str
    token_symbol: str
    entry_price: float
    amount_token: float
    amount_sol: float = 0.0
    market_cap_usd: Optional[float] = None
    status: PositionStatus = PositionStatus.OPEN
    pnl_percent: float = 0.0
    is_simulated: bool = True
    degraded_fill: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    closed_at: Optional[datetime] = None


class Trade(BaseModel):
    """Persisted trade record. Append-only."""
    id: Optional[int] = None
    token_address: str
    token_symbol: str
    side: TradeSide
    amount_sol: float
    amount_token: float
    price_usd: float
    is_simulated: bool = True
    timestamp: datetime = Field(default_factory=utcnow)


class LogEntry(BaseModel):
    id: Optional[int] = None
    level: str = "INFO"
    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class Fill(BaseModel):
    """Result of a ledger open or close."""
    token_address: str
    side: TradeSide
    price_usd: float
    amount_sol: float
    amount_token: float
    pnl_percent: Optional[float] = None
    degraded: bool = False


class BalanceSnapshot(BaseModel):
    sol: float
    usd: float
