"""pump.fun bonding-curve source: newest coins, priced off their market cap."""
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from shared.schemas import Candidate
from strategy.safety import BondingCurveSafety, SafetyProbe


PUMPFUN_BASE = "https://frontend-api.pump.fun"

# Every pump.fun mint has the same fixed supply
PUMP_TOKEN_SUPPLY = 1_000_000_000.0


def supply_pricer(supply: float = PUMP_TOKEN_SUPPLY) -> Callable[[float], float]:
    """Build a market-cap -> unit-price function for a fixed token supply."""
    if supply <= 0:
        raise ValueError("supply must be positive")

    def price(market_cap_usd: float) -> float:
        return max(0.0, market_cap_usd) / supply

    return price


def _parse_created(value: Any) -> Optional[datetime]:
    # pump.fun reports milliseconds since epoch
    if value in (None, ""):
        return None
    ts = float(value)
    if ts > 1e12:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=timezone.utc)


class PumpFunSource:
    """Candidate source for tokens still on their bonding curve."""

    name = "pump"

    def __init__(
        self,
        base_url: str = PUMPFUN_BASE,
        batch_limit: int = 20,
        price_from_market_cap: Optional[Callable[[float], float]] = None,
        liquidity_ratio: float = 0.2,
        max_age_seconds: Optional[float] = None,
        min_market_cap_usd: float = 0.0,
        safety_probe: Optional[SafetyProbe] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.batch_limit = batch_limit
        self.price_from_market_cap = price_from_market_cap or supply_pricer()
        self.liquidity_ratio = liquidity_ratio
        self.max_age_seconds = max_age_seconds
        self.min_market_cap_usd = min_market_cap_usd
        self.safety_probe = safety_probe or BondingCurveSafety()

    async def fetch(self, client: httpx.AsyncClient) -> list[dict]:
        resp = await client.get(
            f"{self.base_url}/coins/latest",
            params={
                "limit": self.batch_limit,
                "offset": 0,
                "sort": "created_timestamp",
                "order": "DESC",
                "includeNsfw": "false",
            },
        )
        resp.raise_for_status()
        coins = resp.json()
        if isinstance(coins, dict):
            # single-coin shape returned by some mirrors
            coins = [coins]
        if not isinstance(coins, list):
            raise ValueError(f"Unexpected pump.fun payload: {type(coins).__name__}")
        return coins[: self.batch_limit]

    def normalize(self, entry: dict) -> Candidate:
        mint = entry["mint"]
        market_cap = float(entry.get("usd_market_cap") or 0.0)
        signals = self.safety_probe.probe(mint)
        return Candidate(
            address=mint,
            symbol=entry.get("symbol") or "UNKNOWN",
            name=entry.get("name") or "Unknown Token",
            price_usd=self.price_from_market_cap(market_cap),
            liquidity_usd=market_cap * self.liquidity_ratio,
            # market cap stands in for early interest; the curve has no 24h volume
            volume_24h=market_cap,
            mint_disabled=signals.mint_disabled,
            lp_burnt=signals.lp_burnt,
            market_cap_usd=market_cap,
            created_at=_parse_created(entry.get("created_timestamp")),
        )

    def accept(self, candidate: Candidate) -> bool:
        if (candidate.market_cap_usd or 0.0) < self.min_market_cap_usd:
            return False
        if self.max_age_seconds is not None and candidate.created_at is not None:
            age = (datetime.now(timezone.utc) - candidate.created_at).total_seconds()
            if age > self.max_age_seconds:
                return False
        return True

    async def fetch_coin(self, client: httpx.AsyncClient, mint: str) -> Optional[dict]:
        """Single coin lookup; None when pump.fun does not know the mint."""
        resp = await client.get(f"{self.base_url}/coins/{mint}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, dict) else None
