"""DexScreener general-market source."""
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from shared.schemas import Candidate
from strategy.safety import SafetyProbe, SimulatedSafetyProbe


DEXSCREENER_BASE = "https://api.dexscreener.com/latest/dex"


def nested_float(data: dict, *keys: str) -> float:
    value: Any = data
    for key in keys:
        if not isinstance(value, dict):
            return 0.0
        value = value.get(key)
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _parse_pair_created(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)


def pick_chain_pair(pairs: list[dict], chain_id: str) -> Optional[dict]:
    """First pair on ``chain_id`` carrying a positive USD price."""
    for pair in pairs or []:
        if not isinstance(pair, dict) or pair.get("chainId") != chain_id:
            continue
        try:
            if float(pair.get("priceUsd") or 0) > 0:
                return pair
        except (TypeError, ValueError):
            continue
    return None


class DexScreenerSource:
    """Candidate source for pairs already listed on a DEX."""

    name = "market"

    def __init__(
        self,
        base_url: str = DEXSCREENER_BASE,
        query: str = "solana",
        chain_id: str = "solana",
        min_liquidity_usd: float = 10000.0,
        min_volume_24h: float = 50000.0,
        max_age_seconds: Optional[float] = 14 * 24 * 60 * 60,
        max_candidates: int = 10,
        safety_probe: Optional[SafetyProbe] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.query = query
        self.chain_id = chain_id
        self.min_liquidity_usd = min_liquidity_usd
        self.min_volume_24h = min_volume_24h
        self.max_age_seconds = max_age_seconds
        self.max_candidates = max_candidates
        self.safety_probe = safety_probe or SimulatedSafetyProbe()

    async def fetch(self, client: httpx.AsyncClient) -> list[dict]:
        resp = await client.get(f"{self.base_url}/search", params={"q": self.query})
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected DexScreener payload: {type(data).__name__}")
        pairs = [p for p in data.get("pairs") or [] if isinstance(p, dict)]
        # chain and thresholds are checked before the cap so the batch is not
        # spent on pairs that would be dropped anyway
        eligible = [p for p in pairs if self._prefilter(p)]
        return eligible[: self.max_candidates]

    def _prefilter(self, pair: dict) -> bool:
        if pair.get("chainId") != self.chain_id:
            return False
        if nested_float(pair, "volume", "h24") < self.min_volume_24h:
            return False
        if nested_float(pair, "liquidity", "usd") < self.min_liquidity_usd:
            return False
        if self.max_age_seconds is not None:
            try:
                created = float(pair.get("pairCreatedAt") or 0)
            except (TypeError, ValueError):
                # unparseable listing time drops this pair only
                return False
            age = datetime.now(timezone.utc).timestamp() - created / 1000.0
            if age > self.max_age_seconds:
                return False
        return True

    def normalize(self, entry: dict) -> Candidate:
        base = entry["baseToken"]
        address = base["address"]
        signals = self.safety_probe.probe(address)
        market_cap = nested_float(entry, "marketCap") or nested_float(entry, "fdv")
        return Candidate(
            address=address,
            symbol=base.get("symbol") or "UNKNOWN",
            name=base.get("name") or "Unknown Token",
            price_usd=float(entry.get("priceUsd") or 0.0),
            liquidity_usd=nested_float(entry, "liquidity", "usd"),
            volume_24h=nested_float(entry, "volume", "h24"),
            mint_disabled=signals.mint_disabled,
            lp_burnt=signals.lp_burnt,
            market_cap_usd=market_cap or None,
            created_at=_parse_pair_created(entry.get("pairCreatedAt")),
        )

    def accept(self, candidate: Candidate) -> bool:
        return bool(candidate.address)

    async def fetch_token_pairs(self, client: httpx.AsyncClient, token_address: str) -> list[dict]:
        resp = await client.get(f"{self.base_url}/tokens/{token_address}")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            return []
        return [p for p in data.get("pairs") or [] if isinstance(p, dict)]
