"""Pull-based token pricing: DexScreener first, pump.fun bonding curve second."""
import logging
from typing import Optional

import httpx

from feeds.dexscreener import DexScreenerSource, nested_float, pick_chain_pair
from feeds.pumpfun import PumpFunSource
from shared.schemas import PriceQuote

logger = logging.getLogger(__name__)

UNKNOWN = PriceQuote(price_usd=0.0, source="unknown")


class PriceOracle:
    """Resolves the current USD price of a token.

    Never raises: a source that errors, times out or has no data is treated
    as silent, and when both are silent the quote has ``price_usd == 0``.
    Callers must read that as "unknown this cycle". There are no retries
    inside a call; the next poll is the retry.
    """

    def __init__(
        self,
        dexscreener: DexScreenerSource,
        pumpfun: PumpFunSource,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.dexscreener = dexscreener
        self.pumpfun = pumpfun
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def current_price(self, token_address: str) -> PriceQuote:
        quote = await self._from_dexscreener(token_address)
        if quote is not None:
            return quote
        quote = await self._from_pumpfun(token_address)
        if quote is not None:
            return quote
        logger.debug("Price unknown", extra={"token": token_address})
        return UNKNOWN

    async def _from_dexscreener(self, token_address: str) -> Optional[PriceQuote]:
        try:
            pairs = await self.dexscreener.fetch_token_pairs(self._client, token_address)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"DexScreener price error: {e}", extra={"token": token_address})
            return None

        pair = pick_chain_pair(pairs, self.dexscreener.chain_id)
        if pair is None:
            return None
        market_cap = nested_float(pair, "marketCap") or nested_float(pair, "fdv")
        return PriceQuote(
            price_usd=float(pair["priceUsd"]),
            market_cap_usd=market_cap or None,
            source="dexscreener",
        )

    async def _from_pumpfun(self, token_address: str) -> Optional[PriceQuote]:
        try:
            coin = await self.pumpfun.fetch_coin(self._client, token_address)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"pump.fun price error: {e}", extra={"token": token_address})
            return None

        if not coin:
            return None
        try:
            market_cap = float(coin.get("usd_market_cap") or 0.0)
        except (TypeError, ValueError):
            return None
        price = self.pumpfun.price_from_market_cap(market_cap)
        if price <= 0:
            return None
        return PriceQuote(price_usd=price, market_cap_usd=market_cap, source="pumpfun")
