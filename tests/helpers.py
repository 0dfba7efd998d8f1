"""Test helpers shared across test files."""
import asyncio

import httpx

from shared.schemas import Candidate, PriceQuote


class FakeOracle:
    """Price oracle driven by a dict; missing tokens price as unknown."""

    def __init__(self, prices: dict[str, float] | None = None):
        self.prices = dict(prices or {})
        self.calls: list[str] = []
        self.fail_for: set[str] = set()

    def set(self, token: str, price: float):
        self.prices[token] = price

    async def current_price(self, token_address: str) -> PriceQuote:
        self.calls.append(token_address)
        if token_address in self.fail_for:
            raise RuntimeError(f"oracle blew up for {token_address}")
        price = self.prices.get(token_address, 0.0)
        return PriceQuote(price_usd=price, source="fake" if price > 0 else "unknown")


class SlowOracle(FakeOracle):
    """Blocks every lookup until ``release`` is set."""

    def __init__(self, prices=None):
        super().__init__(prices)
        self.release = asyncio.Event()

    async def current_price(self, token_address: str) -> PriceQuote:
        await self.release.wait()
        return await super().current_price(token_address)


def make_candidate(**overrides) -> Candidate:
    """A candidate that passes every gate by default."""
    fields = dict(
        address="Tok1111111111111111111111111111111111111111",
        symbol="GOOD",
        name="Good Token",
        price_usd=1.0,
        liquidity_usd=20000.0,
        volume_24h=80000.0,
        mint_disabled=True,
        lp_burnt=True,
    )
    fields.update(overrides)
    return Candidate(**fields)


def mock_client(handler) -> httpx.AsyncClient:
    """httpx client whose requests are answered by ``handler(request)``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
