"""Paper-trading ledger: the only writer of balance, positions and trades."""
import asyncio
import logging
from collections import defaultdict
from typing import Optional

from feeds.price_oracle import PriceOracle
from shared.logging import activity_level
from shared.schemas import (
    BalanceSnapshot,
    Fill,
    LogEntry,
    Opportunity,
    Position,
    PriceQuote,
    Trade,
    TradeSide,
)
from storage.db import Database

logger = logging.getLogger(__name__)

# Fill price used when no source can price a token, so the simulation keeps moving
PLACEHOLDER_PRICE_USD = 0.000000001


def pnl_percent(entry_price: float, current_price: float) -> float:
    """Percentage PnL of ``current_price`` against ``entry_price``."""
    if entry_price <= 0:
        return 0.0
    return (current_price - entry_price) / entry_price * 100.0


class PositionLedger:
    """Opens, refreshes and closes simulated positions against a SOL balance.

    Each mutation is one database transaction covering balance, trade,
    position and its activity log line. Mutations on the same token are
    serialized by a per-token lock; prices are fetched before the lock is
    taken so a slow API never blocks another cycle.
    """

    def __init__(
        self,
        db: Database,
        oracle: PriceOracle,
        sol_usd_rate: float = 150.0,
        simulated: bool = True,
    ):
        if sol_usd_rate <= 0:
            raise ValueError("sol_usd_rate must be positive")
        self.db = db
        self.oracle = oracle
        self.sol_usd_rate = sol_usd_rate
        self.simulated = simulated
        self._token_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def open(self, token_address: str, symbol: str, sol_amount: float) -> Optional[Fill]:
        """Buy ``sol_amount`` SOL worth of a token. None when nothing was opened."""
        if sol_amount <= 0:
            raise ValueError("sol_amount must be positive")

        if await self.db.get_open_position(token_address):
            logger.debug("Open skipped, position exists", extra={"token": token_address})
            return None

        quote = await self.oracle.current_price(token_address)
        degraded = not quote.is_known
        price = quote.price_usd if not degraded else PLACEHOLDER_PRICE_USD
        if degraded:
            logger.warning(
                f"Could not determine price for {symbol}, using placeholder",
                extra={"token": token_address, "price": price},
            )
        amount_token = sol_amount * self.sol_usd_rate / price

        async with self._token_locks[token_address]:
            async with self.db.transaction() as tx:
                # re-check under the lock: another cycle may have opened meanwhile
                if await tx.get_open_position(token_address):
                    logger.debug("Open skipped, position exists", extra={"token": token_address})
                    return None
                balance = await tx.get_balance()
                if balance < sol_amount:
                    logger.info(
                        "Open skipped, insufficient virtual balance",
                        extra={"token": token_address, "balance": balance, "needed": sol_amount},
                    )
                    return None

                await tx.adjust_balance(-sol_amount)
                await tx.insert_trade(Trade(
                    token_address=token_address,
                    token_symbol=symbol,
                    side=TradeSide.BUY,
                    amount_sol=sol_amount,
                    amount_token=amount_token,
                    price_usd=price,
                    is_simulated=self.simulated,
                ))
                await tx.insert_position(Position(
                    token_address=token_address,
                    token_symbol=symbol,
                    entry_price=price,
                    amount_token=amount_token,
                    amount_sol=sol_amount,
                    market_cap_usd=quote.market_cap_usd,
                    is_simulated=self.simulated,
                    degraded_fill=degraded,
                ))
                suffix = " (placeholder price)" if degraded else ""
                await tx.append_log(
                    "INFO",
                    f"[SIMULATION] Virtual Buy: {sol_amount} SOL of {symbol} at ${price:.9f}{suffix}",
                )

        logger.info(
            "Position opened",
            extra={
                "token": token_address,
                "symbol": symbol,
                "sol": sol_amount,
                "price": price,
                "degraded": degraded,
            },
        )
        return Fill(
            token_address=token_address,
            side=TradeSide.BUY,
            price_usd=price,
            amount_sol=sol_amount,
            amount_token=amount_token,
            degraded=degraded,
        )

    async def close(
        self,
        token_address: str,
        token_amount: Optional[float] = None,
        quote: Optional[PriceQuote] = None,
    ) -> Optional[Fill]:
        """Sell an OPEN position. None when there was nothing to close.

        ``quote`` lets a caller that already priced the token skip a second
        lookup; otherwise the oracle is asked. An unknown price declines the
        close rather than selling at zero.
        """
        if not await self.db.get_open_position(token_address):
            logger.debug("Close skipped, no open position", extra={"token": token_address})
            return None

        if quote is None:
            quote = await self.oracle.current_price(token_address)
        if not quote.is_known:
            logger.warning("Close deferred, price unknown", extra={"token": token_address})
            return None
        price = quote.price_usd

        async with self._token_locks[token_address]:
            async with self.db.transaction() as tx:
                row = await tx.get_open_position(token_address)
                if row is None:
                    logger.debug("Close skipped, no open position", extra={"token": token_address})
                    return None

                amount = row["amount_token"] if token_amount is None else token_amount
                pnl = pnl_percent(row["entry_price"], price)
                sol_returned = amount * price / self.sol_usd_rate

                await tx.adjust_balance(sol_returned)
                await tx.insert_trade(Trade(
                    token_address=token_address,
                    token_symbol=row["token_symbol"],
                    side=TradeSide.SELL,
                    amount_sol=sol_returned,
                    amount_token=amount,
                    price_usd=price,
                    is_simulated=self.simulated,
                ))
                await tx.close_position(row["id"], pnl)
                await tx.append_log(
                    "SUCCESS" if pnl >= 0 else "INFO",
                    f"[SIMULATION] Virtual Sell: {row['token_symbol']} closed at "
                    f"${price:.9f} (PnL: {pnl:.2f}%)",
                )

        logger.info(
            "Position closed",
            extra={"token": token_address, "price": price, "pnl_percent": round(pnl, 2)},
        )
        return Fill(
            token_address=token_address,
            side=TradeSide.SELL,
            price_usd=price,
            amount_sol=sol_returned,
            amount_token=amount,
            pnl_percent=pnl,
        )

    async def refresh_pnl(
        self,
        position: Position,
        current_price: float,
        market_cap: Optional[float] = None,
    ) -> Optional[float]:
        """Store fresh PnL for an OPEN position without closing it."""
        if current_price <= 0:
            return None
        pnl = pnl_percent(position.entry_price, current_price)
        async with self._token_locks[position.token_address]:
            async with self.db.transaction() as tx:
                updated = await tx.update_position_pnl(position.id, pnl, market_cap)
        return pnl if updated else None

    async def log(self, level: int | str, message: str):
        """Append a line to the persisted activity log."""
        await self.db.append_log(activity_level(level), message)

    async def record_opportunity(self, opportunity: Opportunity):
        await self.db.upsert_opportunity(opportunity)

    async def has_open_position(self, token_address: str) -> bool:
        return await self.db.get_open_position(token_address) is not None

    async def list_open(self) -> list[Position]:
        rows = await self.db.get_open_positions()
        return [Position(**row) for row in rows]

    async def list_recent_trades(self, limit: int = 10) -> list[Trade]:
        rows = await self.db.get_recent_trades(limit)
        return [Trade(**row) for row in rows]

    async def list_recent_logs(self, limit: int = 20) -> list[LogEntry]:
        rows = await self.db.get_recent_logs(limit)
        return [LogEntry(**row) for row in rows]

    async def list_recent_opportunities(self, limit: int = 5) -> list[Opportunity]:
        rows = await self.db.get_recent_opportunities(limit)
        return [Opportunity(**row) for row in rows]

    async def get_balance(self) -> BalanceSnapshot:
        sol = await self.db.get_balance()
        return BalanceSnapshot(sol=sol, usd=sol * self.sol_usd_rate)

    async def pnl_summary(self) -> dict:
        return await self.db.get_pnl_summary()
