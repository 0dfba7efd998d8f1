"""Stop-loss / take-profit monitor over open paper positions."""
import logging
from dataclasses import dataclass, field

from execution.ledger import PositionLedger
from feeds.price_oracle import PriceOracle
from shared.periodic import PeriodicTask
from shared.schemas import Position

logger = logging.getLogger(__name__)


@dataclass
class MonitorReport:
    checked: int = 0
    refreshed: int = 0
    unpriced: int = 0
    closed: list[str] = field(default_factory=list)
    errors: int = 0


class PnLMonitor(PeriodicTask):
    """Reprices every OPEN position and exits those past a threshold."""

    name = "pnl-monitor"

    def __init__(
        self,
        ledger: PositionLedger,
        oracle: PriceOracle,
        interval: float = 15.0,
        stop_loss_pct: float = 15.0,
        take_profit_pct: float = 30.0,
    ):
        super().__init__(interval)
        self.ledger = ledger
        self.oracle = oracle
        # thresholds are magnitudes: stop-loss fires at pnl <= -stop_loss_pct
        self.stop_loss_pct = abs(stop_loss_pct)
        self.take_profit_pct = abs(take_profit_pct)

    def exit_reason(self, pnl: float) -> str | None:
        if pnl <= -self.stop_loss_pct:
            return "stop-loss"
        if pnl >= self.take_profit_pct:
            return "take-profit"
        return None

    async def run_cycle(self) -> MonitorReport:
        report = MonitorReport()
        for position in await self.ledger.list_open():
            report.checked += 1
            try:
                await self._check(position, report)
            except Exception as e:
                report.errors += 1
                logger.error(
                    f"PnL update error: {e}",
                    extra={"token": position.token_address},
                )
        return report

    async def _check(self, position: Position, report: MonitorReport):
        quote = await self.oracle.current_price(position.token_address)
        if not quote.is_known:
            report.unpriced += 1
            logger.debug("No price this cycle", extra={"token": position.token_address})
            return

        pnl = await self.ledger.refresh_pnl(position, quote.price_usd, quote.market_cap_usd)
        if pnl is None:
            # closed by another cycle between listing and refresh
            return
        report.refreshed += 1

        reason = self.exit_reason(pnl)
        if reason is None:
            return

        logger.info(
            f"Exit triggered ({reason})",
            extra={"token": position.token_address, "pnl_percent": round(pnl, 2)},
        )
        fill = await self.ledger.close(position.token_address, position.amount_token, quote=quote)
        if fill is not None:
            report.closed.append(position.token_address)
