"""Discovery scanner: one cycle shape for every candidate source."""
import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from execution.ledger import PositionLedger
from shared.periodic import PeriodicTask
from shared.schemas import Candidate, Decision, DecisionAction, Opportunity
from strategy.decision import DecisionEngine

logger = logging.getLogger(__name__)


class CandidateSource(Protocol):
    """An external listing feed the scanner can poll."""

    name: str

    async def fetch(self, client: httpx.AsyncClient) -> list[dict]:
        """Return a bounded batch of raw entries; raise on transport failure."""
        ...

    def normalize(self, entry: dict) -> Candidate:
        """Raise KeyError/TypeError/ValueError on entries missing required fields."""
        ...

    def accept(self, candidate: Candidate) -> bool:
        ...


@dataclass
class ScanReport:
    """Counters for one scan cycle."""
    source: str
    fetched: int = 0
    rejected: int = 0
    filtered: int = 0
    evaluated: int = 0
    bought: int = 0
    errors: int = 0
    failed: bool = False


class DiscoveryScanner(PeriodicTask):
    """Polls a candidate source, scores every entry and opens paper positions."""

    def __init__(
        self,
        source: CandidateSource,
        engine: DecisionEngine,
        ledger: PositionLedger,
        interval: float,
        trade_size_sol: float = 0.1,
        paper_trading: bool = True,
        client: Optional[httpx.AsyncClient] = None,
        none_log_sample_rate: float = 0.1,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(interval)
        self.name = f"scanner:{source.name}"
        self.source = source
        self.engine = engine
        self.ledger = ledger
        self.trade_size_sol = trade_size_sol
        self.paper_trading = paper_trading
        self.none_log_sample_rate = none_log_sample_rate
        self._client = client or httpx.AsyncClient(timeout=10.0)
        self._owns_client = client is None
        self._rng = rng or random.Random()

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def run_cycle(self) -> ScanReport:
        report = ScanReport(source=self.source.name)
        try:
            entries = await self.source.fetch(self._client)
        except (httpx.HTTPError, ValueError) as e:
            report.failed = True
            logger.warning(f"{self.source.name} fetch failed: {e}")
            await self.ledger.log("WARN", f"[{self.source.name.upper()}] Scan failed: {e}")
            return report

        for entry in entries:
            report.fetched += 1
            try:
                candidate = self.source.normalize(entry)
            except (KeyError, TypeError, ValueError) as e:
                report.rejected += 1
                logger.warning(
                    f"Skipping malformed {self.source.name} entry: {e!r}",
                    extra={"source": self.source.name},
                )
                continue

            if not self.source.accept(candidate):
                report.filtered += 1
                continue

            try:
                await self._evaluate(candidate, report)
            except Exception as e:
                report.errors += 1
                logger.error(
                    f"Error processing {self.source.name} token: {e}",
                    extra={"token": candidate.address},
                )

        logger.info(
            "Scan complete",
            extra={
                "source": report.source,
                "fetched": report.fetched,
                "evaluated": report.evaluated,
                "bought": report.bought,
            },
        )
        return report

    async def _evaluate(self, candidate: Candidate, report: ScanReport):
        decision = self.engine.decide(candidate)
        report.evaluated += 1

        await self.ledger.record_opportunity(Opportunity(
            token_address=candidate.address,
            token_symbol=candidate.symbol,
            liquidity_usd=candidate.liquidity_usd,
            volume_24h=candidate.volume_24h,
            price_usd=candidate.price_usd,
            safety_score=decision.safety_score,
            is_safe=decision.safety_score >= self.engine.thresholds.safety_threshold,
            source=self.source.name,
        ))

        if decision.action == DecisionAction.BUY:
            if await self._buy(candidate, decision):
                report.bought += 1
        elif decision.action == DecisionAction.NONE:
            if self._rng.random() < self.none_log_sample_rate:
                await self.ledger.log(
                    "DEBUG",
                    f"Analyzing {candidate.symbol}: Confidence {decision.confidence:.0f}% "
                    f"- Below threshold ({self.engine.thresholds.auto_buy_threshold}%)",
                )
        else:
            logger.debug(
                "Candidate skipped",
                extra={"token": candidate.address, "reason": decision.reason},
            )

    async def _buy(self, candidate: Candidate, decision: Decision) -> bool:
        tag = self.source.name.upper()
        if not self.paper_trading:
            await self.ledger.log(
                "WARN",
                f"Autonomous Buy Triggered for {candidate.symbol} "
                f"(Confidence: {decision.confidence:.0f}%), but paper trading is disabled.",
            )
            return False

        if await self.ledger.has_open_position(candidate.address):
            logger.debug("Would have bought, position already open", extra={"token": candidate.address})
            return False

        await self.ledger.log(
            "INFO",
            f"[{tag}] High confidence ({decision.confidence:.0f}%) detected for "
            f"{candidate.symbol}. Executing Autonomous Buy...",
        )
        fill = await self.ledger.open(candidate.address, candidate.symbol, self.trade_size_sol)
        if fill is None:
            return False

        note = " (placeholder price)" if fill.degraded else ""
        await self.ledger.log(
            "SUCCESS",
            f"[SUCCESS] {tag} position opened for {candidate.symbol} at ${fill.price_usd:.9f}{note}.",
        )
        return True
