"""Safety signals: composite score plus pluggable probes for the two flags."""
import random
from typing import Optional, Protocol

from shared.schemas import SafetySignals
from strategy.thresholds import SAFETY_WEIGHT_LP, SAFETY_WEIGHT_MINT


def safety_score(mint_disabled: bool, lp_burnt: bool) -> int:
    """Score a token 0-100 from its mint-authority and LP-burn flags."""
    score = 0
    if mint_disabled:
        score += SAFETY_WEIGHT_MINT
    if lp_burnt:
        score += SAFETY_WEIGHT_LP
    return score


class SafetyProbe(Protocol):
    """Anything that can tell whether a token's mint is revoked and LP burnt."""

    def probe(self, token_address: str) -> SafetySignals:
        ...


class BondingCurveSafety:
    """Bonding-curve launches ship with mint revoked and liquidity locked in the curve."""

    def probe(self, token_address: str) -> SafetySignals:
        return SafetySignals(mint_disabled=True, lp_burnt=True)


class SimulatedSafetyProbe:
    """Stand-in for an on-chain audit: independent coin flips per signal."""

    def __init__(
        self,
        p_mint_disabled: float = 0.8,
        p_lp_burnt: float = 0.7,
        rng: Optional[random.Random] = None,
    ):
        self.p_mint_disabled = p_mint_disabled
        self.p_lp_burnt = p_lp_burnt
        self._rng = rng or random.Random()

    def probe(self, token_address: str) -> SafetySignals:
        return SafetySignals(
            mint_disabled=self._rng.random() < self.p_mint_disabled,
            lp_burnt=self._rng.random() < self.p_lp_burnt,
        )
