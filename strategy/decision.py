"""Core gating policy: liquidity -> volume -> safety -> confidence."""
import logging

from shared.schemas import Candidate, Decision, DecisionAction
from strategy.confidence import ConfidenceModel
from strategy.safety import safety_score
from strategy.thresholds import GateThresholds

logger = logging.getLogger(__name__)

REASON_LOW_LIQUIDITY = "Low Liquidity"
REASON_LOW_VOLUME = "Low Volume"
REASON_UNSAFE = "Unsafe"
REASON_LOW_CONFIDENCE = "Low Confidence"
REASON_HIGH_CONFIDENCE = "High Confidence"


class DecisionEngine:
    """Turns a candidate into SKIP, NONE or BUY.

    Gates run in a fixed order and the first failing gate decides, so a
    candidate rejected for liquidity never reaches the confidence model.
    The engine reads nothing but its thresholds and the injected model;
    whether a BUY is acted on is the caller's business.
    """

    def __init__(self, thresholds: GateThresholds, confidence_model: ConfidenceModel):
        self.thresholds = thresholds
        self.confidence_model = confidence_model

    def decide(self, candidate: Candidate) -> Decision:
        t = self.thresholds
        score = safety_score(candidate.mint_disabled, candidate.lp_burnt)

        if candidate.liquidity_usd < t.min_liquidity_usd:
            return Decision(action=DecisionAction.SKIP, reason=REASON_LOW_LIQUIDITY, safety_score=score)

        if candidate.volume_24h < t.min_volume_24h:
            return Decision(action=DecisionAction.SKIP, reason=REASON_LOW_VOLUME, safety_score=score)

        if score < t.safety_threshold:
            return Decision(action=DecisionAction.SKIP, reason=REASON_UNSAFE, safety_score=score)

        confidence = self.confidence_model.score(candidate)
        if confidence < t.auto_buy_threshold:
            return Decision(
                action=DecisionAction.NONE,
                reason=REASON_LOW_CONFIDENCE,
                confidence=confidence,
                safety_score=score,
            )

        logger.debug(
            "BUY decision",
            extra={"token": candidate.address, "confidence": confidence},
        )
        return Decision(
            action=DecisionAction.BUY,
            reason=REASON_HIGH_CONFIDENCE,
            confidence=confidence,
            safety_score=score,
        )
