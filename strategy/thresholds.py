"""Gate thresholds for the decision engine."""
from pydantic import BaseModel

# Minimum pool liquidity (USD) a token needs before it is considered at all
MIN_LIQUIDITY_USD = 10000.0

# Minimum 24h traded volume (USD)
MIN_VOLUME_24H = 50000.0

# Composite safety score (0-100) a token must reach
SAFETY_THRESHOLD = 80

# Confidence (0-100) at or above which a BUY is issued
AUTO_BUY_THRESHOLD = 80

# Each binary safety signal is worth half of the safety score
SAFETY_WEIGHT_MINT = 50
SAFETY_WEIGHT_LP = 50


class GateThresholds(BaseModel):
    min_liquidity_usd: float = MIN_LIQUIDITY_USD
    min_volume_24h: float = MIN_VOLUME_24H
    safety_threshold: int = SAFETY_THRESHOLD
    auto_buy_threshold: int = AUTO_BUY_THRESHOLD
