"""Confidence models feeding the last gate of the decision engine."""
import random
from typing import Optional, Protocol

from shared.schemas import Candidate


class ConfidenceModel(Protocol):
    """Scores a candidate 0-100. Swap in a real classifier here."""

    def score(self, candidate: Candidate) -> float:
        ...


class RandomConfidence:
    """Uniform integer confidence in [low, high]; placeholder for a trained model."""

    def __init__(self, low: int = 81, high: int = 100, rng: Optional[random.Random] = None):
        self.low = max(0, low)
        self.high = min(100, high)
        if self.low > self.high:
            raise ValueError(f"Confidence range is empty: {low}..{high} within 0..100")
        self._rng = rng or random.Random()

    def score(self, candidate: Candidate) -> float:
        return float(self._rng.randint(self.low, self.high))


class FixedConfidence:
    """Always returns the same confidence."""

    def __init__(self, value: float):
        self.value = max(0.0, min(100.0, value))

    def score(self, candidate: Candidate) -> float:
        return self.value
