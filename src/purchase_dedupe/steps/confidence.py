from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from purchase_dedupe.errors import ConfigurationError
from purchase_dedupe.models import SimilarityVector

NAME_WEIGHT = 0.4
PRICE_WEIGHT = 0.3
DATE_WEIGHT = 0.2
RETAILER_WEIGHT = 0.1


def _exact(value: float) -> Decimal:
    return Decimal(repr(float(value)))


@dataclass(frozen=True)
class ConfidenceWeights:
    """Relative importance of each similarity; must sum to exactly 1."""

    name: float = NAME_WEIGHT
    price: float = PRICE_WEIGHT
    date: float = DATE_WEIGHT
    retailer: float = RETAILER_WEIGHT

    def __post_init__(self) -> None:
        weights = (self.name, self.price, self.date, self.retailer)
        if any(weight < 0 for weight in weights):
            raise ConfigurationError(f"confidence weights must be non-negative, got {weights}")
        total = sum(_exact(weight) for weight in weights)
        if total != 1:
            raise ConfigurationError(f"confidence weights must sum to 1.0, got {total}")


DEFAULT_WEIGHTS = ConfidenceWeights()


def aggregate_confidence(vector: SimilarityVector, weights: ConfidenceWeights = DEFAULT_WEIGHTS) -> float:
    """Weighted sum of the four similarities.

    Summed in decimal so that a perfect match is exactly 1.0 and boundary
    values such as 0.8 are not nudged by binary rounding.
    """
    total = (
        _exact(vector.name) * _exact(weights.name)
        + _exact(vector.price) * _exact(weights.price)
        + _exact(vector.date) * _exact(weights.date)
        + _exact(vector.retailer) * _exact(weights.retailer)
    )
    return min(1.0, max(0.0, float(total)))
