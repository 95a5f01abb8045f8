from __future__ import annotations

from purchase_dedupe.models import DuplicateVerdict, SimilarityVector

DUPLICATE_THRESHOLD = 0.8
REASON_THRESHOLD = 0.9

_REASON_CLAUSES = (
    ("name", "identical product name"),
    ("price", "identical price"),
    ("date", "same purchase date"),
    ("retailer", "same retailer"),
)


class DuplicateClassifier:
    """Thresholds aggregate confidence into a verdict with a readable reason."""

    def __init__(
        self,
        threshold: float = DUPLICATE_THRESHOLD,
        reason_threshold: float = REASON_THRESHOLD,
    ) -> None:
        self.threshold = threshold
        self._reason_threshold = reason_threshold

    def is_duplicate(self, confidence: float) -> bool:
        return confidence > self.threshold

    def classify(
        self,
        confidence: float,
        vector: SimilarityVector,
        existing_product_id: str | None = None,
    ) -> DuplicateVerdict:
        duplicate = self.is_duplicate(confidence)
        return DuplicateVerdict(
            is_duplicate=duplicate,
            confidence=confidence,
            existing_product_id=existing_product_id,
            reason=self.reason(vector) if duplicate else None,
            metadata=vector,
        )

    def reason(self, vector: SimilarityVector) -> str:
        # Empty when no single field clears the bar even though the total did.
        clauses = [
            clause
            for attribute, clause in _REASON_CLAUSES
            if getattr(vector, attribute) > self._reason_threshold
        ]
        return ", ".join(clauses)
