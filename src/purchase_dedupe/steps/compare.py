from __future__ import annotations

from loguru import logger

from purchase_dedupe.errors import ComparisonFailure
from purchase_dedupe.models import DuplicateVerdict, PurchaseRecord, SimilarityVector
from purchase_dedupe.steps.classify import DuplicateClassifier
from purchase_dedupe.steps.confidence import DEFAULT_WEIGHTS, ConfidenceWeights, aggregate_confidence
from purchase_dedupe.steps.similarity import score_pair


class PurchaseComparator:
    """Scores a pair, aggregates confidence and classifies the result.

    Any fault while scoring is logged and turned into a non-duplicate verdict
    for that pair only.
    """

    def __init__(
        self,
        weights: ConfidenceWeights = DEFAULT_WEIGHTS,
        classifier: DuplicateClassifier | None = None,
    ) -> None:
        self._weights = weights
        self._classifier = classifier or DuplicateClassifier()

    def compare(self, candidate: PurchaseRecord, existing: PurchaseRecord) -> DuplicateVerdict:
        try:
            vector, confidence = self._score(candidate, existing)
        except ComparisonFailure as failure:
            logger.opt(exception=failure).warning(f"{failure}; treating pair as distinct")
            return DuplicateVerdict.not_duplicate(existing.record_id)
        return self._classifier.classify(confidence, vector, existing_product_id=existing.record_id)

    def _score(self, candidate: PurchaseRecord, existing: PurchaseRecord) -> tuple[SimilarityVector, float]:
        try:
            vector = score_pair(candidate, existing)
            return vector, aggregate_confidence(vector, self._weights)
        except Exception as exc:
            raise ComparisonFailure(candidate.record_id, existing.record_id) from exc
