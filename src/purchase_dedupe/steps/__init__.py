from purchase_dedupe.steps.classify import DuplicateClassifier
from purchase_dedupe.steps.compare import PurchaseComparator
from purchase_dedupe.steps.confidence import ConfidenceWeights, aggregate_confidence
from purchase_dedupe.steps.consolidate import Consolidator, FillEmptyMergePolicy, LogOnlyMergePolicy
from purchase_dedupe.steps.grouping import AnchorGroupBuilder, TransitiveGroupBuilder
from purchase_dedupe.steps.normalize import normalize_product_name, normalize_retailer_name
from purchase_dedupe.steps.similarity import (
    date_similarity,
    levenshtein,
    name_similarity,
    price_similarity,
    retailer_similarity,
    score_pair,
)

__all__ = [
    "DuplicateClassifier",
    "PurchaseComparator",
    "ConfidenceWeights",
    "aggregate_confidence",
    "Consolidator",
    "FillEmptyMergePolicy",
    "LogOnlyMergePolicy",
    "AnchorGroupBuilder",
    "TransitiveGroupBuilder",
    "normalize_product_name",
    "normalize_retailer_name",
    "date_similarity",
    "levenshtein",
    "name_similarity",
    "price_similarity",
    "retailer_similarity",
    "score_pair",
]
