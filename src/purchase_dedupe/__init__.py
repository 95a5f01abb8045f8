"""Duplicate detection and consolidation for multi-channel purchase records."""

from purchase_dedupe.models import (
    ConsolidationPlan,
    DuplicateGroup,
    DuplicateVerdict,
    PurchaseRecord,
    ScanResult,
    SimilarityVector,
)
from purchase_dedupe.schema import PurchaseField, RecordSchema

__all__ = [
    "ConsolidationPlan",
    "DuplicateGroup",
    "DuplicateVerdict",
    "PurchaseRecord",
    "ScanResult",
    "SimilarityVector",
    "PurchaseField",
    "RecordSchema",
]
