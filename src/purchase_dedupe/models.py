from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class PurchaseRecord:
    """One captured purchase, as handed over by the record store.

    ``purchase_price`` and ``purchase_date`` may be missing when the capture
    channel could not parse them; the scorer treats those dimensions as 0.
    """

    record_id: str
    user_id: str
    product_name: str
    purchase_price: Decimal | None
    purchase_date: datetime | None
    retailer: str
    created_at: datetime | None
    attributes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SimilarityVector:
    """Per-field similarities of one compared pair, each in [0, 1]."""

    name: float
    price: float
    date: float
    retailer: float

    def as_dict(self) -> dict[str, float]:
        return {
            "name_similarity": self.name,
            "price_similarity": self.price,
            "date_similarity": self.date,
            "retailer_similarity": self.retailer,
        }


@dataclass(frozen=True, slots=True)
class DuplicateVerdict:
    """Outcome of comparing a record against an existing one."""

    is_duplicate: bool
    confidence: float
    existing_product_id: str | None = None
    reason: str | None = None
    metadata: SimilarityVector | None = None

    @classmethod
    def not_duplicate(cls, existing_product_id: str | None = None) -> "DuplicateVerdict":
        return cls(is_duplicate=False, confidence=0.0, existing_product_id=existing_product_id)

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_duplicate": self.is_duplicate,
            "confidence": self.confidence,
            "existing_product_id": self.existing_product_id,
            "reason": self.reason,
            "metadata": self.metadata.as_dict() if self.metadata else None,
        }


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    """Records from one user's scan that describe the same purchase."""

    records: tuple[PurchaseRecord, ...]

    def __post_init__(self) -> None:
        if len(self.records) < 2:
            raise ValueError("a duplicate group needs at least two records")

    @property
    def record_ids(self) -> list[str]:
        return [record.record_id for record in self.records]

    @property
    def user_id(self) -> str:
        return self.records[0].user_id


@dataclass(slots=True)
class ConsolidationPlan:
    """Commands the store must apply to consolidate one duplicate group."""

    primary_id: str
    duplicate_ids: list[str]
    archive_ids: list[str]
    merged_fields: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "primary_id": self.primary_id,
            "duplicate_ids": list(self.duplicate_ids),
            "archive_ids": list(self.archive_ids),
            "merged_fields": {key: _jsonable(value) for key, value in self.merged_fields.items()},
        }


@dataclass(slots=True)
class ScanResult:
    """Everything one per-user scan produced."""

    scan_id: str
    user_id: str | None
    record_count: int
    groups: list[DuplicateGroup]
    plans: list[ConsolidationPlan]
    failed_group_ids: list[str] = field(default_factory=list)
    fingerprint_collisions: int = 0

    @property
    def duplicates_found(self) -> int:
        return sum(len(plan.duplicate_ids) for plan in self.plans)

    def descriptors(self) -> list[dict[str, Any]]:
        return [plan.as_dict() for plan in self.plans]


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value
