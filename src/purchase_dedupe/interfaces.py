from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from purchase_dedupe.models import (
    ConsolidationPlan,
    DuplicateGroup,
    DuplicateVerdict,
    PurchaseRecord,
    ScanResult,
)


class PairComparator(Protocol):
    """Score two records and decide whether they are the same purchase."""

    def compare(self, candidate: PurchaseRecord, existing: PurchaseRecord) -> DuplicateVerdict:
        ...


class GroupBuilder(Protocol):
    """Partition one user's records into duplicate groups."""

    def build(self, records: Sequence[PurchaseRecord]) -> list[DuplicateGroup]:
        ...


class MergePolicy(Protocol):
    """Decide which fields of the duplicates are copied onto the primary."""

    def merge(self, primary: PurchaseRecord, duplicates: Sequence[PurchaseRecord]) -> dict[str, Any]:
        ...


class IdProvider(Protocol):
    """Source of correlation ids for scans."""

    def new_id(self) -> str:
        ...


class RecordStore(Protocol):
    """Persistence collaborator owning purchase records."""

    def list_user_ids(self) -> list[str]:
        ...

    def list_records(self, user_id: str) -> list[PurchaseRecord]:
        ...

    def archive_records(self, record_ids: Sequence[str]) -> None:
        ...

    def update_record(self, record_id: str, fields: Mapping[str, Any]) -> None:
        ...


class DedupePipeline(Protocol):
    """Per-user scan plus point query, independent of how users are scheduled."""

    def scan(self, records: Sequence[PurchaseRecord]) -> ScanResult:
        ...

    def check_for_duplicate(
        self,
        candidate: PurchaseRecord,
        existing: Sequence[PurchaseRecord],
    ) -> DuplicateVerdict:
        ...

    def apply(self, plans: Sequence[ConsolidationPlan], store: RecordStore) -> list[str]:
        ...
