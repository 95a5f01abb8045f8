from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable, Sequence
from typing import Any, Mapping

from purchase_dedupe.models import PurchaseRecord

_RECORD_FIELDS = {f.name for f in dataclasses.fields(PurchaseRecord)} - {"record_id", "user_id", "attributes"}


class InMemoryPurchaseStore:
    """Thread-safe record store for local runs and tests.

    Archived records are kept but no longer listed, mirroring the products
    table's ``is_archived`` flag.
    """

    def __init__(self, records: Iterable[PurchaseRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, PurchaseRecord] = {}
        self._archived: set[str] = set()
        self.add(records)

    def add(self, records: Iterable[PurchaseRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.record_id] = record

    def get(self, record_id: str) -> PurchaseRecord:
        with self._lock:
            return self._records[record_id]

    def is_archived(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._archived

    def list_user_ids(self) -> list[str]:
        with self._lock:
            seen: dict[str, None] = {}
            for record in self._records.values():
                seen.setdefault(record.user_id, None)
            return list(seen)

    def list_records(self, user_id: str) -> list[PurchaseRecord]:
        with self._lock:
            return [
                record
                for record_id, record in self._records.items()
                if record.user_id == user_id and record_id not in self._archived
            ]

    def archive_records(self, record_ids: Sequence[str]) -> None:
        with self._lock:
            missing = [record_id for record_id in record_ids if record_id not in self._records]
            if missing:
                raise KeyError(f"unknown record ids: {missing}")
            self._archived.update(record_ids)

    def update_record(self, record_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            record = self._records[record_id]
            core = {key: value for key, value in fields.items() if key in _RECORD_FIELDS}
            extra = {key: value for key, value in fields.items() if key not in _RECORD_FIELDS}
            attributes = {**record.attributes, **extra}
            self._records[record_id] = dataclasses.replace(record, attributes=attributes, **core)
