from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from loguru import logger

from purchase_dedupe.errors import ConfigurationError, MalformedRecordError
from purchase_dedupe.interfaces import MergePolicy
from purchase_dedupe.models import ConsolidationPlan, DuplicateGroup, PurchaseRecord
from purchase_dedupe.schema import parse_timestamp

MERGEABLE_FIELDS = ("product_name", "purchase_price", "purchase_date", "retailer")


class LogOnlyMergePolicy:
    """Reference behaviour: announce the merge, copy nothing."""

    def merge(self, primary: PurchaseRecord, duplicates: Sequence[PurchaseRecord]) -> dict[str, Any]:
        logger.info(
            f"Merging duplicate products into {primary.record_id}: "
            f"{[record.record_id for record in duplicates]} (no fields copied)"
        )
        return {}


class FillEmptyMergePolicy:
    """Fill fields that are empty on the primary from the duplicates.

    The primary's non-empty value always wins; otherwise the earliest
    created duplicate holding a non-empty value supplies it. Attributes are
    merged key by key with the same rule.
    """

    def merge(self, primary: PurchaseRecord, duplicates: Sequence[PurchaseRecord]) -> dict[str, Any]:
        merged: dict[str, Any] = {}

        for name in MERGEABLE_FIELDS:
            if not _is_empty(getattr(primary, name)):
                continue
            value = _first_filled(getattr(record, name) for record in duplicates)
            if value is not None:
                merged[name] = value

        attribute_keys: list[str] = []
        for record in duplicates:
            attribute_keys.extend(key for key in record.attributes if key not in attribute_keys)
        for key in attribute_keys:
            if not _is_empty(primary.attributes.get(key)):
                continue
            value = _first_filled(record.attributes.get(key) for record in duplicates)
            if value is not None:
                merged[key] = value

        if merged:
            logger.info(f"Merging fields {sorted(merged)} into {primary.record_id}")
        return merged


MERGE_POLICIES: dict[str, type] = {
    "log-only": LogOnlyMergePolicy,
    "fill-empty": FillEmptyMergePolicy,
}


def merge_policy_for(name: str) -> MergePolicy:
    try:
        return MERGE_POLICIES[name]()
    except KeyError as exc:
        raise ConfigurationError(f"unknown merge policy {name!r}, expected one of {sorted(MERGE_POLICIES)}") from exc


class Consolidator:
    """Turns a duplicate group into archive and merge commands.

    The earliest created record survives as primary (input order breaks
    ties, records without a creation time sort last); every other member is
    archived, never deleted.
    """

    def __init__(self, merge_policy: MergePolicy | None = None) -> None:
        self._merge_policy = merge_policy or LogOnlyMergePolicy()

    def plan(self, group: DuplicateGroup) -> ConsolidationPlan:
        ordered = sorted(group.records, key=_creation_key)
        primary, duplicates = ordered[0], ordered[1:]
        duplicate_ids = [record.record_id for record in duplicates]

        logger.info(
            f"Processing duplicate group for user {group.user_id}: "
            f"primary={primary.record_id} duplicates={duplicate_ids}"
        )
        merged = self._merge_policy.merge(primary, duplicates)
        return ConsolidationPlan(
            primary_id=primary.record_id,
            duplicate_ids=duplicate_ids,
            archive_ids=list(duplicate_ids),
            merged_fields=merged,
        )


def _creation_key(record: PurchaseRecord) -> tuple[bool, datetime | int]:
    if record.created_at is None:
        return (True, 0)
    try:
        return (False, parse_timestamp(record.created_at))
    except MalformedRecordError:
        logger.debug(f"Unreadable created_at on {record.record_id}; sorting it last")
        return (True, 0)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _first_filled(values: Any) -> Any:
    for value in values:
        if not _is_empty(value):
            return value
    return None
