from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from purchase_dedupe.config import DedupeSettings
from purchase_dedupe.errors import ConsolidationFailure
from purchase_dedupe.ids import Uuid4IdProvider
from purchase_dedupe.interfaces import GroupBuilder, IdProvider, PairComparator, RecordStore
from purchase_dedupe.models import (
    ConsolidationPlan,
    DuplicateGroup,
    DuplicateVerdict,
    PurchaseRecord,
    ScanResult,
)
from purchase_dedupe.steps.classify import DuplicateClassifier
from purchase_dedupe.steps.compare import PurchaseComparator
from purchase_dedupe.steps.consolidate import Consolidator, merge_policy_for
from purchase_dedupe.steps.fingerprint import count_fingerprint_collisions
from purchase_dedupe.steps.grouping import AnchorGroupBuilder, TransitiveGroupBuilder


class LocalDedupePipeline:
    """Single-process runner for one user's record list.

    ``scan`` and ``check_for_duplicate`` are pure with respect to their
    inputs; only ``apply`` talks to the store.
    """

    def __init__(
        self,
        comparator: PairComparator | None = None,
        group_builder: GroupBuilder | None = None,
        consolidator: Consolidator | None = None,
        id_provider: IdProvider | None = None,
    ) -> None:
        self._comparator = comparator or PurchaseComparator()
        self._group_builder = group_builder or AnchorGroupBuilder(self._comparator)
        self._consolidator = consolidator or Consolidator()
        self._id_provider = id_provider or Uuid4IdProvider()

    @classmethod
    def from_settings(
        cls,
        settings: DedupeSettings,
        id_provider: IdProvider | None = None,
    ) -> "LocalDedupePipeline":
        comparator = PurchaseComparator(
            weights=settings.weights(),
            classifier=DuplicateClassifier(
                threshold=settings.duplicate_threshold,
                reason_threshold=settings.reason_threshold,
            ),
        )
        if settings.grouping == "transitive":
            group_builder: GroupBuilder = TransitiveGroupBuilder(comparator)
        else:
            group_builder = AnchorGroupBuilder(comparator)
        return cls(
            comparator=comparator,
            group_builder=group_builder,
            consolidator=Consolidator(merge_policy_for(settings.merge_policy)),
            id_provider=id_provider,
        )

    def scan(self, records: Sequence[PurchaseRecord]) -> ScanResult:
        scan_id = self._id_provider.new_id()
        user_id = records[0].user_id if records else None

        with logger.contextualize(scan_id=scan_id, user_id=user_id):
            logger.info(f"Scanning {len(records)} record(s) for duplicates")
            groups = self._group_builder.build(records)

            plans: list[ConsolidationPlan] = []
            failed: list[str] = []
            for group in groups:
                try:
                    plans.append(self._plan(group))
                except ConsolidationFailure as failure:
                    logger.opt(exception=failure).error(f"{failure}; skipping group")
                    failed.append(failure.primary_id)

            result = ScanResult(
                scan_id=scan_id,
                user_id=user_id,
                record_count=len(records),
                groups=groups,
                plans=plans,
                failed_group_ids=failed,
                fingerprint_collisions=count_fingerprint_collisions(records),
            )
            logger.info(
                f"Found {len(groups)} duplicate group(s), {result.duplicates_found} duplicate record(s)"
            )
        return result

    def check_for_duplicate(
        self,
        candidate: PurchaseRecord,
        existing: Sequence[PurchaseRecord],
    ) -> DuplicateVerdict:
        """Verdict for the first existing record the candidate duplicates.

        First match in list order wins, even if a later record scores higher.
        """
        for record in existing:
            verdict = self._comparator.compare(candidate, record)
            if verdict.is_duplicate:
                logger.info(
                    f"Candidate {candidate.record_id} duplicates {record.record_id} "
                    f"(confidence={verdict.confidence:.3f})"
                )
                return verdict
        return DuplicateVerdict.not_duplicate()

    def apply(self, plans: Sequence[ConsolidationPlan], store: RecordStore) -> list[str]:
        """Persist each plan; returns primary ids of groups that failed."""
        failed: list[str] = []
        for plan in plans:
            try:
                self._persist(plan, store)
            except ConsolidationFailure as failure:
                logger.opt(exception=failure).error(f"{failure}; continuing with next group")
                failed.append(plan.primary_id)
                continue
            logger.info(f"Archived {plan.archive_ids} in favour of {plan.primary_id}")
        return failed

    def _plan(self, group: DuplicateGroup) -> ConsolidationPlan:
        try:
            return self._consolidator.plan(group)
        except Exception as exc:
            raise ConsolidationFailure(group.records[0].record_id, str(exc)) from exc

    def _persist(self, plan: ConsolidationPlan, store: RecordStore) -> None:
        try:
            if plan.merged_fields:
                store.update_record(plan.primary_id, plan.merged_fields)
            store.archive_records(plan.archive_ids)
        except Exception as exc:
            raise ConsolidationFailure(plan.primary_id, str(exc)) from exc
