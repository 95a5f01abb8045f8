from __future__ import annotations

import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from loguru import logger

from purchase_dedupe.interfaces import DedupePipeline, RecordStore
from purchase_dedupe.models import ScanResult


@dataclass(slots=True)
class BatchSummary:
    users_processed: int = 0
    users_failed: int = 0
    groups_found: int = 0
    groups_failed: int = 0
    duplicates_found: int = 0
    results: list[ScanResult] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {
            "users_processed": self.users_processed,
            "users_failed": self.users_failed,
            "groups_found": self.groups_found,
            "groups_failed": self.groups_failed,
            "duplicates_found": self.duplicates_found,
        }


class BatchScanRunner:
    """Scans every user in a store and applies the resulting plans.

    Users are scanned on a thread pool (one worker by default); plans are
    applied from the calling thread. A failing or overrunning user is logged
    and counted, never fatal to the batch.
    """

    def __init__(
        self,
        pipeline: DedupePipeline,
        store: RecordStore,
        max_workers: int = 1,
        user_timeout: float | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._max_workers = max_workers
        self._user_timeout = user_timeout

    def run(self) -> BatchSummary:
        summary = BatchSummary()
        user_ids = self._store.list_user_ids()
        if not user_ids:
            logger.info("No active users found")
            return summary

        logger.info(f"Starting duplicate detection scan for {len(user_ids)} user(s)")
        outcomes = self._scan_all(user_ids)
        for user_id in user_ids:
            result = outcomes.get(user_id)
            if result is None:
                summary.users_failed += 1
                continue
            self._record(summary, result)

        logger.info(
            f"Completed duplicate detection scan: users={summary.users_processed} "
            f"duplicates={summary.duplicates_found} failed_users={summary.users_failed}"
        )
        return summary

    def _scan_all(self, user_ids: list[str]) -> dict[str, ScanResult]:
        """Scan users with at most ``max_workers`` scans in flight.

        A user's deadline starts when it is handed to a free worker. An
        overrunning scan is abandoned together with its worker and the
        remaining users move on to a fresh pool.
        """
        pending = deque(user_ids)
        outcomes: dict[str, ScanResult] = {}
        in_flight: dict[Future[ScanResult], tuple[str, float]] = {}
        executors = [self._new_executor()]
        try:
            while pending or in_flight:
                while pending and len(in_flight) < self._max_workers:
                    user_id = pending.popleft()
                    future = executors[-1].submit(self._scan_user, user_id)
                    in_flight[future] = (user_id, time.monotonic())

                done, _ = wait(in_flight, timeout=self._time_left(in_flight), return_when=FIRST_COMPLETED)
                for future in done:
                    user_id, _ = in_flight.pop(future)
                    try:
                        outcomes[user_id] = future.result()
                    except Exception:
                        logger.exception(f"Error processing user {user_id} for duplicates")

                overrun = self._overrun(in_flight)
                if overrun:
                    for future in overrun:
                        user_id, _ = in_flight.pop(future)
                        logger.error(f"Scan for user {user_id} exceeded {self._user_timeout}s; skipped")
                    executors.append(self._new_executor())
        finally:
            for executor in executors:
                executor.shutdown(wait=False, cancel_futures=True)
        return outcomes

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="dedupe")

    def _time_left(self, in_flight: dict[Future[ScanResult], tuple[str, float]]) -> float | None:
        if self._user_timeout is None:
            return None
        earliest = min(started for _, started in in_flight.values())
        return max(0.0, earliest + self._user_timeout - time.monotonic())

    def _overrun(self, in_flight: dict[Future[ScanResult], tuple[str, float]]) -> list[Future[ScanResult]]:
        if self._user_timeout is None:
            return []
        now = time.monotonic()
        return [
            future
            for future, (_, started) in in_flight.items()
            if not future.done() and now - started >= self._user_timeout
        ]

    def _scan_user(self, user_id: str) -> ScanResult:
        records = self._store.list_records(user_id)
        return self._pipeline.scan(records)

    def _record(self, summary: BatchSummary, result: ScanResult) -> None:
        failed = self._pipeline.apply(result.plans, self._store)
        result.failed_group_ids.extend(failed)

        summary.users_processed += 1
        summary.groups_found += len(result.groups)
        summary.groups_failed += len(result.failed_group_ids)
        summary.duplicates_found += result.duplicates_found
        summary.results.append(result)
