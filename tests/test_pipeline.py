import dataclasses
from datetime import datetime, timezone

from purchase_dedupe.config import DedupeSettings
from purchase_dedupe.ids import SequentialIdProvider
from purchase_dedupe.models import ConsolidationPlan
from purchase_dedupe.runners import LocalDedupePipeline
from purchase_dedupe.steps.consolidate import Consolidator
from purchase_dedupe.store import InMemoryPurchaseStore


def test_pipeline_returns_group_for_near_duplicates(make_record) -> None:
    records = [
        make_record("1", product_name="Sony WH-1000XM5", retailer="amazon.com", created_hour=4),
        make_record("2", product_name="Dyson V15 Detect", price="749.99", retailer="Target"),
        make_record("3", product_name="SONY WH1000XM5!!", retailer="AMZN", purchase_day=0.5, created_hour=1),
    ]
    pipeline = LocalDedupePipeline(id_provider=SequentialIdProvider())

    result = pipeline.scan(records)

    assert result.scan_id == "scan_000001"
    assert result.user_id == "user_1"
    assert [group.record_ids for group in result.groups] == [["1", "3"]]
    assert result.descriptors() == [
        {"primary_id": "3", "duplicate_ids": ["1"], "archive_ids": ["1"], "merged_fields": {}}
    ]
    assert result.duplicates_found == 1


def test_identical_records_group_with_earliest_primary(make_record) -> None:
    records = [make_record("newer", created_hour=9), make_record("older", created_hour=2)]

    result = LocalDedupePipeline().scan(records)

    assert result.plans[0].primary_id == "older"
    assert result.plans[0].archive_ids == ["newer"]


def test_scan_plans_group_mixing_naive_and_aware_creation_times(make_record) -> None:
    records = [
        dataclasses.replace(make_record("a"), created_at=datetime(2024, 1, 1, 9)),
        dataclasses.replace(make_record("b"), created_at=datetime(2024, 1, 1, 8, tzinfo=timezone.utc)),
    ]

    result = LocalDedupePipeline().scan(records)

    assert [group.record_ids for group in result.groups] == [["a", "b"]]
    assert result.failed_group_ids == []
    assert result.plans[0].primary_id == "b"


def test_scan_twice_gives_identical_outcome(make_record) -> None:
    records = [
        make_record("a", created_hour=3),
        make_record("b", product_name="Kindle Paperwhite", price="149.99"),
        make_record("c", retailer="amzn", created_hour=1),
        make_record("d", product_name="kindle paperwhite (16 GB)", price="149.99", created_hour=-1),
    ]
    pipeline = LocalDedupePipeline()

    first = pipeline.scan(records)
    second = pipeline.scan(records)

    assert first.descriptors() == second.descriptors()
    assert [g.record_ids for g in first.groups] == [g.record_ids for g in second.groups]


def test_scan_of_empty_list(make_record) -> None:
    result = LocalDedupePipeline().scan([])

    assert result.groups == []
    assert result.user_id is None


def test_scan_reports_fingerprint_collisions_without_using_them(make_record) -> None:
    records = [make_record("a"), make_record("b", created_hour=1), make_record("c", price="401.00")]

    result = LocalDedupePipeline().scan(records)

    # "c" rounds to a different dollar amount but is still grouped by the full comparison
    assert result.fingerprint_collisions == 1
    assert [g.record_ids for g in result.groups] == [["a", "b", "c"]]


def test_point_query_returns_first_match_not_best(make_record) -> None:
    candidate = make_record("new", created_hour=50)
    existing = [
        make_record("e1", product_name="Nintendo Switch OLED", price="349.99", retailer="Walmart"),
        make_record("e2", price="430.00"),
        make_record("e3"),
    ]

    verdict = LocalDedupePipeline().check_for_duplicate(candidate, existing)

    assert verdict.is_duplicate
    assert verdict.existing_product_id == "e2"
    assert verdict.confidence < 1.0


def test_point_query_without_match(make_record) -> None:
    candidate = make_record("new", product_name="Garmin Forerunner 265", price="449.99", retailer="Best Buy")
    existing = [make_record("e1", purchase_day=90, retailer="Target")]

    verdict = LocalDedupePipeline().check_for_duplicate(candidate, existing)

    assert not verdict.is_duplicate
    assert verdict.confidence == 0.0
    assert verdict.existing_product_id is None
    assert verdict.metadata is None


def test_point_query_against_empty_list(make_record) -> None:
    verdict = LocalDedupePipeline().check_for_duplicate(make_record("new"), [])

    assert verdict.as_dict() == {
        "is_duplicate": False,
        "confidence": 0.0,
        "existing_product_id": None,
        "reason": None,
        "metadata": None,
    }


class _ExplodingMergePolicy:
    def __init__(self, bad_primary: str) -> None:
        self.bad_primary = bad_primary

    def merge(self, primary, duplicates):
        if primary.record_id == self.bad_primary:
            raise RuntimeError("merge exploded")
        return {}


def test_consolidation_failure_skips_only_that_group(make_record, log_messages) -> None:
    records = [
        make_record("a"),
        make_record("b", created_hour=1),
        make_record("c", product_name="Nintendo Switch OLED", price="349.99"),
        make_record("d", product_name="Nintendo Switch OLED", price="349.99", created_hour=1),
    ]
    pipeline = LocalDedupePipeline(consolidator=Consolidator(_ExplodingMergePolicy("a")))

    result = pipeline.scan(records)

    assert len(result.groups) == 2
    assert [plan.primary_id for plan in result.plans] == ["c"]
    assert result.failed_group_ids == ["a"]
    assert any("consolidation failed for group a" in message for message in log_messages)


def test_apply_archives_and_merges(make_record) -> None:
    primary = make_record("p", retailer="")
    duplicate = make_record("d", retailer="AMZN", created_hour=2)
    store = InMemoryPurchaseStore([primary, duplicate])
    plan = ConsolidationPlan(primary_id="p", duplicate_ids=["d"], archive_ids=["d"], merged_fields={"retailer": "AMZN"})

    failed = LocalDedupePipeline().apply([plan], store)

    assert failed == []
    assert store.is_archived("d")
    assert store.get("p").retailer == "AMZN"
    assert [record.record_id for record in store.list_records("user_1")] == ["p"]


def test_apply_continues_after_store_failure(make_record, log_messages) -> None:
    store = InMemoryPurchaseStore([make_record("p1"), make_record("d1"), make_record("p2"), make_record("d2")])
    plans = [
        ConsolidationPlan(primary_id="p1", duplicate_ids=["gone"], archive_ids=["gone"]),
        ConsolidationPlan(primary_id="p2", duplicate_ids=["d2"], archive_ids=["d2"]),
    ]

    failed = LocalDedupePipeline().apply(plans, store)

    assert failed == ["p1"]
    assert store.is_archived("d2")
    assert not store.is_archived("d1")
    assert any("consolidation failed for group p1" in message for message in log_messages)


def test_from_settings_wires_transitive_grouping_and_merge_policy(make_record) -> None:
    settings = DedupeSettings(grouping="transitive", merge_policy="fill-empty")
    a = make_record("A", price="100", purchase_day=0)
    b = make_record("B", price="118", purchase_day=5, created_hour=1, attributes={"order_number": "ORD-7"})
    c = make_record("C", price="140", purchase_day=10, created_hour=2)

    result = LocalDedupePipeline.from_settings(settings).scan([a, b, c])

    assert [g.record_ids for g in result.groups] == [["A", "B", "C"]]
    assert result.plans[0].merged_fields == {"order_number": "ORD-7"}
