from purchase_dedupe.datasets import ReferenceDatasetGenerator
from purchase_dedupe.runners import LocalDedupePipeline


def test_generator_is_seeded() -> None:
    first = ReferenceDatasetGenerator(seed=3).generate(users=2, purchases_per_user=10)
    second = ReferenceDatasetGenerator(seed=3).generate(users=2, purchases_per_user=10)

    assert first == second
    assert len({record.record_id for record in first}) == 20
    assert {record.user_id for record in first} == {"user_0000", "user_0001"}


def test_generated_duplicates_are_found() -> None:
    records = ReferenceDatasetGenerator(seed=11).generate(users=1, purchases_per_user=20, duplicate_rate=0.3)

    result = LocalDedupePipeline().scan(records)

    assert result.duplicates_found > 0


def test_generator_handles_empty_request() -> None:
    assert ReferenceDatasetGenerator().generate(users=0, purchases_per_user=5) == []
