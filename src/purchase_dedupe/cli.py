from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Any

from loguru import logger

from purchase_dedupe.config import DedupeSettings, get_settings
from purchase_dedupe.datasets import (
    CAPTURE_EVENT_SCHEMA,
    PRODUCT_COLUMNS,
    PRODUCTS_SCHEMA,
    ReferenceDatasetGenerator,
    to_product_row,
)
from purchase_dedupe.errors import MalformedRecordError
from purchase_dedupe.ids import SequentialIdProvider
from purchase_dedupe.logs import setup_logging
from purchase_dedupe.models import PurchaseRecord, ScanResult
from purchase_dedupe.runners import BatchScanRunner, LocalDedupePipeline
from purchase_dedupe.schema import RecordSchema
from purchase_dedupe.store import InMemoryPurchaseStore


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "run-test":
        settings = _settings_from_args(args)
        setup_logging(settings.log_level, settings.log_file)
        run_test(
            settings=settings,
            users=args.users,
            purchases_per_user=args.purchases_per_user,
            duplicate_rate=args.duplicate_rate,
            seed=args.seed,
            output_dir=args.output_dir,
            input_path=args.input,
            show_groups=args.show_groups,
        )
        return

    if args.command == "check":
        settings = _settings_from_args(args)
        setup_logging(settings.log_level, settings.log_file)
        verdict = check(settings=settings, input_path=args.input, candidate_path=args.candidate)
        print(json.dumps(verdict, indent=2))
        return

    parser.print_help()


def run_test(
    *,
    settings: DedupeSettings,
    users: int,
    purchases_per_user: int,
    duplicate_rate: float,
    seed: int,
    output_dir: Path,
    input_path: Path | None,
    show_groups: int,
) -> dict[str, Any]:
    output_dir.mkdir(parents=True, exist_ok=True)

    if input_path is None:
        records = ReferenceDatasetGenerator(seed=seed).generate(
            users=users,
            purchases_per_user=purchases_per_user,
            duplicate_rate=duplicate_rate,
        )
        dataset_path = output_dir / "test_dataset.csv"
        _write_records_csv(dataset_path, records)
    else:
        records = _read_records(input_path)
        dataset_path = input_path

    store = InMemoryPurchaseStore(records)
    pipeline = LocalDedupePipeline.from_settings(settings, id_provider=SequentialIdProvider())
    summary = BatchScanRunner(
        pipeline,
        store,
        max_workers=settings.max_workers,
        user_timeout=settings.user_timeout_seconds,
    ).run()

    groups_path = output_dir / "groups.json"
    summary_path = output_dir / "summary.json"

    _write_json(groups_path, _groups_payload(summary.results))
    payload = {
        "record_count": len(records),
        **summary.as_dict(),
        "fingerprint_collisions": sum(result.fingerprint_collisions for result in summary.results),
        "grouping": settings.grouping,
        "merge_policy": settings.merge_policy,
        "dataset_path": str(dataset_path),
        "groups_path": str(groups_path),
    }
    _write_json(summary_path, payload)

    print(f"Dataset: {dataset_path}")
    print(f"Groups: {groups_path}")
    print(f"Summary: {summary_path}")
    print("---")
    for key in ("record_count", "users_processed", "users_failed", "groups_found", "duplicates_found"):
        print(f"{key}={payload[key]}")
    if show_groups > 0:
        print("---")
        print("sample_groups=")
        print(json.dumps(_group_sample_payload(summary.results, limit=show_groups), indent=2))
    return payload


def check(*, settings: DedupeSettings, input_path: Path, candidate_path: Path) -> dict[str, Any]:
    with candidate_path.open("r", encoding="utf-8") as handle:
        row = json.load(handle)
    candidate = _schema_for(row).to_record(row)

    existing = [record for record in _read_records(input_path) if record.user_id == candidate.user_id]
    pipeline = LocalDedupePipeline.from_settings(settings)
    return pipeline.check_for_duplicate(candidate, existing).as_dict()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="purchase-dedupe", description="Purchase duplicate detection CLI")
    subparsers = parser.add_subparsers(dest="command")

    run_test_parser = subparsers.add_parser(
        "run-test",
        help="Generate or load purchases, scan every user, and output groups + summary",
    )
    run_test_parser.add_argument("--users", type=int, default=20)
    run_test_parser.add_argument("--purchases-per-user", type=int, default=40)
    run_test_parser.add_argument("--duplicate-rate", type=float, default=0.15)
    run_test_parser.add_argument("--seed", type=int, default=42)
    run_test_parser.add_argument("--input", type=Path, default=None, help="CSV or JSON export of purchases")
    run_test_parser.add_argument("--output-dir", type=Path, default=Path("data/cli_output"))
    run_test_parser.add_argument("--show-groups", type=int, default=5)
    _add_engine_arguments(run_test_parser)

    check_parser = subparsers.add_parser(
        "check",
        help="Check one captured purchase (JSON) against a user's existing purchases",
    )
    check_parser.add_argument("--input", type=Path, required=True, help="CSV or JSON export of purchases")
    check_parser.add_argument("--candidate", type=Path, required=True, help="JSON object of the new purchase")
    _add_engine_arguments(check_parser)

    return parser


def _add_engine_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--threshold", type=float, default=None, help="Duplicate confidence threshold")
    parser.add_argument("--grouping", choices=["anchor", "transitive"], default=None)
    parser.add_argument("--merge-policy", choices=["log-only", "fill-empty"], default=None)
    parser.add_argument("--max-workers", type=int, default=None)
    parser.add_argument("--log-level", type=str, default=None)


def _settings_from_args(args: argparse.Namespace) -> DedupeSettings:
    overrides = {
        "duplicate_threshold": args.threshold,
        "grouping": args.grouping,
        "merge_policy": args.merge_policy,
        "max_workers": getattr(args, "max_workers", None),
        "log_level": args.log_level,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return get_settings()
    return DedupeSettings(**overrides)


def _schema_for(row: dict[str, Any]) -> RecordSchema:
    return CAPTURE_EVENT_SCHEMA if "productName" in row else PRODUCTS_SCHEMA


def _read_records(path: Path) -> list[PurchaseRecord]:
    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as handle:
            rows = json.load(handle)
    else:
        with path.open("r", newline="", encoding="utf-8") as handle:
            rows = list(csv.DictReader(handle))

    records: list[PurchaseRecord] = []
    for row in rows:
        try:
            records.append(_schema_for(row).to_record(row))
        except MalformedRecordError as exc:
            logger.warning(f"Skipping row: {exc}")
    return records


def _write_json(path: Path, payload: object) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _write_records_csv(path: Path, records: list[PurchaseRecord]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=PRODUCT_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for record in records:
            writer.writerow(to_product_row(record))


def _groups_payload(results: list[ScanResult]) -> list[dict[str, Any]]:
    return [
        {"user_id": result.user_id, "scan_id": result.scan_id, "groups": result.descriptors()}
        for result in results
        if result.plans
    ]


def _group_sample_payload(results: list[ScanResult], limit: int = 5) -> list[dict[str, Any]]:
    payload: list[dict[str, Any]] = []
    for result in results:
        for group in result.groups:
            if len(payload) >= limit:
                return payload
            payload.append(
                {
                    "user_id": group.user_id,
                    "size": len(group.records),
                    "records": [
                        {
                            "record_id": record.record_id,
                            "product_name": record.product_name,
                            "retailer": record.retailer,
                            "purchase_price": str(record.purchase_price),
                        }
                        for record in group.records
                    ],
                }
            )
    return payload


if __name__ == "__main__":
    main()
