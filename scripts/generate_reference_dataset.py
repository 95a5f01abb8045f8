from __future__ import annotations

import argparse
import csv
from pathlib import Path

from purchase_dedupe.datasets import PRODUCT_COLUMNS, ReferenceDatasetGenerator, to_product_row


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic multi-channel purchase dataset")
    parser.add_argument("--users", type=int, default=100)
    parser.add_argument("--purchases-per-user", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--duplicate-rate", type=float, default=0.15)
    parser.add_argument("--output", type=Path, default=Path("data/reference_purchases.csv"))
    args = parser.parse_args()

    records = ReferenceDatasetGenerator(seed=args.seed).generate(
        users=args.users,
        purchases_per_user=args.purchases_per_user,
        duplicate_rate=args.duplicate_rate,
    )

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with args.output.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=PRODUCT_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for record in records:
            writer.writerow(to_product_row(record))


if __name__ == "__main__":
    main()
