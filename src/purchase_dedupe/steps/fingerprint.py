from __future__ import annotations

import hashlib
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from purchase_dedupe.models import PurchaseRecord
from purchase_dedupe.steps.normalize import normalize_product_name, normalize_retailer_name


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Hashes of a record's coarse, normalized fields.

    Diagnostic only: grouping decisions always come from the full pairwise
    comparison.
    """

    name_hash: str
    price_hash: str
    date_hash: str
    retailer_hash: str
    combined_hash: str


def fingerprint(record: PurchaseRecord) -> Fingerprint:
    name_hash = _hash(normalize_product_name(record.product_name))
    price_hash = _hash(_rounded_price(record.purchase_price))
    date_hash = _hash(record.purchase_date.date().isoformat() if record.purchase_date else "")
    retailer_hash = _hash(normalize_retailer_name(record.retailer))
    return Fingerprint(
        name_hash=name_hash,
        price_hash=price_hash,
        date_hash=date_hash,
        retailer_hash=retailer_hash,
        combined_hash=_hash(f"{name_hash}-{price_hash}-{date_hash}-{retailer_hash}"),
    )


def count_fingerprint_collisions(records: Sequence[PurchaseRecord]) -> int:
    """Number of records whose combined fingerprint is shared with an earlier record."""
    counts = Counter(fingerprint(record).combined_hash for record in records)
    return sum(count - 1 for count in counts.values())


def _rounded_price(price: Decimal | None) -> str:
    if price is None:
        return ""
    return str(price.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _hash(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:16]
