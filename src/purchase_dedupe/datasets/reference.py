from __future__ import annotations

import dataclasses
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from purchase_dedupe.models import PurchaseRecord

_PRODUCTS = [
    ("Apple iPhone 15 Pro 256GB", "2400.00"),
    ("Sony WH-1000XM5 Wireless Headphones", "399.99"),
    ("Samsung 65\" QLED 4K TV", "1299.00"),
    ("Dyson V15 Detect Vacuum", "749.99"),
    ("Nintendo Switch OLED", "349.99"),
    ("Instant Pot Duo 7-in-1", "89.95"),
    ("Kindle Paperwhite (16 GB)", "149.99"),
    ("Logitech MX Master 3S Mouse", "99.99"),
    ("Bose SoundLink Flex", "149.00"),
    ("KitchenAid Artisan Stand Mixer", "449.99"),
    ("Apple AirPods Pro (2nd generation)", "249.00"),
    ("Garmin Forerunner 265", "449.99"),
]
_RETAILER_SPELLINGS = {
    "amazon": ["Amazon", "amazon.com", "AMZN"],
    "apple": ["Apple", "apple.com", "iTunes"],
    "bestbuy": ["Best Buy", "BestBuy", "bestbuy.com"],
    "target": ["Target", "target.com"],
    "walmart": ["Walmart", "walmart.com"],
}
_SOURCES = ["email", "browser", "mobile", "bank", "retailer_api", "manual"]
_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class ReferenceDatasetGenerator:
    """Generate synthetic purchases (with multi-channel dupes) for tests and benchmarks."""

    def __init__(self, seed: int = 7) -> None:
        self._rng = random.Random(seed)

    def generate(
        self,
        users: int,
        purchases_per_user: int,
        duplicate_rate: float = 0.15,
    ) -> list[PurchaseRecord]:
        if users <= 0 or purchases_per_user <= 0:
            return []

        records: list[PurchaseRecord] = []
        for u in range(users):
            user_id = f"user_{u:04d}"
            unique_count = int(purchases_per_user * (1.0 - duplicate_rate))
            unique_count = max(1, min(unique_count, purchases_per_user))

            user_records = [self._purchase(user_id, len(records) + i) for i in range(unique_count)]
            while len(user_records) < purchases_per_user:
                source = self._rng.choice(user_records[:unique_count])
                user_records.append(self._duplicate_of(source, f"pur_{len(records) + len(user_records):07d}"))

            self._rng.shuffle(user_records)
            records.extend(user_records)
        return records

    def _purchase(self, user_id: str, idx: int) -> PurchaseRecord:
        name, price = self._rng.choice(_PRODUCTS)
        retailer = self._rng.choice(list(_RETAILER_SPELLINGS))
        purchased = _EPOCH + timedelta(days=self._rng.randint(0, 364), hours=self._rng.randint(8, 20))
        return PurchaseRecord(
            record_id=f"pur_{idx:07d}",
            user_id=user_id,
            product_name=name,
            purchase_price=Decimal(price),
            purchase_date=purchased,
            retailer=self._rng.choice(_RETAILER_SPELLINGS[retailer]),
            created_at=purchased + timedelta(hours=self._rng.randint(1, 48)),
            attributes={
                "source": self._rng.choice(_SOURCES),
                "order_number": f"ORD-{idx:08d}",
            },
        )

    def _duplicate_of(self, source: PurchaseRecord, record_id: str) -> PurchaseRecord:
        mutation = self._rng.choice(["name", "retailer", "price", "date", "mixed"])
        name = source.product_name
        retailer = source.retailer
        price = source.purchase_price
        purchased = source.purchase_date

        if mutation in {"name", "mixed"}:
            name = self._name_variant(name)
        if mutation in {"retailer", "mixed"}:
            retailer = self._retailer_variant(retailer)
        if mutation in {"price", "mixed"} and price is not None:
            drift = Decimal(self._rng.randint(-3, 3)) / 100
            price = (price * (1 + drift)).quantize(Decimal("0.01"))
        if mutation in {"date", "mixed"} and purchased is not None:
            purchased = purchased + timedelta(hours=self._rng.randint(0, 48))

        attributes = {"source": self._rng.choice(_SOURCES)}
        if self._rng.random() < 0.5:
            attributes["order_number"] = source.attributes.get("order_number", "")

        return dataclasses.replace(
            source,
            record_id=record_id,
            product_name=name,
            purchase_price=price,
            purchase_date=purchased,
            retailer=retailer,
            created_at=(source.created_at or _EPOCH) + timedelta(hours=self._rng.randint(1, 240)),
            attributes=attributes,
        )

    def _name_variant(self, name: str) -> str:
        variant = self._rng.choice(["upper", "lower", "punct", "truncate"])
        if variant == "upper":
            return name.upper()
        if variant == "lower":
            return name.lower()
        if variant == "punct":
            return f"{name}!!"
        words = name.split()
        return " ".join(words[:-1]) if len(words) > 2 else name

    def _retailer_variant(self, retailer: str) -> str:
        lowered = retailer.lower().strip()
        for spellings in _RETAILER_SPELLINGS.values():
            if lowered in {spelling.lower() for spelling in spellings}:
                return self._rng.choice(spellings)
        return retailer
