from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from loguru import logger

from purchase_dedupe.models import PurchaseRecord

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record() -> Callable[..., PurchaseRecord]:
    """Factory for purchase records; day offsets are relative to ``BASE_TIME``."""

    def _make(
        record_id: str,
        *,
        user_id: str = "user_1",
        product_name: str = "Sony WH-1000XM5 Headphones",
        price: str | None = "399.99",
        purchase_day: float | None = 0,
        retailer: str = "Amazon",
        created_hour: float = 0,
        attributes: dict | None = None,
    ) -> PurchaseRecord:
        return PurchaseRecord(
            record_id=record_id,
            user_id=user_id,
            product_name=product_name,
            purchase_price=None if price is None else Decimal(price),
            purchase_date=None if purchase_day is None else BASE_TIME + timedelta(days=purchase_day),
            retailer=retailer,
            created_at=BASE_TIME + timedelta(hours=created_hour),
            attributes=attributes or {},
        )

    return _make


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
