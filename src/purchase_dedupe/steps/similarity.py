from __future__ import annotations

from decimal import Decimal

from loguru import logger

from purchase_dedupe.errors import MalformedRecordError
from purchase_dedupe.models import PurchaseRecord, SimilarityVector
from purchase_dedupe.schema import parse_price, parse_timestamp
from purchase_dedupe.steps.normalize import normalize_product_name, retailer_group

_SECONDS_PER_DAY = 86400

# (max relative difference, similarity), checked in order.
_PRICE_BRACKETS = (
    (Decimal("0.05"), 1.0),
    (Decimal("0.10"), 0.9),
    (Decimal("0.20"), 0.8),
)
_PRICE_FALLOFF_START = Decimal("0.20")
_PRICE_FALLOFF_BASE = Decimal("0.8")

# (max difference in days, similarity), checked in order.
_DATE_BRACKETS = (
    (0.0, 1.0),
    (1.0, 0.95),
    (3.0, 0.9),
    (7.0, 0.8),
    (30.0, 0.6),
)
_DATE_FLOOR = 0.3


def score_pair(left: PurchaseRecord, right: PurchaseRecord) -> SimilarityVector:
    return SimilarityVector(
        name=name_similarity(left.product_name, right.product_name),
        price=price_similarity(left.purchase_price, right.purchase_price),
        date=date_similarity(left.purchase_date, right.purchase_date),
        retailer=retailer_similarity(left.retailer, right.retailer),
    )


def name_similarity(left: str, right: str) -> float:
    left_norm = normalize_product_name(left)
    right_norm = normalize_product_name(right)

    if left_norm == right_norm:
        return 1.0
    if left_norm in right_norm or right_norm in left_norm:
        return 0.9

    distance = levenshtein(left_norm, right_norm)
    return max(0.0, 1.0 - distance / max(len(left_norm), len(right_norm)))


def price_similarity(left: object, right: object) -> float:
    """Bracketed similarity of two prices, relative to their average.

    A missing or unparseable price on either side scores 0.
    """
    try:
        left_price = parse_price(left)
        right_price = parse_price(right)
    except MalformedRecordError as exc:
        logger.debug(f"Price similarity skipped: {exc}")
        return 0.0

    diff = abs(left_price - right_price)
    avg = (left_price + right_price) / 2
    if avg == 0:
        return 1.0

    pct = diff / avg
    for limit, similarity in _PRICE_BRACKETS:
        if pct <= limit:
            return similarity
    return float(max(Decimal(0), _PRICE_FALLOFF_BASE - (pct - _PRICE_FALLOFF_START) * 2))


def date_similarity(left: object, right: object) -> float:
    """Bracketed similarity of two purchase dates by day distance.

    A missing or unparseable date on either side scores 0.
    """
    try:
        left_date = parse_timestamp(left)
        right_date = parse_timestamp(right)
    except MalformedRecordError as exc:
        logger.debug(f"Date similarity skipped: {exc}")
        return 0.0

    diff_days = abs((left_date - right_date).total_seconds()) / _SECONDS_PER_DAY
    for limit, similarity in _DATE_BRACKETS:
        if diff_days <= limit:
            return similarity
    return _DATE_FLOOR


def retailer_similarity(left: str, right: str) -> float:
    if left.lower().strip() == right.lower().strip():
        return 1.0

    left_group = retailer_group(left)
    if left_group is not None and left_group == retailer_group(right):
        return 0.95
    return 0.0


def levenshtein(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    prev = list(range(len(right) + 1))
    for i, c1 in enumerate(left, start=1):
        curr = [i]
        for j, c2 in enumerate(right, start=1):
            cost = 0 if c1 == c2 else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]
