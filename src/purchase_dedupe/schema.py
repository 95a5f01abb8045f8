from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Mapping, Sequence

from loguru import logger

from purchase_dedupe.errors import MalformedRecordError
from purchase_dedupe.models import PurchaseRecord


class PurchaseField(StrEnum):
    RECORD_ID = "RECORD_ID"
    USER_ID = "USER_ID"
    PRODUCT_NAME = "PRODUCT_NAME"
    PURCHASE_PRICE = "PURCHASE_PRICE"
    PURCHASE_DATE = "PURCHASE_DATE"
    RETAILER = "RETAILER"
    CREATED_AT = "CREATED_AT"


@dataclass(frozen=True)
class RecordSchema:
    """Maps source-system columns to purchase record fields.

    Each field may be fed by several columns; the first non-empty one wins.
    Columns that feed no field are kept on the record as ``attributes``.
    """

    field_to_columns: Mapping[PurchaseField, tuple[str, ...]]

    @classmethod
    def from_mapping(cls, mapping: Mapping[PurchaseField, Sequence[str]]) -> "RecordSchema":
        frozen = {tag: tuple(columns) for tag, columns in mapping.items()}
        return cls(field_to_columns=frozen)

    def columns_for(self, tag: PurchaseField) -> tuple[str, ...]:
        return self.field_to_columns.get(tag, ())

    def mapped_columns(self) -> set[str]:
        return {column for columns in self.field_to_columns.values() for column in columns}

    def first_value(self, row: Mapping[str, object], tag: PurchaseField) -> object | None:
        for column in self.columns_for(tag):
            value = row.get(column)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            return value
        return None

    def text_value(self, row: Mapping[str, object], tag: PurchaseField) -> str:
        value = self.first_value(row, tag)
        return "" if value is None else str(value).strip()

    def to_record(self, row: Mapping[str, object], user_id: str | None = None) -> PurchaseRecord:
        record_id = self.text_value(row, PurchaseField.RECORD_ID)
        if not record_id:
            raise MalformedRecordError("record_id", row.get("id"))

        mapped = self.mapped_columns()
        attributes = {
            column: value
            for column, value in row.items()
            if column not in mapped and value is not None and value != ""
        }
        return PurchaseRecord(
            record_id=record_id,
            user_id=user_id or self.text_value(row, PurchaseField.USER_ID),
            product_name=self.text_value(row, PurchaseField.PRODUCT_NAME),
            purchase_price=_lenient(parse_price, self.first_value(row, PurchaseField.PURCHASE_PRICE), record_id),
            purchase_date=_lenient(parse_timestamp, self.first_value(row, PurchaseField.PURCHASE_DATE), record_id),
            retailer=self.text_value(row, PurchaseField.RETAILER),
            created_at=_lenient(parse_timestamp, self.first_value(row, PurchaseField.CREATED_AT), record_id),
            attributes=attributes,
        )


def parse_price(value: object) -> Decimal:
    """Coerce a captured price into a non-negative ``Decimal``."""
    if value is None or isinstance(value, bool):
        raise MalformedRecordError("purchase_price", value)
    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise MalformedRecordError("purchase_price", value)
        price = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "").lstrip("$£€").strip()
        try:
            price = Decimal(text)
        except InvalidOperation as exc:
            raise MalformedRecordError("purchase_price", value) from exc
    else:
        raise MalformedRecordError("purchase_price", value)

    if not price.is_finite() or price < 0:
        raise MalformedRecordError("purchase_price", value)
    return price


def parse_timestamp(value: object) -> datetime:
    """Coerce a captured date or timestamp into an aware UTC ``datetime``.

    Naive values are read as UTC; bare dates map to midnight.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise MalformedRecordError("timestamp", value) from exc
    else:
        raise MalformedRecordError("timestamp", value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _lenient(parser: Any, value: object, record_id: str) -> Any:
    if value is None:
        return None
    try:
        return parser(value)
    except MalformedRecordError as exc:
        logger.debug(f"Record {record_id}: {exc}; field left empty")
        return None
