from __future__ import annotations

from typing import Any

from purchase_dedupe.models import PurchaseRecord
from purchase_dedupe.schema import PurchaseField, RecordSchema

# Columns of the products table, as exported from the store.
PRODUCT_COLUMNS = [
    "id",
    "user_id",
    "product_name",
    "name",
    "brand",
    "category",
    "purchase_date",
    "purchase_price",
    "currency",
    "purchase_location",
    "retailer",
    "order_number",
    "serial_number",
    "source",
    "notes",
    "created_at",
]


PRODUCTS_SCHEMA = RecordSchema.from_mapping(
    {
        PurchaseField.RECORD_ID: ["id"],
        PurchaseField.USER_ID: ["user_id"],
        PurchaseField.PRODUCT_NAME: ["product_name", "name"],
        PurchaseField.PURCHASE_PRICE: ["purchase_price"],
        PurchaseField.PURCHASE_DATE: ["purchase_date"],
        PurchaseField.RETAILER: ["retailer", "purchase_location"],
        PurchaseField.CREATED_AT: ["created_at"],
    }
)


# Purchase events emitted by the capture channels before they are stored.
CAPTURE_EVENT_SCHEMA = RecordSchema.from_mapping(
    {
        PurchaseField.RECORD_ID: ["id"],
        PurchaseField.USER_ID: ["userId"],
        PurchaseField.PRODUCT_NAME: ["productName"],
        PurchaseField.PURCHASE_PRICE: ["purchasePrice"],
        PurchaseField.PURCHASE_DATE: ["purchaseDate"],
        PurchaseField.RETAILER: ["retailer"],
        PurchaseField.CREATED_AT: ["createdAt"],
    }
)


def to_product_row(record: PurchaseRecord) -> dict[str, Any]:
    """Flatten a record back into products-table columns."""
    return {
        **record.attributes,
        "id": record.record_id,
        "user_id": record.user_id,
        "product_name": record.product_name,
        "purchase_price": "" if record.purchase_price is None else str(record.purchase_price),
        "purchase_date": record.purchase_date.isoformat() if record.purchase_date else "",
        "retailer": record.retailer,
        "created_at": record.created_at.isoformat() if record.created_at else "",
    }
