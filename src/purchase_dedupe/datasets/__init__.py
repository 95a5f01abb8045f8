from purchase_dedupe.datasets.profiles import CAPTURE_EVENT_SCHEMA, PRODUCT_COLUMNS, PRODUCTS_SCHEMA, to_product_row
from purchase_dedupe.datasets.reference import ReferenceDatasetGenerator

__all__ = ["CAPTURE_EVENT_SCHEMA", "PRODUCT_COLUMNS", "PRODUCTS_SCHEMA", "ReferenceDatasetGenerator", "to_product_row"]
