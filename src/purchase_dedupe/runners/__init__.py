from purchase_dedupe.runners.batch import BatchScanRunner, BatchSummary
from purchase_dedupe.runners.local import LocalDedupePipeline

__all__ = ["BatchScanRunner", "BatchSummary", "LocalDedupePipeline"]
