from __future__ import annotations


class DedupeError(Exception):
    """Base class for errors raised by the duplicate engine."""


class MalformedRecordError(DedupeError, ValueError):
    """A price or date field is missing or cannot be parsed."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"malformed {field}: {value!r}")
        self.field = field
        self.value = value


class ComparisonFailure(DedupeError):
    """Scoring a pair of records failed unexpectedly."""

    def __init__(self, left_id: str, right_id: str) -> None:
        super().__init__(f"comparison failed for {left_id} vs {right_id}")
        self.left_id = left_id
        self.right_id = right_id


class ConsolidationFailure(DedupeError):
    """Planning or persisting the consolidation of one group failed."""

    def __init__(self, primary_id: str, reason: str) -> None:
        super().__init__(f"consolidation failed for group {primary_id}: {reason}")
        self.primary_id = primary_id
        self.reason = reason


class ConfigurationError(DedupeError, ValueError):
    """Engine configuration is inconsistent."""
