"""Engine settings, read from ``PURCHASE_DEDUPE_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from purchase_dedupe.steps.confidence import ConfidenceWeights


class DedupeSettings(BaseSettings):
    """Tunable knobs of the duplicate engine."""

    model_config = SettingsConfigDict(
        env_prefix="PURCHASE_DEDUPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Confidence weights
    name_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    price_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    date_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    retailer_weight: float = Field(default=0.1, ge=0.0, le=1.0)

    # Classification
    duplicate_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    reason_threshold: float = Field(default=0.9, ge=0.0, le=1.0)

    # Grouping and consolidation
    grouping: Literal["anchor", "transitive"] = "anchor"
    merge_policy: Literal["log-only", "fill-empty"] = "log-only"

    # Batch execution
    max_workers: int = Field(default=1, ge=1)
    user_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def check_weights(self) -> "DedupeSettings":
        # Raises ConfigurationError (a ValueError) when the weights do not sum to 1.
        self.weights()
        return self

    def weights(self) -> ConfidenceWeights:
        return ConfidenceWeights(
            name=self.name_weight,
            price=self.price_weight,
            date=self.date_weight,
            retailer=self.retailer_weight,
        )


@lru_cache()
def get_settings() -> DedupeSettings:
    """Cached settings instance, loaded once per process."""
    return DedupeSettings()
