from __future__ import annotations

import itertools
import uuid


class Uuid4IdProvider:
    """Random correlation ids for production scans."""

    def new_id(self) -> str:
        return uuid.uuid4().hex


class SequentialIdProvider:
    """Deterministic ids, mostly for tests and reproducible CLI runs."""

    def __init__(self, prefix: str = "scan", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def new_id(self) -> str:
        return f"{self._prefix}_{next(self._counter):06d}"
