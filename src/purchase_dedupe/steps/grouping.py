from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from loguru import logger

from purchase_dedupe.interfaces import PairComparator
from purchase_dedupe.models import DuplicateGroup, PurchaseRecord


class AnchorGroupBuilder:
    """Groups records by comparing each unprocessed anchor with later records.

    Only the anchor is compared, never later group members, so a record that
    matches a member but not the anchor stays out of the group.
    """

    def __init__(self, comparator: PairComparator) -> None:
        self._comparator = comparator

    def build(self, records: Sequence[PurchaseRecord]) -> list[DuplicateGroup]:
        groups: list[DuplicateGroup] = []
        processed: set[int] = set()

        for i, anchor in enumerate(records):
            if i in processed:
                continue
            members = [anchor]
            processed.add(i)

            for j in range(i + 1, len(records)):
                if j in processed:
                    continue
                verdict = self._comparator.compare(anchor, records[j])
                if verdict.is_duplicate:
                    members.append(records[j])
                    processed.add(j)

            if len(members) > 1:
                logger.debug(f"Anchor {anchor.record_id} grouped with {len(members) - 1} record(s)")
                groups.append(DuplicateGroup(records=tuple(members)))
        return groups


class TransitiveGroupBuilder:
    """Connected components over every pairwise duplicate edge.

    Opt-in alternative to the anchor scan: it can merge records the anchor
    scan leaves apart. Groups are ordered by their first record's input
    position and members keep input order.
    """

    def __init__(self, comparator: PairComparator) -> None:
        self._comparator = comparator

    def build(self, records: Sequence[PurchaseRecord]) -> list[DuplicateGroup]:
        uf = _UnionFind(len(records))
        for i, left in enumerate(records):
            for j in range(i + 1, len(records)):
                if self._comparator.compare(left, records[j]).is_duplicate:
                    uf.union(i, j)

        return [
            DuplicateGroup(records=tuple(records[idx] for idx in members))
            for members in uf.groups()
            if len(members) > 1
        ]


class _UnionFind:
    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, item: int) -> int:
        if self._parent[item] != item:
            self._parent[item] = self.find(self._parent[item])
        return self._parent[item]

    def union(self, left: int, right: int) -> None:
        root_left = self.find(left)
        root_right = self.find(right)
        if root_left != root_right:
            # Lower index stays root so components are keyed by first member.
            if root_right < root_left:
                root_left, root_right = root_right, root_left
            self._parent[root_right] = root_left

    def groups(self) -> list[list[int]]:
        grouped: dict[int, list[int]] = defaultdict(list)
        for item in range(len(self._parent)):
            grouped[self.find(item)].append(item)
        return [grouped[root] for root in sorted(grouped)]
