#!/usr/bin/env python3
"""
Partition state shared by the reconciliation phases.

Each phase takes nodes out of the pending set and records the identifier it
chose. A node is assigned at most once, and an identifier is owned by at
most one node.
"""
from typing import Any, Dict, Hashable, Iterable, List, Optional

from scop.exceptions import CorruptionError


class SunidCounter:
    """Next sunid to mint; read once and persisted once per run"""

    def __init__(self, start: int):
        self._next = start
        self.minted = 0

    @property
    def value(self) -> int:
        """The next sunid that would be minted"""
        return self._next

    def mint(self) -> int:
        sunid = self._next
        self._next += 1
        self.minted += 1
        return sunid


class Partition:
    """Pending node ids in processing order plus the assignments made so far"""

    def __init__(self, pending: Iterable[int], preassigned: Optional[Dict[int, Any]] = None):
        # dict keeps insertion order, which is the processing order
        self._pending: Dict[int, None] = dict.fromkeys(pending)
        self.assigned: Dict[int, Any] = {}
        self.phase_of: Dict[int, str] = {}
        self._owner: Dict[Hashable, int] = {}

        for node_id, value in (preassigned or {}).items():
            self._claim(node_id, value)
            self.assigned[node_id] = value
            self.phase_of[node_id] = "preassigned"

    def pending(self) -> List[int]:
        return list(self._pending)

    def is_pending(self, node_id: int) -> bool:
        return node_id in self._pending

    def owner(self, value: Hashable) -> Optional[int]:
        """Node id holding an identifier, if any"""
        return self._owner.get(value)

    def assign(self, node_id: int, value: Any, phase: str) -> None:
        """Assign an identifier to a pending node

        Raises:
            ValueError: If the node is not pending
            CorruptionError: If another node already holds the identifier
        """
        if node_id not in self._pending:
            raise ValueError(f"Node {node_id} is not pending")
        self._claim(node_id, value)
        del self._pending[node_id]
        self.assigned[node_id] = value
        self.phase_of[node_id] = phase

    def count(self, phase: str) -> int:
        return sum(1 for p in self.phase_of.values() if p == phase)

    def _claim(self, node_id: int, value: Hashable) -> None:
        holder = self._owner.get(value)
        if holder is not None and holder != node_id:
            raise CorruptionError(f"Error mapping identifiers: {value} used twice "
                                  f"(nodes {holder} and {node_id})",
                                  {"value": value, "nodes": [holder, node_id]})
        self._owner[value] = node_id
