# scop/utils/coverage.py

from typing import List, Tuple

import numpy as np

from scop.utils.range_utils import positions_to_range


def _runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """(start, length) of every run of True values"""
    if mask.size == 0:
        return []
    padded = np.concatenate(([False], mask, [False])).astype(np.int8)
    edges = np.flatnonzero(np.diff(padded))
    starts, ends = edges[0::2], edges[1::2]
    return [(int(s), int(e - s)) for s, e in zip(starts, ends)]


class CoverageBitmap:
    """Per-residue coverage of one chain, indexed like its RAF body

    All positions are 0-based and ranges are inclusive.
    """

    def __init__(self, length: int):
        self.covered = np.zeros(length, dtype=bool)

    def __len__(self) -> int:
        return int(self.covered.size)

    def any_covered(self, start: int, end: int) -> bool:
        if end < start:
            return False
        return bool(self.covered[start:end + 1].any())

    def mark(self, start: int, end: int) -> bool:
        """Mark [start, end] covered

        Returns:
            True if any position in the span was already covered
        """
        if end < start:
            return False
        overlap = self.any_covered(start, end)
        self.covered[start:end + 1] = True
        return overlap

    def mark_positions(self, positions: List[int]) -> None:
        if positions:
            self.covered[np.asarray(positions, dtype=int)] = True

    def n_covered(self) -> int:
        return int(self.covered.sum())

    def n_uncovered(self) -> int:
        return len(self) - self.n_covered()

    @property
    def pct_covered(self) -> float:
        """Percent covered, 0-100"""
        if len(self) == 0:
            return 0.0
        return self.n_covered() / len(self) * 100.0

    @property
    def is_full(self) -> bool:
        return bool(self.covered.all())

    def longest_uncovered(self) -> int:
        return max((n for _, n in _runs(~self.covered)), default=0)

    def uncovered_positions(self) -> List[int]:
        return [int(i) for i in np.flatnonzero(~self.covered)]

    def uncovered_ranges(self) -> str:
        """Uncovered positions as a range string, e.g. "0-4,97-99" """
        return positions_to_range(set(self.uncovered_positions()))
