from __future__ import annotations

from typing import Iterator

import numpy as np

MAX_DEPTH = 10


class HistoryRing:
    """
    Fixed-depth ring of 3-axis integer samples with running per-axis totals.

    Slots that were never written hold zero and take part in ``argmax`` /
    ``argmin`` and the totals, so the ring reads as if it had been primed with
    zero samples.
    """

    def __init__(self, depth: int) -> None:
        if depth <= 0 or depth > MAX_DEPTH:
            raise ValueError(f"depth must be in 1..{MAX_DEPTH}, got {depth}")
        self._depth = depth
        self._data = np.zeros((depth, 3), dtype=np.int64)
        self._totals = np.zeros(3, dtype=np.int64)
        self._cursor = 0
        self._size = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def full(self) -> bool:
        return self._size == self._depth

    @property
    def totals(self) -> np.ndarray:
        return self._totals.copy()

    @property
    def slots(self) -> np.ndarray:
        """Raw slot contents in storage order (read-only view)."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def push(self, sample) -> np.ndarray:
        """Overwrite the slot under the cursor; return the evicted row."""
        row = np.asarray(tuple(sample), dtype=np.int64)
        if row.shape != (3,):
            raise ValueError(f"expected a 3-axis sample, got shape {row.shape}")
        evicted = self._data[self._cursor].copy()
        self._totals -= evicted
        self._data[self._cursor] = row
        self._totals += row
        self._cursor = (self._cursor + 1) % self._depth
        if self._size < self._depth:
            self._size += 1
        return evicted

    def argmax(self) -> np.ndarray:
        """Per-axis slot index of the first maximum."""
        return np.argmax(self._data, axis=0)

    def argmin(self) -> np.ndarray:
        """Per-axis slot index of the first minimum."""
        return np.argmin(self._data, axis=0)

    def clear(self) -> None:
        self._data[:] = 0
        self._totals[:] = 0
        self._cursor = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[tuple[int, int, int]]:
        """Yield pushed samples oldest first."""
        start = (self._cursor - self._size) % self._depth
        for i in range(self._size):
            row = self._data[(start + i) % self._depth]
            yield (int(row[0]), int(row[1]), int(row[2]))
