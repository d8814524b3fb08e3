"""Rolling integral image over filtered chroma frames.

Columns are time (one filtered frame each), rows are pitch classes. The
image keeps cumulative sums for the last ``capacity`` columns only, so it
can run over a track of any length in constant memory while still
answering rectangle-sum queries in O(1).

Storage layout
--------------
``P[k]`` is the cumulative sum of the first ``k`` columns, with an extra
leading zero along the row axis so that ``P[k][r]`` covers rows ``[0, r)``.
The ring holds ``capacity + 1`` such rows, enough for both corners of any
query that stays inside the retained window. Every ``capacity`` appends
the ring is re-based onto the oldest retained column so the stored sums
stay bounded regardless of track length.
"""

from __future__ import annotations

import numpy as np


class IntegralImage:
    """2-D prefix-sum accumulator with bounded column retention."""

    def __init__(self, capacity: int, rows: int):
        """Initialize an empty image.

        Args:
            capacity: Number of most recent columns that can be queried
            rows: Number of rows per column (chroma bins)
        """
        if capacity < 1:
            raise ValueError(f"Integral image capacity must be positive, got {capacity}")
        if rows < 1:
            raise ValueError(f"Integral image needs at least one row, got {rows}")
        self.capacity = capacity
        self.rows = rows
        self._slots = capacity + 1
        self._sums = np.zeros((self._slots, rows + 1), dtype=np.float64)
        self._columns = 0

    @property
    def columns(self) -> int:
        """Logical number of columns appended so far."""
        return self._columns

    @property
    def retained(self) -> int:
        """Number of columns currently available for queries."""
        return min(self._columns, self.capacity)

    def add_column(self, column: np.ndarray) -> None:
        """Append one column, updating the cumulative sums in O(rows)."""
        if len(column) != self.rows:
            raise ValueError(f"Expected a column of {self.rows} rows, got {len(column)}")

        previous = self._sums[self._columns % self._slots]
        current = self._sums[(self._columns + 1) % self._slots]
        current[0] = 0.0
        np.cumsum(column, dtype=np.float64, out=current[1:])
        current += previous
        self._columns += 1

        if self._columns % self.capacity == 0:
            self._rebase()

    def _rebase(self) -> None:
        """Shift all retained sums so the oldest retained prefix becomes zero."""
        base = self._sums[(self._columns - self.capacity) % self._slots].copy()
        self._sums -= base

    def range_sum(self, row_start: int, row_end: int, offset: int, width: int) -> float:
        """Sum of a rectangle ending ``offset`` columns before the newest one.

        The rectangle spans rows ``[row_start, row_end)`` and the ``width``
        columns whose newest member is ``offset`` columns older than the most
        recently added column.

        Raises:
            ValueError: If the rectangle is outside the rows or the retained
                columns. Callers are expected to gate on ``columns`` first.
        """
        if not 0 <= row_start <= row_end <= self.rows:
            raise ValueError(
                f"Row range [{row_start}, {row_end}) outside image of {self.rows} rows"
            )
        if width < 1 or offset < 0:
            raise ValueError(f"Invalid column window: offset={offset}, width={width}")
        if offset + width > self.capacity:
            raise ValueError(
                f"Column window offset={offset} width={width} exceeds "
                f"retained capacity {self.capacity}"
            )
        if offset + width > self._columns:
            raise ValueError(
                f"Column window offset={offset} width={width} needs more than "
                f"the {self._columns} columns added"
            )

        newer = self._sums[(self._columns - offset) % self._slots]
        older = self._sums[(self._columns - offset - width) % self._slots]
        return float(
            (newer[row_end] - newer[row_start]) - (older[row_end] - older[row_start])
        )
