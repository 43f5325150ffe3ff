"""
Counts of ranges whose span contains the origination of another range.

A range i *links* to range j when i originates strictly inside j's span,
``end_j < start_i < start_j``. Range i could then have budded off j, so the
number of ranges i links to is the number of possible attachment points of
i, which enters the likelihood as a multiplicity factor.
"""

from typing import Iterable

import numpy as np


def link_matrix(ranges: np.ndarray) -> np.ndarray:
    """
    Pairwise link relation for a set of ranges.

    Parameters
    ----------
    ranges : np.ndarray, shape (n, 2)
        Start times in column 0, end times in column 1

    Returns
    -------
    np.ndarray, shape (n, n), bool
        Entry [i, j] is True if range i starts strictly inside range j
    """
    starts = ranges[:, 0]
    ends = ranges[:, 1]

    links = (starts[:, np.newaxis] < starts[np.newaxis, :]) & (starts[:, np.newaxis] > ends[np.newaxis, :])
    np.fill_diagonal(links, False)

    return links


class OverlapCache:
    """
    Per-range link counts with incremental updates.

    The last known link relation for every ordered pair is kept so that, after
    some ranges change, only their rows and columns need to be re-evaluated.

    Changes made since the last :meth:`keep` can be undone with
    :meth:`restore`.

    Parameters
    ----------
    n_ranges : int
        Number of ranges

    Attributes
    ----------
    counts : np.ndarray, shape (n_ranges,)
        Number of ranges each range links to
    links : np.ndarray, shape (n_ranges, n_ranges), bool
        Last evaluated link relation
    """

    def __init__(self, n_ranges: int):
        self.n_ranges = n_ranges
        self.counts = np.zeros(n_ranges, dtype=np.int64)
        self.links = np.zeros((n_ranges, n_ranges), dtype=bool)

        self._saved_counts = None
        self._saved_links = None
        # row/column pairs in the order they were first overwritten
        self._saved_slices: dict[int, tuple[np.ndarray, np.ndarray]] = {}

    def recompute(self, ranges: np.ndarray) -> None:
        """Recompute every link and count from scratch."""
        self._save_all()

        self.links = link_matrix(ranges)
        self.counts = self.links.sum(axis=1).astype(np.int64)

    def update(self, ranges: np.ndarray, dirty: Iterable[int]) -> None:
        """
        Re-evaluate the links of changed ranges.

        Only the rows and columns of the ranges in ``dirty`` are recomputed;
        counts are adjusted wherever a link flipped.

        Parameters
        ----------
        ranges : np.ndarray, shape (n, 2)
            Current range values
        dirty : iterable of int
            Indices of ranges whose start or end changed
        """
        starts = ranges[:, 0]
        ends = ranges[:, 1]

        for i in dirty:
            self._save(i)

            start_i = starts[i]
            end_i = ends[i]

            # i starts inside j
            row = (start_i < starts) & (start_i > ends)
            # j starts inside i
            col = (starts < start_i) & (starts > end_i)
            row[i] = False
            col[i] = False

            self.counts[i] += int(row.sum()) - int(self.links[i].sum())
            self.counts += col.astype(np.int64) - self.links[:, i].astype(np.int64)

            self.links[i, :] = row
            self.links[:, i] = col

    def count(self, i: int) -> int:
        return int(self.counts[i])

    def keep(self) -> None:
        """Accept the current state and drop the saved one."""
        self._saved_counts = None
        self._saved_links = None
        self._saved_slices = {}

    def restore(self) -> None:
        """Return to the state at the last :meth:`keep`."""
        if self._saved_links is not None:
            self.links = self._saved_links
        else:
            # newest first, so older saved values win for shared entries
            for i, (row, col) in reversed(list(self._saved_slices.items())):
                self.links[i, :] = row
                self.links[:, i] = col

        if self._saved_counts is not None:
            self.counts = self._saved_counts

        self.keep()

    def _save(self, i: int) -> None:
        if self._saved_links is not None:
            return
        if self._saved_counts is None:
            self._saved_counts = self.counts.copy()
        if i not in self._saved_slices:
            self._saved_slices[i] = (self.links[i, :].copy(), self.links[:, i].copy())

    def _save_all(self) -> None:
        if self._saved_links is not None:
            return
        if self._saved_counts is None:
            self._saved_counts = self.counts.copy()
        self._saved_links = self.links.copy()
        # restore the full copy as it was before any slice was overwritten
        for i, (row, col) in reversed(list(self._saved_slices.items())):
            self._saved_links[i, :] = row
            self._saved_links[:, i] = col
        self._saved_slices = {}
