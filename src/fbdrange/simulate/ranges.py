"""
Starting values for range origination and extinction times.
"""

import warnings
from typing import Optional, Sequence

import numpy as np

from ..io.taxa import Taxon


def initial_ranges(
    taxa: Sequence[Taxon],
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    max_age_factor: float = 1.1,
) -> np.ndarray:
    """
    Draw range values compatible with the observed ages.

    Each origination time is drawn uniformly between the taxon's first
    appearance and ``max_age_factor`` times the oldest first appearance; each
    extinction time is drawn uniformly between zero and the last appearance.
    These are starting values for MCMC, not draws from the process.

    Parameters
    ----------
    taxa : sequence of Taxon
        Taxa with observed ages
    seed : int, optional
        Random seed for reproducibility (ignored if ``rng`` is given)
    rng : numpy.random.Generator, optional
        Random number generator
    max_age_factor : float, default=1.1
        Upper bound for origination times, relative to the oldest first appearance

    Returns
    -------
    np.ndarray, shape (n_taxa, 2)
        Origination times in column 0, extinction times in column 1
    """
    if max_age_factor <= 1.0:
        raise ValueError(f"max_age_factor must be > 1, got {max_age_factor}")

    if rng is None:
        rng = np.random.default_rng(seed)

    max_ages = np.array([taxon.max_age for taxon in taxa], dtype=np.float64)
    min_ages = np.array([taxon.min_age for taxon in taxa], dtype=np.float64)

    upper = max_ages.max() * max_age_factor if len(taxa) > 0 else 0.0
    if upper == 0.0:
        warnings.warn(
            "All taxa have zero age; drawing origination times from (0, 1).",
            UserWarning
        )
        upper = 1.0

    starts = max_ages + rng.uniform(size=len(taxa)) * (upper - max_ages)
    ends = rng.uniform(size=len(taxa)) * min_ages

    return np.column_stack([starts, ends])
