"""
Core algorithms for the fossilized birth-death range likelihood.

This module provides the computational pieces behind :class:`RangeLikelihood`:

- **Parameter resolution**: homogeneous/heterogeneous rates, timeline order,
  fossil data regimes
- **Interval cache**: closed-form per-interval solutions of the process
- **Overlap cache**: incremental counts of overlapping ranges
- **Likelihood**: the log-likelihood with keep/restore support for MCMC
"""

from fbdrange.core.intervals import IntervalCache
from fbdrange.core.likelihood import Condition, RangeLikelihood
from fbdrange.core.overlap import OverlapCache, link_matrix
from fbdrange.core.parameters import DataRegime, ObservationData, ProcessParameters

__all__ = [
    "RangeLikelihood",
    "Condition",
    "IntervalCache",
    "OverlapCache",
    "link_matrix",
    "ProcessParameters",
    "ObservationData",
    "DataRegime",
]
