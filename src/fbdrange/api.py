"""
High-level API for fbdrange.

This module wraps :class:`~fbdrange.core.likelihood.RangeLikelihood` for the
common case of evaluating a data set once, with a result object that can be
printed or exported.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import json

import numpy as np

from .core.likelihood import RangeLikelihood
from .io.taxa import Taxon, read_counts, read_ranges, read_taxa


@dataclass
class RangeLikelihoodResult:
    """
    Log-likelihood of a fossil range data set with its settings.

    Attributes
    ----------
    lnL : float
        Log-likelihood (-inf if the ranges are incompatible with the data)
    n_taxa : int
        Number of taxa
    n_intervals : int
        Number of rate intervals
    regime : str
        Fossil data regime ("marginalized", "total", "interval",
        "taxon_interval" or "presence_absence")
    condition : str
        Conditioning of the process
    params : Dict[str, Any]
        Parameter values as supplied
    overlap_counts : List[int]
        Number of ranges each range originates inside of
    """

    lnL: float
    n_taxa: int
    n_intervals: int
    regime: str
    condition: str
    params: Dict[str, Any]
    overlap_counts: List[int] = field(default_factory=list)

    @property
    def finite(self) -> bool:
        """Whether the ranges have non-zero likelihood."""
        return bool(np.isfinite(self.lnL))

    def summary(self) -> str:
        """
        Generate human-readable summary.

        Returns
        -------
        str
            Formatted multi-line summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("FOSSILIZED BIRTH-DEATH RANGE PROCESS")
        lines.append("=" * 70)
        lines.append("")
        lines.append(f"Log-likelihood:       {self.lnL:.6f}")
        lines.append(f"Number of taxa:       {self.n_taxa}")
        lines.append(f"Number of intervals:  {self.n_intervals}")
        lines.append(f"Fossil data:          {self.regime}")
        lines.append(f"Condition:            {self.condition}")
        lines.append("")
        lines.append("PARAMETERS:")
        for name, value in self.params.items():
            if value is None:
                continue
            if isinstance(value, list):
                formatted = ", ".join(f"{v:.4f}" for v in value)
                lines.append(f"  {name} = [{formatted}]")
            else:
                lines.append(f"  {name} = {value:.4f}")
        lines.append("=" * 70)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export results as a JSON-serializable dictionary."""
        return {
            'lnL': float(self.lnL) if self.finite else None,
            'n_taxa': int(self.n_taxa),
            'n_intervals': int(self.n_intervals),
            'regime': self.regime,
            'condition': self.condition,
            'params': self.params,
            'overlap_counts': [int(c) for c in self.overlap_counts],
        }

    def to_json(self, filepath: Optional[str] = None, indent: int = 2) -> str:
        """
        Export results as JSON.

        A log-likelihood of -inf is written as null.

        Parameters
        ----------
        filepath : str, optional
            If provided, write JSON to this file
        indent : int, default=2
            Indentation level for pretty printing
        """
        json_str = json.dumps(self.to_dict(), indent=indent)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return f"RangeLikelihoodResult(lnL={self.lnL:.2f}, n_taxa={self.n_taxa}, regime='{self.regime}')"


def _to_param(value):
    if value is None:
        return None
    array = np.asarray(value, dtype=np.float64)
    return float(array) if array.ndim == 0 else array.tolist()


def range_log_likelihood(
    taxa: Union[str, Path, Sequence[Taxon]],
    ranges,
    speciation,
    extinction,
    fossilization,
    rho: float = 1.0,
    timeline=None,
    condition: str = "none",
    counts: Optional[int] = None,
    interval_counts=None,
    taxon_interval_counts=None,
    presence_absence: bool = False,
) -> RangeLikelihoodResult:
    """
    Evaluate the log-likelihood of a fossil range data set.

    Parameters
    ----------
    taxa : str, Path or sequence of Taxon
        Taxa, or path to a taxon table
    ranges : str, Path or array_like
        Range values, shape (n_taxa, 2), or path to a range table
    speciation, extinction, fossilization : float or array_like
        Rates, one value or one per interval
    rho : float, default=1.0
        Extant sampling probability
    timeline : array_like, optional
        Rate-change times
    condition : str, default="none"
        "none" or "survival"
    counts, interval_counts : optional
        Total fossil count, or fossil counts per interval
    taxon_interval_counts : str, Path or array_like, optional
        Fossil counts per taxon and interval, or path to a count table
    presence_absence : bool, default=False
        Treat per-taxon counts as presence/absence

    Returns
    -------
    RangeLikelihoodResult

    Examples
    --------
    >>> result = range_log_likelihood("taxa.tsv", "ranges.tsv",
    ...                               speciation=1.0, extinction=0.5,
    ...                               fossilization=0.2)
    >>> print(result.summary())
    """
    if isinstance(taxa, (str, Path)):
        taxa = read_taxa(taxa)
    taxa = list(taxa)

    if isinstance(ranges, (str, Path)):
        ranges = read_ranges(ranges, taxa)

    if isinstance(taxon_interval_counts, (str, Path)):
        taxon_interval_counts = read_counts(taxon_interval_counts, taxa)

    engine = RangeLikelihood(
        taxa,
        ranges,
        speciation=speciation,
        extinction=extinction,
        fossilization=fossilization,
        rho=rho,
        timeline=timeline,
        condition=condition,
        counts=counts,
        interval_counts=interval_counts,
        taxon_interval_counts=taxon_interval_counts,
        presence_absence=presence_absence,
    )
    lnL = engine.evaluate()

    return RangeLikelihoodResult(
        lnL=lnL,
        n_taxa=engine.n_taxa,
        n_intervals=engine.parameters.n_intervals,
        regime=engine.parameters.observations.regime.value,
        condition=engine.condition.value,
        params={
            'speciation': _to_param(speciation),
            'extinction': _to_param(extinction),
            'fossilization': _to_param(fossilization),
            'rho': float(rho),
            'timeline': _to_param(timeline),
        },
        overlap_counts=[engine.overlap_count(i) for i in range(engine.n_taxa)],
    )
