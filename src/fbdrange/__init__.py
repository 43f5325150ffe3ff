"""
fbdrange: Likelihood of fossil stratigraphic ranges.

Computes, and cheaply re-computes, the log-likelihood of species origination
and extinction times given their fossil record under the piecewise-constant
fossilized birth-death range process.

Quick Start
-----------
Evaluate a data set once:

>>> from fbdrange import range_log_likelihood
>>> result = range_log_likelihood("taxa.tsv", "ranges.tsv",
...                               speciation=1.0, extinction=0.5,
...                               fossilization=0.2)
>>> print(result.summary())

Use inside an MCMC sampler:

>>> from fbdrange import RangeLikelihood, read_taxa, initial_ranges
>>> taxa = read_taxa("taxa.tsv")
>>> engine = RangeLikelihood(taxa, initial_ranges(taxa, seed=1),
...                          speciation=[1.0, 0.8], extinction=0.5,
...                          fossilization=0.2, timeline=[10.0])
>>> lnL = engine.evaluate()
>>> engine.set_range(0, 12.0, 3.0)
>>> if engine.evaluate() < lnL:
...     engine.restore()
... else:
...     engine.keep()
"""

__version__ = "0.1.0"

# High-level API
from .api import range_log_likelihood, RangeLikelihoodResult

# Likelihood engine
from .core.likelihood import RangeLikelihood, Condition

# Errors
from .exceptions import (
    ConfigurationError,
    ShapeMismatch,
    ConflictingDataRegime,
    UnsupportedDataRegime,
    MissingTimeline,
    UnsortedTimeline,
)

# I/O
from .io.taxa import Taxon, read_taxa, read_ranges, read_counts

# Starting values
from .simulate.ranges import initial_ranges

__all__ = [
    "range_log_likelihood",
    "RangeLikelihoodResult",
    "RangeLikelihood",
    "Condition",
    "ConfigurationError",
    "ShapeMismatch",
    "ConflictingDataRegime",
    "UnsupportedDataRegime",
    "MissingTimeline",
    "UnsortedTimeline",
    "Taxon",
    "read_taxa",
    "read_ranges",
    "read_counts",
    "initial_ranges",
    "__version__",
]
