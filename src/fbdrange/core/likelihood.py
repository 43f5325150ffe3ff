"""
Likelihood of fossil ranges under the piecewise-constant FBD range process.

The engine owns the range values (origination and extinction time of every
taxon) and two caches derived from them and from the process parameters:

- an :class:`~fbdrange.core.intervals.IntervalCache`, rebuilt whenever a rate,
  the timeline or rho changes
- an :class:`~fbdrange.core.overlap.OverlapCache`, updated incrementally for
  the ranges that changed since the previous evaluation

It is meant to be driven by an MCMC sampler: change a parameter or a range,
call :meth:`RangeLikelihood.evaluate`, then :meth:`RangeLikelihood.keep` or
:meth:`RangeLikelihood.restore`.

References
----------
Stadler T, Gavryushkina A, Warnock RCM, Drummond AJ, Heath TA (2018). The
fossilized birth-death model for the analysis of stratigraphic range data
under different speciation modes. Journal of Theoretical Biology 447:41-55.
"""

from enum import Enum
from typing import Optional, Sequence

import numpy as np
from scipy.special import xlogy

from ..exceptions import ConfigurationError, ShapeMismatch
from ..io.taxa import Taxon
from .intervals import IntervalCache
from .overlap import OverlapCache
from .parameters import PARAMETER_KINDS, DataRegime, ProcessParameters


class Condition(str, Enum):
    """What the process is conditioned on."""
    NONE = "none"
    SURVIVAL = "survival"


class RangeLikelihood:
    """
    Compute and re-compute the log-likelihood of fossil range data.

    Parameters
    ----------
    taxa : sequence of Taxon
        Taxa with their observed first and last appearance ages
    ranges : array_like, shape (n_taxa, 2)
        Origination (column 0) and extinction (column 1) time of each taxon
    speciation, extinction, fossilization : float or array_like
        Rates, either one value for all intervals or one value per interval
    rho : float, default=1.0
        Probability of sampling a lineage alive at the present
    timeline : array_like, optional
        Rate-change times, ascending or descending
    condition : str or Condition, default="none"
        "survival" conditions on the process leaving sampled descendants
    counts : int, optional
        Total number of fossils (requires a homogeneous fossilization rate)
    interval_counts : array_like, optional
        Number of fossils per interval
    taxon_interval_counts : array_like, optional
        Number of fossils per taxon and interval, shape (n_taxa, n_intervals)
    presence_absence : bool, default=False
        Treat ``taxon_interval_counts`` as presence/absence data

    If no count data is given, fossil counts are marginalized.

    Examples
    --------
    >>> taxa = [Taxon("a", 0.0, 1.0), Taxon("b", 0.5, 1.5)]
    >>> engine = RangeLikelihood(taxa, [[2.0, 0.0], [2.5, 0.2]],
    ...                          speciation=1.0, extinction=0.5, fossilization=0.2)
    >>> lnL = engine.evaluate()
    >>> engine.set_range(1, 2.4, 0.2)
    >>> engine.evaluate() != lnL
    True
    >>> engine.restore()
    >>> engine.evaluate() == lnL
    True
    """

    def __init__(
        self,
        taxa: Sequence[Taxon],
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
    ):
        self.taxa = list(taxa)
        self.n_taxa = len(self.taxa)
        if self.n_taxa == 0:
            raise ConfigurationError("At least one taxon is required")

        self.condition = Condition(condition)

        self.parameters = ProcessParameters(
            speciation, extinction, fossilization, rho, timeline,
            n_taxa=self.n_taxa,
            counts=counts,
            interval_counts=interval_counts,
            taxon_interval_counts=taxon_interval_counts,
            presence_absence=presence_absence,
        )

        self._ranges = self._check_ranges(ranges)
        self._max_ages = np.array([taxon.max_age for taxon in self.taxa])
        self._min_ages = np.array([taxon.min_age for taxon in self.taxa])

        self.intervals = IntervalCache.from_parameters(self.parameters)
        # resolved parameters the interval cache was built from
        self._intervals_resolved = self.parameters.resolved()
        self.overlaps = OverlapCache(self.n_taxa)
        self.overlaps.recompute(self._ranges)
        self.overlaps.keep()

        self._intervals_dirty = False
        self._force_overlaps = False
        self._touched: set[int] = set()

        # values to return to on restore()
        self._saved_ranges: dict[int, tuple[float, float]] = {}
        self._saved_parameters: dict[str, object] = {}
        self._saved_intervals: Optional[IntervalCache] = None
        self._saved_resolved: Optional[dict] = None

    def _check_ranges(self, ranges) -> np.ndarray:
        values = np.array(ranges, dtype=np.float64)
        if values.ndim != 2 or values.shape[1] != 2:
            raise ConfigurationError(
                f"Range values must have shape (n_taxa, 2), got {values.shape}"
            )
        if values.shape[0] != self.n_taxa:
            raise ShapeMismatch("range values", self.n_taxa, values.shape[0], unit="taxa")
        return values

    # ------------------------------------------------------------------
    # range and parameter access

    @property
    def ranges(self) -> np.ndarray:
        """Read-only view of the current range values."""
        view = self._ranges.view()
        view.flags.writeable = False
        return view

    @property
    def touched(self) -> frozenset:
        """Indices of ranges changed since the last evaluation."""
        return frozenset(self._touched)

    def set_range(self, i: int, start: float, end: float) -> None:
        """
        Set the origination and extinction time of range i.

        The range is marked dirty for the overlap cache.
        """
        if not 0 <= i < self.n_taxa:
            raise IndexError(f"Range index {i} out of bounds for {self.n_taxa} ranges")

        if i not in self._saved_ranges:
            self._saved_ranges[i] = (self._ranges[i, 0], self._ranges[i, 1])

        self._ranges[i, 0] = start
        self._ranges[i, 1] = end
        self._touched.add(i)

    def set_ranges(self, ranges) -> None:
        """Replace all range values."""
        values = self._check_ranges(ranges)
        for i in range(self.n_taxa):
            self.set_range(i, values[i, 0], values[i, 1])

    def set_parameter(self, kind: str, value) -> None:
        """
        Replace a process parameter.

        Parameters
        ----------
        kind : str
            One of "speciation", "extinction", "fossilization", "rho", "timeline"
        value : float or array_like
            New value; validated like the constructor arguments
        """
        old = self.parameters.get(kind)
        self.parameters.set(kind, value)

        if kind not in self._saved_parameters:
            self._saved_parameters[kind] = old
        self.mark_dirty(kind)

    def mark_dirty(self, kind: str) -> None:
        """Invalidate the interval cache after a change to parameter ``kind``."""
        if kind not in PARAMETER_KINDS:
            raise KeyError(f"Unknown parameter '{kind}', expected one of {PARAMETER_KINDS}")
        self._intervals_dirty = True

    def force_refresh(self) -> None:
        """Recompute all overlap counts from scratch at the next evaluation."""
        self._force_overlaps = True

    # ------------------------------------------------------------------
    # lifecycle

    def keep(self) -> None:
        """Accept the current state."""
        self.overlaps.keep()
        self._saved_ranges = {}
        self._saved_parameters = {}
        self._saved_intervals = None
        self._saved_resolved = None

    def restore(self) -> None:
        """Return ranges, parameters and caches to the state at the last :meth:`keep`."""
        for i, (start, end) in self._saved_ranges.items():
            self._ranges[i, 0] = start
            self._ranges[i, 1] = end

        if self._saved_parameters:
            self.parameters.update(self._saved_parameters)

        if self._saved_intervals is not None:
            self.intervals = self._saved_intervals
            self.parameters.load(self._saved_resolved)
            self._intervals_resolved = self._saved_resolved
            self._intervals_dirty = False
        elif self._saved_parameters:
            self._intervals_dirty = True

        self.overlaps.restore()
        self._touched.clear()
        self._force_overlaps = False

        self._saved_ranges = {}
        self._saved_parameters = {}
        self._saved_intervals = None
        self._saved_resolved = None

    # ------------------------------------------------------------------
    # diagnostics

    def overlap_count(self, i: int) -> int:
        """Number of ranges that range i originates inside of."""
        return self.overlaps.count(i)

    def interval_index(self, t: float) -> int:
        """Index of the interval containing time t (0 is the oldest)."""
        return self._refresh_intervals().interval_index(t)

    def survival_probability(self, t: float) -> float:
        """Probability that a lineage starting at time t leaves sampled descendants."""
        return self._refresh_intervals().survival_probability(t)

    # ------------------------------------------------------------------
    # evaluation

    def _refresh_intervals(self) -> IntervalCache:
        if self._intervals_dirty:
            if self._saved_intervals is None:
                self._saved_intervals = self.intervals
                self._saved_resolved = self._intervals_resolved
            self.parameters.refresh()
            self.intervals = IntervalCache.from_parameters(self.parameters)
            self._intervals_resolved = self.parameters.resolved()
            self._intervals_dirty = False
        return self.intervals

    def _refresh_overlaps(self) -> None:
        if self._force_overlaps:
            self.overlaps.recompute(self._ranges)
            self._force_overlaps = False
        elif self._touched:
            self.overlaps.update(self._ranges, sorted(self._touched))
        self._touched.clear()

    def evaluate(self) -> float:
        """
        Log-likelihood of the current range values.

        Returns
        -------
        float
            The log-likelihood, or -inf if the ranges are incompatible with
            the observed ages or the value is not finite.
        """
        self._refresh_intervals()
        self._refresh_overlaps()

        with np.errstate(all='ignore'):
            ln_prob = self._compute_ln_probability()

        if not np.isfinite(ln_prob):
            return -np.inf
        return float(ln_prob)

    def _compute_ln_probability(self) -> float:
        cache = self.intervals
        observations = self.parameters.observations
        counts = self.overlaps.counts
        ranges = self._ranges

        k = cache.n_intervals
        times = cache.times
        birth = cache.birth
        death = cache.death
        fossil = cache.fossil

        marginalize = observations.marginalized
        presence_absence = observations.presence_absence

        ln_prob = 0.0

        n_extant_sampled = 0
        n_extant_unsampled = 0

        max_start = 0.0
        max_birth = 0.0

        kappa_prime = np.zeros(k, dtype=np.int64)
        L = np.zeros(k)

        for i in range(self.n_taxa):
            if not np.isfinite(ln_prob):
                return -np.inf

            b = ranges[i, 0]
            d = ranges[i, 1]
            o = self._max_ages[i]
            y = self._min_ages[i]

            # also rejects nan before any interval lookup
            if not (d >= 0.0 and b > d):
                return -np.inf

            bi = cache.interval_index(b)
            di = cache.interval_index(d)
            if presence_absence:
                oi = int(observations.oldest_intervals[i])
                yi = int(observations.youngest_intervals[i])
            else:
                oi = cache.interval_index(o)
                yi = cache.interval_index(y)

            # check constraints
            if presence_absence:
                if not (b > d and ((y == 0.0 and d == 0.0) or (y != 0.0 and yi <= di))):
                    return -np.inf
            elif not (b > o and o >= y and (y > d or (y == d and y == 0.0))):
                return -np.inf

            if d == 0.0:
                if y == 0.0:
                    n_extant_sampled += 1
                else:
                    n_extant_unsampled += 1

            # the oldest range carries the origin of the process
            if b > max_start:
                max_start = b
                max_birth = birth[bi]

            ln_prob += np.log(birth[bi])

            # number of possible attachment points
            ln_prob += np.log(max(counts[i], 1))

            ln_prob += np.log(cache.q(bi, b))
            ln_prob += cache.log_q_i[bi + 1:oi + 1].sum()

            # first appearance
            if not presence_absence:
                ln_prob += np.log(cache.q(oi, o, tilde=True)) - np.log(cache.q(oi, o))

            ln_prob += cache.log_q_tilde_i[oi + 1:di + 1].sum()
            ln_prob -= np.log(cache.q(di, d, tilde=True))

            if d > 0.0:
                ln_prob += np.log(death[di])

            if marginalize:
                if o > 0.0:
                    kappa_prime[oi] += 1
                if o != y and y > 0.0:
                    kappa_prime[yi] += 1

                # time observed between first and last appearance
                if oi == yi:
                    L[oi] += o - y
                else:
                    L[oi] += o - times[oi]
                    for j in range(oi + 1, yi):
                        L[j] += times[j - 1] - times[j]
                    L[yi] += times[yi - 1] - y

            elif presence_absence:
                self._add_presence_absence_terms(L, i, b, d, bi, di)

        # the origin is not a speciation event
        ln_prob -= np.log(max_birth)

        if presence_absence:
            ln_prob += L.sum()
        elif marginalize:
            ln_prob += np.dot(fossil, L) + xlogy(kappa_prime, fossil).sum()
        elif observations.regime is DataRegime.TOTAL:
            # fossilization is homogeneous for a single total
            ln_prob += xlogy(observations.total, fossil[0])
        else:
            ln_prob += xlogy(observations.interval_totals, fossil).sum()

        rho = cache.rho
        if rho > 0.0:
            ln_prob += n_extant_sampled * np.log(rho)
        if rho < 1.0:
            ln_prob += n_extant_unsampled * np.log(1.0 - rho)

        if self.condition is Condition.SURVIVAL:
            ln_prob -= np.log(cache.survival_probability(max_start))

        return ln_prob

    def _add_presence_absence_terms(self, L: np.ndarray, i: int, b: float, d: float,
                                    bi: int, di: int) -> None:
        """
        Add the fossil sampling terms of range i for presence/absence data.

        Within every interval where the taxon is present, at least one
        fossil falls on its range. The first such interval (going from the
        origination forward) is integrated against q~/q; later ones only
        require at least one fossil on the covered segment.
        """
        cache = self.intervals
        observations = self.parameters.observations
        times = cache.times
        fossil = cache.fossil

        def present(j):
            return observations.count(j, i) > 0

        def later_segment(j, span):
            return fossil[j] * span + np.log(-np.expm1(-span * fossil[j]))

        if bi == di:
            if present(bi):
                L[bi] += (np.log(cache.integrate_q(bi, b) - cache.integrate_q(di, d))
                          + np.log(fossil[bi]) - fossil[di] * (d - times[di]))
            return

        first = True

        if present(bi):
            L[bi] += np.log(cache.integrate_q(bi, b) - cache.integrate_q(bi, times[bi])) + np.log(fossil[bi])
            first = False

        for j in range(bi + 1, di):
            if not present(j):
                continue
            if first:
                L[j] += (np.log(cache.integrate_q(j, times[j - 1]) - cache.integrate_q(j, times[j]))
                         + np.log(fossil[j]))
                first = False
            else:
                L[j] += later_segment(j, times[j - 1] - times[j])

        if present(di):
            if first:
                L[di] += (np.log(cache.integrate_q(di, times[di - 1]) - cache.integrate_q(di, d))
                          + np.log(fossil[di]) - fossil[di] * (d - times[di]))
            else:
                L[di] += later_segment(di, times[di - 1] - d)
