"""
Resolution of process parameters into per-interval arrays.

Rates may be given as a single value shared by every interval or as one value
per interval. Interval times may be given oldest-first (descending) or
youngest-first (ascending). Everything is resolved into arrays indexed in the
internal order, where index 0 is the oldest interval and index ``k - 1`` is the
interval that contains the present (time zero).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..exceptions import (
    ConfigurationError,
    ConflictingDataRegime,
    MissingTimeline,
    ShapeMismatch,
    UnsortedTimeline,
    UnsupportedDataRegime,
)


PARAMETER_KINDS = ("speciation", "extinction", "fossilization", "rho", "timeline")

_RESOLVED_ATTRIBUTES = (
    "times", "ascending", "n_intervals",
    "speciation", "extinction", "fossilization", "rho", "observations",
)


class DataRegime(str, Enum):
    """How fossil observations enter the likelihood."""
    MARGINALIZED = "marginalized"
    TOTAL = "total"
    INTERVAL = "interval"
    TAXON_INTERVAL = "taxon_interval"
    PRESENCE_ABSENCE = "presence_absence"


def resolve_timeline(timeline) -> tuple[np.ndarray, bool]:
    """
    Resolve rate-change times into interval lower bounds.

    Parameters
    ----------
    timeline : array_like or None
        Rate-change times, sorted either ascending or descending

    Returns
    -------
    times : np.ndarray, shape (k,)
        Lower bound of each interval, descending, with ``times[-1] == 0``
    ascending : bool
        True if per-interval values are supplied youngest-first

    Notes
    -----
    A timeline that is sorted both ways (a single rate-change time, or
    repeated values) is treated as ascending.
    """
    if timeline is None:
        return np.zeros(1), False

    breakpoints = np.asarray(timeline, dtype=np.float64).ravel()
    if breakpoints.size == 0:
        return np.zeros(1), False

    steps = np.diff(breakpoints)
    if np.all(steps >= 0.0):
        ascending = True
        descending_times = breakpoints[::-1]
    elif np.all(steps <= 0.0):
        ascending = False
        descending_times = breakpoints
    else:
        raise UnsortedTimeline("Interval times must be provided in order")

    return np.append(descending_times, 0.0), ascending


def resolve_rate(name: str, value, n_intervals: int, ascending: bool,
                 has_timeline: bool) -> np.ndarray:
    """
    Expand a homogeneous or heterogeneous rate into one value per interval.

    Parameters
    ----------
    name : str
        Parameter name used in error messages (e.g. "speciation rates")
    value : float or array_like
        A single rate or one rate per interval
    n_intervals : int
        Number of time intervals
    ascending : bool
        Whether per-interval values are given youngest-first
    has_timeline : bool
        Whether interval times were supplied

    Returns
    -------
    np.ndarray, shape (n_intervals,)
        Rates in internal (oldest-first) order
    """
    values = np.asarray(value, dtype=np.float64)

    if values.ndim == 0:
        return np.full(n_intervals, float(values))

    if not has_timeline:
        raise MissingTimeline(
            f"No time intervals provided for heterogeneous {name}"
        )

    values = values.ravel()
    if values.size != n_intervals:
        raise ShapeMismatch(name, n_intervals, values.size)

    return values[::-1].copy() if ascending else values.copy()


@dataclass
class ObservationData:
    """
    Fossil observation data resolved into internal interval order.

    Attributes
    ----------
    regime : DataRegime
        Which kind of data is present
    total : int, optional
        Total number of fossils (TOTAL regime)
    interval_totals : np.ndarray, optional
        Fossils per interval, summed over taxa (INTERVAL, TAXON_INTERVAL and
        PRESENCE_ABSENCE regimes)
    taxon_counts : np.ndarray, optional
        Fossils per taxon and interval, shape (n_taxa, k)
    oldest_intervals, youngest_intervals : np.ndarray, optional
        For presence/absence data, the oldest and youngest interval in which
        each taxon is present (``k - 1`` if it is never present)
    """

    regime: DataRegime
    total: Optional[int] = None
    interval_totals: Optional[np.ndarray] = None
    taxon_counts: Optional[np.ndarray] = None
    oldest_intervals: Optional[np.ndarray] = None
    youngest_intervals: Optional[np.ndarray] = None

    @property
    def marginalized(self) -> bool:
        return self.regime is DataRegime.MARGINALIZED

    @property
    def presence_absence(self) -> bool:
        return self.regime is DataRegime.PRESENCE_ABSENCE

    def count(self, interval: int, taxon: Optional[int] = None) -> int:
        """
        Number of fossils in an interval, for one taxon or for all taxa.

        Raises
        ------
        UnsupportedDataRegime
            If fossil counts have been marginalized, or a per-taxon count is
            requested from data that only has interval totals.
        """
        if self.regime is DataRegime.MARGINALIZED:
            raise UnsupportedDataRegime("Fossil counts have been marginalized")
        if self.regime is DataRegime.TOTAL:
            if taxon is not None:
                raise UnsupportedDataRegime("A single fossil total has no per-taxon counts")
            return self.total
        if taxon is None:
            return int(self.interval_totals[interval])
        if self.taxon_counts is None:
            raise UnsupportedDataRegime("Interval fossil counts have no per-taxon counts")
        return int(self.taxon_counts[taxon, interval])


def _as_counts(name: str, value, ndim: int) -> np.ndarray:
    counts = np.asarray(value)
    if counts.ndim != ndim:
        raise ConfigurationError(
            f"{name} must be {ndim}-dimensional, got {counts.ndim} dimensions"
        )
    if not np.issubdtype(counts.dtype, np.integer) and not np.issubdtype(counts.dtype, np.bool_):
        if not np.all(np.equal(np.mod(counts, 1), 0)):
            raise ConfigurationError(f"{name} must be integers")
    counts = counts.astype(np.int64)
    if np.any(counts < 0):
        raise ConfigurationError(f"{name} must be non-negative")
    return counts


def resolve_observations(n_taxa: int, n_intervals: int, ascending: bool,
                         has_timeline: bool, homogeneous_fossilization: bool,
                         counts=None, interval_counts=None,
                         taxon_interval_counts=None,
                         presence_absence: bool = False) -> ObservationData:
    """
    Decide which fossil data regime applies and validate its shape.

    At most one of ``counts``, ``interval_counts`` and
    ``taxon_interval_counts`` may be given. If none is given the counts are
    marginalized. Presence/absence data must be given per taxon and interval.
    """
    supplied = [
        name for name, value in (
            ("counts", counts),
            ("interval_counts", interval_counts),
            ("taxon_interval_counts", taxon_interval_counts),
        )
        if value is not None
    ]
    if len(supplied) > 1:
        raise ConflictingDataRegime(
            f"Only one kind of fossil count data may be provided, got {', '.join(supplied)}"
        )

    if not supplied:
        if presence_absence:
            raise UnsupportedDataRegime("Cannot marginalize fossil presence absence data")
        return ObservationData(regime=DataRegime.MARGINALIZED)

    if presence_absence and taxon_interval_counts is None:
        raise UnsupportedDataRegime(
            "Presence absence data must be provided by species and interval"
        )

    if counts is not None:
        if not homogeneous_fossilization:
            raise UnsupportedDataRegime(
                "Heterogeneous fossil sampling rates provided, but homogeneous fossil counts"
            )
        total = _as_counts("Fossil counts", counts, 0)
        return ObservationData(regime=DataRegime.TOTAL, total=int(total))

    if not has_timeline:
        raise MissingTimeline("No time intervals provided for per-interval fossil counts")

    if interval_counts is not None:
        totals = _as_counts("Interval fossil counts", interval_counts, 1)
        if totals.size != n_intervals:
            raise ShapeMismatch("fossil counts", n_intervals, totals.size)
        if ascending:
            totals = totals[::-1].copy()
        return ObservationData(regime=DataRegime.INTERVAL, interval_totals=totals)

    matrix = _as_counts("Species fossil counts", taxon_interval_counts, 2)
    if matrix.shape[0] != n_taxa:
        raise ShapeMismatch("species fossil counts", n_taxa, matrix.shape[0], unit="taxa")
    if matrix.shape[1] != n_intervals:
        raise ShapeMismatch("fossil counts per species", n_intervals, matrix.shape[1])
    if ascending:
        matrix = matrix[:, ::-1].copy()

    data = ObservationData(
        regime=DataRegime.PRESENCE_ABSENCE if presence_absence else DataRegime.TAXON_INTERVAL,
        interval_totals=matrix.sum(axis=0),
        taxon_counts=matrix,
    )

    if presence_absence:
        present = matrix > 0
        any_present = present.any(axis=1)
        # argmax gives the first True along each row
        oldest = np.where(any_present, np.argmax(present, axis=1), n_intervals - 1)
        youngest = np.where(
            any_present, n_intervals - 1 - np.argmax(present[:, ::-1], axis=1), n_intervals - 1
        )
        data.oldest_intervals = oldest.astype(np.int64)
        data.youngest_intervals = youngest.astype(np.int64)

    return data


class ProcessParameters:
    """
    Current parameter values of the process, with their resolved forms.

    Parameters
    ----------
    speciation, extinction, fossilization : float or array_like
        Rates, either shared by all intervals or one per interval
    rho : float
        Probability of sampling a lineage alive at the present
    timeline : array_like, optional
        Rate-change times, ascending or descending
    n_taxa : int
        Number of taxa (used to validate per-taxon counts)
    counts, interval_counts, taxon_interval_counts : optional
        Fossil count data; at most one may be given
    presence_absence : bool
        Interpret ``taxon_interval_counts`` as presence/absence indicators

    Attributes
    ----------
    times : np.ndarray
        Interval lower bounds, descending, ending with 0
    ascending : bool
        Whether per-interval values were supplied youngest-first
    n_intervals : int
        Number of intervals
    speciation, extinction, fossilization : np.ndarray
        Per-interval rates in internal order
    rho : float
        Boundary sampling probability
    observations : ObservationData
        Resolved fossil data
    """

    def __init__(self, speciation, extinction, fossilization, rho=1.0, timeline=None,
                 *, n_taxa: int, counts=None, interval_counts=None,
                 taxon_interval_counts=None, presence_absence: bool = False):
        self.n_taxa = n_taxa
        self._values = {
            "speciation": speciation,
            "extinction": extinction,
            "fossilization": fossilization,
            "rho": rho,
            "timeline": timeline,
        }
        self._observation_values = {
            "counts": counts,
            "interval_counts": interval_counts,
            "taxon_interval_counts": taxon_interval_counts,
            "presence_absence": presence_absence,
        }
        self._resolve()

    def _resolve(self):
        timeline = self._values["timeline"]
        times, ascending = resolve_timeline(timeline)
        n_intervals = len(times)
        has_timeline = n_intervals > 1

        speciation = resolve_rate("speciation rates", self._values["speciation"],
                                  n_intervals, ascending, has_timeline)
        extinction = resolve_rate("extinction rates", self._values["extinction"],
                                  n_intervals, ascending, has_timeline)
        fossilization = resolve_rate("fossilization rates", self._values["fossilization"],
                                     n_intervals, ascending, has_timeline)

        if np.any(speciation <= 0.0):
            raise ConfigurationError(f"Speciation rates must be positive, got {speciation}")
        if np.any(extinction < 0.0):
            raise ConfigurationError(f"Extinction rates must be non-negative, got {extinction}")
        if np.any(fossilization < 0.0):
            raise ConfigurationError(f"Fossilization rates must be non-negative, got {fossilization}")

        rho = np.asarray(self._values["rho"], dtype=np.float64)
        if rho.ndim != 0:
            raise ConfigurationError("rho must be a single probability")
        rho = float(rho)
        if not 0.0 <= rho <= 1.0:
            raise ConfigurationError(f"rho must be in [0, 1], got {rho}")

        homogeneous_fossilization = np.asarray(self._values["fossilization"]).ndim == 0
        observations = resolve_observations(
            self.n_taxa, n_intervals, ascending, has_timeline, homogeneous_fossilization,
            **self._observation_values,
        )

        self.times = times
        self.ascending = ascending
        self.n_intervals = n_intervals
        self.speciation = speciation
        self.extinction = extinction
        self.fossilization = fossilization
        self.rho = rho
        self.observations = observations

    def get(self, kind: str):
        """Return the value of a parameter as it was supplied."""
        if kind not in self._values:
            raise KeyError(f"Unknown parameter '{kind}', expected one of {PARAMETER_KINDS}")
        return self._values[kind]

    def set(self, kind: str, value) -> None:
        """
        Replace a parameter value and re-resolve.

        The previous value is kept if the new one is invalid.
        """
        self.update({kind: value})

    def update(self, values: dict) -> None:
        """Replace several parameter values at once and re-resolve."""
        old = {kind: self.get(kind) for kind in values}
        self._values.update(values)
        try:
            self._resolve()
        except ConfigurationError:
            self._values.update(old)
            self._resolve()
            raise

    def refresh(self) -> None:
        """Re-resolve after supplied arrays were modified in place."""
        self._resolve()

    def resolved(self) -> dict:
        """Current resolved values, for :meth:`load`."""
        return {name: getattr(self, name) for name in _RESOLVED_ATTRIBUTES}

    def load(self, resolved: dict) -> None:
        """Return to resolved values taken earlier with :meth:`resolved`."""
        for name in _RESOLVED_ATTRIBUTES:
            setattr(self, name, resolved[name])

    def speciation_rate(self, index: int) -> float:
        return float(self.speciation[index])

    def extinction_rate(self, index: int) -> float:
        return float(self.extinction[index])

    def fossilization_rate(self, index: int) -> float:
        return float(self.fossilization[index])

    def interval_time(self, index: int) -> float:
        return float(self.times[index])
