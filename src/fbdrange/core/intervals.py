"""
Per-interval boundary values of the piecewise-constant FBD process.

For every interval the cache stores the rates, the interval's lower bound and
the values of the extinction probability p, the lineage density q and the
fossil-discounted density q~ at the interval's upper bound. These are
computed in a single backward pass from the present into the past, since the
solution within interval i is determined by p at the upper bound of the
younger interval i + 1.

Notation follows Stadler (2010) and Stadler et al. (2018): within interval i,
with rates lambda, mu, psi and t measured from the interval's lower bound,

    A = sqrt((lambda - mu - psi)^2 + 4 lambda psi)
    B = ((1 - 2 (1 - r) p_{i+1}) lambda + mu + psi) / A
    q(t) = 4 e^{-A t} / ((1 + B) + e^{-A t} (1 - B))^2

where r is the extant sampling probability for the youngest interval and
zero elsewhere.
"""

import numpy as np


class IntervalCache:
    """
    Closed-form interval values for one set of process parameters.

    An instance is immutable once built; a parameter change builds a new one.

    Parameters
    ----------
    speciation, extinction, fossilization : np.ndarray, shape (k,)
        Per-interval rates, oldest interval first
    times : np.ndarray, shape (k,)
        Interval lower bounds, descending, ending with 0
    rho : float
        Probability of sampling a lineage alive at the present

    Attributes
    ----------
    p_i, q_i, q_tilde_i : np.ndarray, shape (k + 1,)
        Values at the upper bound of each interval (entry i for interval i,
        i > 0). Entry k holds the boundary condition at the present.
    A, B : np.ndarray, shape (k,)
        Per-interval constants of the closed-form solution
    """

    def __init__(self, speciation: np.ndarray, extinction: np.ndarray,
                 fossilization: np.ndarray, times: np.ndarray, rho: float):
        self.birth = np.asarray(speciation, dtype=np.float64).copy()
        self.death = np.asarray(extinction, dtype=np.float64).copy()
        self.fossil = np.asarray(fossilization, dtype=np.float64).copy()
        self.times = np.asarray(times, dtype=np.float64).copy()
        self.rho = float(rho)
        self.n_intervals = len(self.times)

        # ascending copy for binary search
        self._sorted_times = self.times[::-1].copy()

        k = self.n_intervals
        self.p_i = np.ones(k + 1)
        self.q_i = np.ones(k + 1)
        self.q_tilde_i = np.ones(k + 1)
        self.A = np.zeros(k)
        self.B = np.zeros(k)

        with np.errstate(all='ignore'):
            self._backward_pass()

            self.log_q_i = np.log(self.q_i)
            self.log_q_tilde_i = np.log(self.q_tilde_i)

    @classmethod
    def from_parameters(cls, parameters) -> "IntervalCache":
        """Build the cache from resolved :class:`ProcessParameters`."""
        return cls(
            parameters.speciation,
            parameters.extinction,
            parameters.fossilization,
            parameters.times,
            parameters.rho,
        )

    def _backward_pass(self):
        k = self.n_intervals

        for i in range(k - 1, -1, -1):
            b = self.birth[i]
            d = self.death[i]
            f = self.fossil[i]
            r = self.rho if i == k - 1 else 0.0

            diff = b - d - f
            A = np.sqrt(diff * diff + 4.0 * b * f)
            B = ((1.0 - 2.0 * (1.0 - r) * self.p_i[i + 1]) * b + d + f) / A

            self.A[i] = A
            self.B[i] = B

            if i > 0:
                dt = self.times[i - 1] - self.times[i]
                e = np.exp(-A * dt)
                tmp = (1.0 + B) + e * (1.0 - B)

                self.q_i[i] = 4.0 * e / (tmp * tmp)
                self.q_tilde_i[i] = np.sqrt(self.q_i[i] * np.exp(-(b + d + f) * dt))
                self.p_i[i] = (b + d + f - A * ((1.0 + B) - e * (1.0 - B)) / tmp) / (2.0 * b)

    def interval_index(self, t: float) -> int:
        """
        Index i of the interval with times[i - 1] > t >= times[i].

        Raises
        ------
        IndexError
            If t is negative or not a number
        """
        if not t >= 0.0:
            raise IndexError(f"Time {t} lies outside the process (must be >= 0)")
        # number of interval bounds strictly older than t
        return self.n_intervals - int(np.searchsorted(self._sorted_times, t, side='right'))

    def p(self, i: int, t: float) -> float:
        """Probability that a lineage alive at time t in interval i leaves no sampled descendants."""
        if t == 0.0:
            return 1.0

        b = self.birth[i]
        A = self.A[i]
        B = self.B[i]

        e = np.exp(-A * (t - self.times[i]))
        tmp = b + self.death[i] + self.fossil[i] - A * ((1.0 + B) - e * (1.0 - B)) / ((1.0 + B) + e * (1.0 - B))

        return tmp / (2.0 * b)

    def q(self, i: int, t: float, tilde: bool = False) -> float:
        """
        Lineage density q_i(t), or q~_i(t) if ``tilde`` is set.

        q~ additionally discounts by exp(-(lambda + mu + psi) dt) and is used
        along the observed part of a range.
        """
        if t == 0.0:
            return 1.0

        A = self.A[i]
        B = self.B[i]
        dt = t - self.times[i]

        e = np.exp(-A * dt)
        tmp = (1.0 + B) + e * (1.0 - B)
        q = 4.0 * e / (tmp * tmp)

        if tilde:
            q = np.sqrt(q * np.exp(-(self.birth[i] + self.death[i] + self.fossil[i]) * dt))

        return q

    def integrate_q(self, i: int, t: float) -> float:
        """
        Antiderivative of exp(psi t) q~_i(t) / q_i(t) at time t.

        Differences of this function give the probability mass of a range
        segment with at least one fossil in interval i without numerical
        integration.
        """
        b = self.birth[i]
        d = self.death[i]
        f = self.fossil[i]
        A = self.A[i]
        B = self.B[i]
        dt = t - self.times[i]

        e = np.exp(-A * dt)
        diff2 = b + d - f
        tmp = (1.0 + B) / (A - diff2) - e * (1.0 - B) / (A + diff2)

        return np.exp(-(diff2 - A) * dt / 2.0) * tmp

    def survival_probability(self, t: float) -> float:
        """Probability that a process started with one lineage at time t is sampled."""
        return 1.0 - self.p(self.interval_index(t), t)
