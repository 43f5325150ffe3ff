"""
Compare constant-rate interval values with the closed forms of Stadler (2010).

For a single interval the extinction probability and lineage density of the
fossilized birth-death process are

    p0(t) = 1 + (-(l - m - s) + c1 (e^{-c1 t}(1 - c2) - (1 + c2))
                 / (e^{-c1 t}(1 - c2) + (1 + c2))) / (2 l)
    q(t)  = 4 / (2 (1 - c2^2) + e^{-c1 t}(1 - c2)^2 + e^{c1 t}(1 + c2)^2)

with c1 = sqrt((l - m - s)^2 + 4 l s) and c2 = -(l - m - 2 l r - s) / c1.
"""

import numpy as np
import pytest

from fbdrange.core.intervals import IntervalCache
from fbdrange.core.parameters import ProcessParameters


def stadler_constants(speciation, extinction, fossilization, rho):
    c1 = np.sqrt((speciation - extinction - fossilization) ** 2 + 4 * speciation * fossilization)
    c2 = -(speciation - extinction - 2 * speciation * rho - fossilization) / c1
    return c1, c2


def stadler_p0(t, speciation, extinction, fossilization, rho):
    c1, c2 = stadler_constants(speciation, extinction, fossilization, rho)
    e = np.exp(-c1 * t)
    ratio = (e * (1 - c2) - (1 + c2)) / (e * (1 - c2) + (1 + c2))
    return 1 + (-(speciation - extinction - fossilization) + c1 * ratio) / (2 * speciation)


def stadler_q(t, speciation, extinction, fossilization, rho):
    c1, c2 = stadler_constants(speciation, extinction, fossilization, rho)
    denominator = (2 * (1 - c2 ** 2) + np.exp(-c1 * t) * (1 - c2) ** 2
                   + np.exp(c1 * t) * (1 + c2) ** 2)
    return 4 / denominator


PARAMETER_SETS = [
    (1.0, 0.5, 0.2, 1.0),
    (1.0, 0.5, 0.2, 0.3),
    (2.0, 1.9, 0.05, 0.8),
    (0.5, 0.1, 1.5, 0.5),
    (1.0, 0.0, 0.0, 1.0),
]


@pytest.mark.parametrize("speciation,extinction,fossilization,rho", PARAMETER_SETS)
class TestConstantRate:
    """Single-interval values against the published closed forms."""

    def cache(self, speciation, extinction, fossilization, rho):
        params = ProcessParameters(speciation, extinction, fossilization, rho, n_taxa=1)
        return IntervalCache.from_parameters(params)

    def test_extinction_probability(self, speciation, extinction, fossilization, rho):
        cache = self.cache(speciation, extinction, fossilization, rho)
        for t in [0.01, 0.5, 1.0, 3.0, 7.5]:
            expected = stadler_p0(t, speciation, extinction, fossilization, rho)
            assert cache.p(0, t) == pytest.approx(expected, rel=1e-10)

    def test_lineage_density(self, speciation, extinction, fossilization, rho):
        cache = self.cache(speciation, extinction, fossilization, rho)
        for t in [0.01, 0.5, 1.0, 3.0, 7.5]:
            expected = stadler_q(t, speciation, extinction, fossilization, rho)
            assert cache.q(0, t) == pytest.approx(expected, rel=1e-10)

    def test_survival_probability(self, speciation, extinction, fossilization, rho):
        cache = self.cache(speciation, extinction, fossilization, rho)
        expected = 1 - stadler_p0(4.0, speciation, extinction, fossilization, rho)
        assert cache.survival_probability(4.0) == pytest.approx(expected, rel=1e-9)
