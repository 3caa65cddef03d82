"""Tests for prior distributions."""
import math

import numpy as np
import pytest
from src.decision_value.distributions import (
    NormalPrior,
    StudentTPrior,
    UniformPrior,
    prior_from_interval,
    sample_standard_normal,
)
from src.decision_value.errors import InvalidInputError


def test_normal_density_and_cdf():
    """N(0, 0.05) at its centre."""
    prior = NormalPrior(location=0.0, scale=0.05)
    assert prior.cumulative(0.0) == pytest.approx(0.5)
    assert prior.density(0.0) == pytest.approx(1 / (0.05 * math.sqrt(2 * math.pi)))
    assert prior.mean() == 0.0


def test_normal_infinite_points():
    """Limits at +/- infinity without raising."""
    prior = NormalPrior(location=0.02, scale=0.05)
    assert prior.cumulative(-math.inf) == 0.0
    assert prior.cumulative(math.inf) == 1.0
    assert prior.density(math.inf) == 0.0


def test_degenerate_normal_is_point_mass():
    """Scale 0: step CDF, draws return the location."""
    prior = NormalPrior(location=0.03, scale=0.0)
    rng = np.random.default_rng(0)
    assert prior.cumulative(0.0299) == 0.0
    assert prior.cumulative(0.03) == 1.0
    assert all(prior.draw(rng) == 0.03 for _ in range(10))


def test_normal_negative_scale_rejected():
    with pytest.raises(InvalidInputError):
        NormalPrior(location=0.0, scale=-0.01)


def test_normal_draws_match_moments():
    """Box-Muller draws have the prior's mean and sd."""
    prior = NormalPrior(location=0.05, scale=0.02)
    rng = np.random.default_rng(7)
    draws = np.array([prior.draw(rng) for _ in range(20000)])
    assert draws.mean() == pytest.approx(0.05, abs=0.001)
    assert draws.std() == pytest.approx(0.02, rel=0.03)


def test_standard_normal_survives_zero_uniform():
    """A uniform draw of exactly 0 still gives a finite value."""

    class ZeroThenHalf:
        def __init__(self):
            self.values = iter([0.0, 0.5])

        def random(self):
            return next(self.values)

    z = sample_standard_normal(ZeroThenHalf())
    assert math.isfinite(z)


def test_uniform_boundaries():
    """Density inclusive at both ends, zero outside; CDF clamped."""
    prior = UniformPrior(low=-0.1, high=0.3)
    assert prior.density(-0.1) == pytest.approx(2.5)
    assert prior.density(0.3) == pytest.approx(2.5)
    assert prior.density(-0.1001) == 0.0
    assert prior.density(0.3001) == 0.0
    assert prior.cumulative(-5) == 0.0
    assert prior.cumulative(5) == 1.0
    assert prior.cumulative(0.1) == pytest.approx(0.5)
    assert prior.mean() == pytest.approx(0.1)


def test_uniform_draws_inside_bounds():
    prior = UniformPrior(low=0.0, high=0.1)
    rng = np.random.default_rng(3)
    draws = [prior.draw(rng) for _ in range(1000)]
    assert min(draws) >= 0.0
    assert max(draws) <= 0.1


def test_uniform_requires_low_below_high():
    with pytest.raises(InvalidInputError):
        UniformPrior(low=0.1, high=0.1)


def test_student_t_location_scale():
    """Symmetric around the location; heavier tails than the Normal."""
    prior = StudentTPrior(location=0.01, scale=0.05, df=3)
    normal = NormalPrior(location=0.01, scale=0.05)
    assert prior.cumulative(0.01) == pytest.approx(0.5)
    assert prior.mean() == 0.01
    assert prior.cumulative(-0.3) > normal.cumulative(-0.3)


def test_student_t_cauchy_draws_are_finite():
    """df = 1 still draws finite values."""
    prior = StudentTPrior(location=0.0, scale=0.05, df=1)
    rng = np.random.default_rng(11)
    assert all(math.isfinite(prior.draw(rng)) for _ in range(500))


class ScriptedRandom:
    """Stands in for a Generator, returning fixed uniforms in order."""

    def __init__(self, *values):
        self._values = iter(values)

    def random(self):
        return next(self._values)


def test_student_t_redraws_infinite_quantiles():
    """u = 0 and u = 1 map to -inf and +inf at df = 1; the median draw is the location."""
    prior = StudentTPrior(location=0.0, scale=0.05, df=1)
    value = prior.draw(ScriptedRandom(0.0, 1.0, 0.5))
    assert math.isfinite(value)
    assert value == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize("kwargs", [
    {"location": 0.0, "scale": 0.0, "df": 5},
    {"location": 0.0, "scale": 0.05, "df": 0.5},
    {"location": math.nan, "scale": 0.05, "df": 5},
])
def test_student_t_invalid(kwargs):
    with pytest.raises(InvalidInputError):
        StudentTPrior(**kwargs)


def test_prior_from_interval_symmetric():
    """90% interval of +/-8.22% gives N(0, ~0.05)."""
    prior = prior_from_interval(-8.22, 8.22)
    assert prior.location == pytest.approx(0.0, abs=1e-12)
    assert prior.scale == pytest.approx(0.05, abs=1e-3)


def test_prior_from_interval_shifted():
    prior = prior_from_interval(0, 10)
    assert prior.location == pytest.approx(0.05)
    assert prior.cumulative(0.10) == pytest.approx(0.95, abs=1e-4)


def test_prior_from_interval_reversed_bounds():
    with pytest.raises(InvalidInputError):
        prior_from_interval(5, -5)
