"""
Priors restricted to the feasible lift range.

CR1 = CR0 * (1 + L) must lie in [0, 1], so every calculator works with the
prior conditioned on L in [-1, 1/CR0 - 1]. The Monte Carlo paths get this
by rejection sampling; the summaries here (mean, P(L >= T), closed-form
decision value) are the matching exact quantities, so defaults, EVPI and
the simulations all see the same distribution.

- Normal: scipy's truncnorm
- Student-t: conditional expectation over the feasible interval
- Uniform: the intersected interval
"""

from dataclasses import dataclass
from typing import Tuple

from scipy import stats

from ..config import MIN_FEASIBLE_MASS, TRUNCATION_MASS
from ..distributions import NormalPrior, PriorDistribution, StudentTPrior, UniformPrior
from .decision_math import feasibility_bounds


@dataclass(frozen=True)
class FeasiblePrior:
    """Summary of the prior conditioned on the feasible lift range."""
    mean: float
    probability_clears_threshold: float
    feasible_mass: float

    @property
    def truncation_material(self) -> bool:
        """More than TRUNCATION_MASS of the prior lies outside the feasible range."""
        return self.feasible_mass < 1.0 - TRUNCATION_MASS


def _clamp01(p: float) -> float:
    return min(1.0, max(0.0, float(p)))


def feasible_mass(prior: PriorDistribution, bounds: Tuple[float, float]) -> float:
    """P(low <= L <= high) under the untruncated prior."""
    low, high = bounds
    if isinstance(prior, NormalPrior) and prior.is_degenerate:
        return 1.0 if low <= prior.location <= high else 0.0
    return _clamp01(prior.cumulative(high) - prior.cumulative(low))


def truncated_normal(prior: NormalPrior, bounds: Tuple[float, float]):
    """Frozen scipy truncnorm for a non-degenerate Normal prior."""
    low, high = bounds
    a = (low - prior.location) / prior.scale
    b = (high - prior.location) / prior.scale
    return stats.truncnorm(a, b, loc=prior.location, scale=prior.scale)


def summarize_feasible_prior(
    prior: PriorDistribution,
    threshold_lift: float,
    baseline_conversion_rate: float,
) -> FeasiblePrior:
    """
    Mean and P(L >= T) of the prior truncated to the feasible range.

    Falls back to the untruncated values when practically no mass is
    feasible; the simulations then reject every draw and report it.

    Args:
        prior: Prior over the true lift
        threshold_lift: Decision threshold T
        baseline_conversion_rate: CR0, sets the feasible range

    Returns:
        FeasiblePrior
    """
    bounds = feasibility_bounds(baseline_conversion_rate)
    low, high = bounds
    mass = feasible_mass(prior, bounds)

    if isinstance(prior, NormalPrior) and prior.is_degenerate:
        return FeasiblePrior(
            mean=prior.location,
            probability_clears_threshold=1.0 if prior.location >= threshold_lift else 0.0,
            feasible_mass=mass,
        )
    if mass < MIN_FEASIBLE_MASS:
        return FeasiblePrior(
            mean=prior.mean(),
            probability_clears_threshold=_clamp01(1.0 - prior.cumulative(threshold_lift)),
            feasible_mass=mass,
        )

    if isinstance(prior, NormalPrior):
        dist = truncated_normal(prior, bounds)
        return FeasiblePrior(
            mean=float(dist.mean()),
            probability_clears_threshold=_clamp01(dist.sf(threshold_lift)),
            feasible_mass=mass,
        )

    if isinstance(prior, UniformPrior):
        a, b = max(prior.low, low), min(prior.high, high)
        clears = (b - max(threshold_lift, a)) / (b - a)
        return FeasiblePrior(mean=(a + b) / 2.0, probability_clears_threshold=_clamp01(clears), feasible_mass=mass)

    if isinstance(prior, StudentTPrior):
        mean = stats.t.expect(
            lambda x: x, args=(prior.df,), loc=prior.location, scale=prior.scale,
            lb=low, ub=high, conditional=True,
        )
        if threshold_lift > high:
            clears = 0.0
        else:
            clears = (prior.cumulative(high) - prior.cumulative(max(threshold_lift, low))) / mass
        return FeasiblePrior(mean=float(mean), probability_clears_threshold=_clamp01(clears), feasible_mass=mass)

    raise TypeError(f"Unsupported prior type: {type(prior).__name__}")


def truncated_normal_decision_value(
    k: float,
    prior: NormalPrior,
    threshold_lift: float,
    bounds: Tuple[float, float],
) -> float:
    """
    EVPI of a Normal prior truncated to `bounds`.

    EVPI = K * ( E[(L - T)+] - max(E[L] - T, 0) ), where
    E[(L - T)+] = P(L >= T) * (E[L | L >= T] - T) under the truncated prior.
    Reduces to the untruncated closed form when the bounds carry no mass.
    """
    low, high = bounds
    dist = truncated_normal(prior, bounds)
    mean = float(dist.mean())
    if threshold_lift >= high:
        upside = 0.0
    else:
        lower = max(threshold_lift, low)
        above = truncated_normal(prior, (lower, high))
        upside = float(dist.sf(lower)) * (float(above.mean()) - threshold_lift)
    value = k * (upside - max(mean - threshold_lift, 0.0))
    # Non-negative mathematically; clamp float error.
    return max(0.0, value)
