"""
Posterior mean of the true lift given a simulated test result.

The Bayes-optimal decision under linear utility acts iff E[L | L_hat] >= T.
Deciding on the raw estimate L_hat ignores the prior and can make EVSI
negative, so every simulation decides through `posterior_decision`.

- Normal prior: conjugate shrinkage, m = w * L_hat + (1 - w) * mu with
  w = sigma^2 / (sigma^2 + SE^2) and posterior sd sqrt(w) * SE, then
  truncated to the feasible range like the prior.
- Other priors: bounded-grid integration of prior(L) * N(L_hat; L, SE)
  over the feasible part of the prior's support, in log space.
"""

import math
from typing import Tuple

import numpy as np
from scipy import integrate, stats

from ..config import LIKELIHOOD_WINDOW_SE, POSTERIOR_GRID_SIZE, POSTERIOR_TAIL_Z
from ..distributions import NormalPrior, PriorDistribution, StudentTPrior, UniformPrior
from ..schema import Decision
from .decision_math import feasibility_bounds


def shrinkage_weight(prior_scale: float, se: float) -> float:
    """Weight on the observed estimate in the Normal-Normal posterior mean."""
    prior_variance = prior_scale * prior_scale
    if prior_variance == 0:
        return 0.0
    return prior_variance / (prior_variance + se * se)


def truncated_normal_mean(mean: float, sd: float, bounds: Tuple[float, float]) -> float:
    """Mean of N(mean, sd^2) restricted to `bounds`; sd == 0 is a point mass."""
    if sd == 0:
        return mean
    low, high = bounds
    a = (low - mean) / sd
    b = (high - mean) / sd
    if a < -POSTERIOR_TAIL_Z and b > POSTERIOR_TAIL_Z:
        return mean
    value = float(stats.truncnorm.mean(a, b, loc=mean, scale=sd))
    if not math.isfinite(value):
        return float(min(max(mean, low), high))
    return value


def _feasible_support(prior: PriorDistribution, bounds: Tuple[float, float]) -> Tuple[float, float]:
    support_low, support_high = prior.support()
    return max(bounds[0], support_low), min(bounds[1], support_high)


def grid_posterior_mean(
    observed_lift: float,
    se: float,
    prior: PriorDistribution,
    bounds: Tuple[float, float],
    grid_size: int = POSTERIOR_GRID_SIZE,
) -> float:
    """
    E[L | L_hat] by numerical integration on a bounded grid.

    The grid is the union of two windows, each clipped to the feasible
    support: the likelihood window L_hat +/- 8 SE (outside it the
    likelihood is below e^-32 of its peak) and the prior's core window,
    which keeps resolution when SE is much wider than the prior.
    """
    low, high = _feasible_support(prior, bounds)
    if not high > low:
        return float(min(max(observed_lift, low), high))

    half = LIKELIHOOD_WINDOW_SE * se
    windows = [(observed_lift - half, observed_lift + half), prior.core_window()]
    pieces = []
    for w_low, w_high in windows:
        a, b = max(low, w_low), min(high, w_high)
        if b > a:
            pieces.append(np.linspace(a, b, grid_size + 1))
    if not pieces:
        # Likelihood sits entirely outside the support: mass piles at the nearest edge.
        return float(min(max(observed_lift, low), high))
    grid = np.unique(np.concatenate(pieces))
    if grid.size < 2:
        return float(grid[0])

    log_weights = prior.log_density(grid) - 0.5 * ((observed_lift - grid) / se) ** 2
    finite = np.isfinite(log_weights)
    if not finite.any():
        return float(min(max(observed_lift, low), high))

    # Subtract the max before exp() so narrow likelihoods do not underflow.
    weights = np.zeros_like(grid)
    weights[finite] = np.exp(log_weights[finite] - log_weights[finite].max())
    total = integrate.trapezoid(weights, grid)
    if not total > 0:
        return float(grid[np.argmax(np.where(finite, log_weights, -np.inf))])
    return float(integrate.trapezoid(grid * weights, grid) / total)


def posterior_mean(
    observed_lift: float,
    se: float,
    prior: PriorDistribution,
    baseline_conversion_rate: float,
    grid_size: int = POSTERIOR_GRID_SIZE,
) -> float:
    """
    E[L | L_hat] for any supported prior.

    Args:
        observed_lift: Simulated test estimate L_hat
        se: Standard error of the estimate
        prior: Prior distribution over L
        baseline_conversion_rate: CR0, sets the feasible range [-1, 1/CR0 - 1]
        grid_size: Points per grid window for non-Normal priors

    Returns:
        Posterior mean of the true lift
    """
    if not math.isfinite(observed_lift) or not math.isfinite(se):
        return prior.mean()

    if isinstance(prior, NormalPrior):
        w = shrinkage_weight(prior.scale, se)
        mean = w * observed_lift + (1.0 - w) * prior.location
        bounds = feasibility_bounds(baseline_conversion_rate)
        return truncated_normal_mean(mean, math.sqrt(w) * se, bounds)

    if isinstance(prior, (StudentTPrior, UniformPrior)):
        bounds = feasibility_bounds(baseline_conversion_rate)
        return grid_posterior_mean(observed_lift, se, prior, bounds, grid_size)

    raise TypeError(f"Unsupported prior type: {type(prior).__name__}")


def posterior_decision(posterior_mean_lift: float, threshold_lift: float) -> Decision:
    """Act iff the posterior mean clears the threshold."""
    return Decision.ACT if posterior_mean_lift >= threshold_lift else Decision.DEFER
