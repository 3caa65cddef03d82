"""
Expected Value of Sample Information.

Two paths, both deciding on the posterior mean E[L | L_hat]:

- Normal fast path: the conjugate update gives a Normal pre-posterior for
  the posterior mean with sd sigma * sqrt(w), w = sigma^2 / (sigma^2 + SE^2);
  EVSI is the EVPI closed form evaluated with that sd. Used while the prior
  has no material mass outside the feasible lift range.
- Monte Carlo path: any prior, truncated to the feasible range by the
  shared rejection-sampling simulation.
"""

import logging
import math
from typing import List, Optional

import numpy as np

from .config import HEAVY_TAILS_MAX_DF, SimulationConfig
from .distributions import NormalPrior, PriorDistribution, StudentTPrior
from .schema import (
    CalculationMethod,
    CalculationWarning,
    Decision,
    DecisionInputs,
    EVSIResult,
    SampleSizes,
)
from .simulation import sampling_warnings, simulate_posterior_decisions
from .stats.decision_math import (
    closed_form_decision_value,
    default_decision,
    rare_event_warnings,
    se_of_relative_lift,
)
from .stats.posterior import shrinkage_weight
from .stats.truncation import summarize_feasible_prior

logger = logging.getLogger(__name__)


def _heavy_tail_warnings(prior: PriorDistribution) -> List[CalculationWarning]:
    if isinstance(prior, StudentTPrior) and prior.df <= HEAVY_TAILS_MAX_DF:
        return [CalculationWarning(
            code="heavy_tails",
            message=(
                f"Student-t prior with df={prior.df:g} has undefined variance. "
                "Decisions use its mean over the feasible lift range and Monte Carlo results may be noisy."
            ),
        )]
    return []


def calculate_evsi_normal_fast_path(
    inputs: DecisionInputs,
    prior: NormalPrior,
    sample_sizes: SampleSizes,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> EVSIResult:
    """
    Closed-form EVSI for a Normal prior.

    The conjugate closed form ignores the feasible range, so it is used only
    while the prior puts no material mass outside it. Otherwise the prior is
    truncated and the Monte Carlo path runs instead (config and rng are
    passed through).

    Args:
        inputs: K, threshold and baseline conversion rate
        prior: Normal prior over the true lift
        sample_sizes: Per-arm counts of the experiment
        config: Monte Carlo settings, used only on fallback
        rng: Injected generator, used only on fallback

    Returns:
        EVSIResult; 0 <= EVSI <= EVPI
    """
    cr0 = inputs.baseline_conversion_rate
    threshold = inputs.threshold_lift
    mu = prior.location
    sigma = prior.scale
    summary = summarize_feasible_prior(prior, threshold, cr0)
    decision = default_decision(summary.mean, threshold)
    se = se_of_relative_lift(cr0, sample_sizes.n_control, sample_sizes.n_variant)
    warnings = rare_event_warnings(cr0, sample_sizes.n_control, sample_sizes.n_variant)

    if prior.is_degenerate:
        return EVSIResult(
            evsi_dollars=0.0,
            default_decision=decision,
            probability_clears_threshold=summary.probability_clears_threshold,
            probability_decision_changes=0.0,
            method=CalculationMethod.CLOSED_FORM,
            warnings=tuple(warnings),
        )

    if summary.truncation_material:
        logger.info(
            f"Only {summary.feasible_mass:.1%} of the prior is feasible; "
            "using Monte Carlo on the truncated prior"
        )
        return calculate_evsi_monte_carlo(inputs, prior, sample_sizes, config=config, rng=rng)

    sigma_preposterior = sigma * math.sqrt(shrinkage_weight(sigma, se))
    if sigma_preposterior == 0:
        evsi = 0.0
        prob_changes = 0.0
    else:
        cf = closed_form_decision_value(inputs.k, mu, sigma_preposterior, threshold)
        evsi = cf.value
        prob_changes = cf.cdf_z if decision == Decision.ACT else 1.0 - cf.cdf_z

    logger.info(
        f"EVSI (closed form): ${evsi:,.2f} with n={sample_sizes.n_total}, "
        f"SE={se:.4f}, sd_preposterior={sigma_preposterior:.4f}"
    )
    return EVSIResult(
        evsi_dollars=evsi,
        default_decision=decision,
        probability_clears_threshold=summary.probability_clears_threshold,
        probability_decision_changes=prob_changes,
        method=CalculationMethod.CLOSED_FORM,
        warnings=tuple(warnings),
    )


def calculate_evsi_monte_carlo(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    sample_sizes: SampleSizes,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> EVSIResult:
    """
    Monte Carlo EVSI for any prior.

    EVSI = mean over valid draws of
        [K(L - T) if posterior decision is act else 0]
      - [K(L - T) if default decision is act else 0]
    clamped at 0.

    Args:
        inputs: K, threshold and baseline conversion rate
        prior: Prior over the true lift
        sample_sizes: Per-arm counts of the experiment
        config: Sample count, attempt cap, grid size and seed
        rng: Injected generator (overrides config.random_seed)

    Returns:
        EVSIResult (method=monte_carlo) with sample accounting and advisories
    """
    cr0 = inputs.baseline_conversion_rate
    threshold = inputs.threshold_lift
    se = se_of_relative_lift(cr0, sample_sizes.n_control, sample_sizes.n_variant)
    warnings = rare_event_warnings(cr0, sample_sizes.n_control, sample_sizes.n_variant)
    warnings.extend(_heavy_tail_warnings(prior))

    draws = simulate_posterior_decisions(prior, inputs, se, config=config, rng=rng)
    warnings.extend(sampling_warnings(draws))
    prob_clears = draws.prior_summary.probability_clears_threshold

    if draws.samples_used == 0:
        return EVSIResult(
            evsi_dollars=0.0,
            default_decision=draws.default_decision,
            probability_clears_threshold=prob_clears,
            probability_decision_changes=0.0,
            method=CalculationMethod.MONTE_CARLO,
            samples_used=0,
            samples_rejected=draws.samples_rejected,
            warnings=tuple(warnings),
        )

    values = inputs.k * (draws.true_lifts - threshold)
    value_with_test = np.where(draws.acts, values, 0.0)
    if draws.default_decision == Decision.ACT:
        value_without_test = values
    else:
        value_without_test = np.zeros_like(values)
    evsi = max(0.0, float(np.mean(value_with_test - value_without_test)))

    logger.info(
        f"EVSI (Monte Carlo): ${evsi:,.2f} over {draws.samples_used} draws, "
        f"P(decision changes)={draws.probability_decision_changes:.3f}"
    )
    return EVSIResult(
        evsi_dollars=evsi,
        default_decision=draws.default_decision,
        probability_clears_threshold=prob_clears,
        probability_decision_changes=draws.probability_decision_changes,
        method=CalculationMethod.MONTE_CARLO,
        samples_used=draws.samples_used,
        samples_rejected=draws.samples_rejected,
        warnings=tuple(warnings),
    )


def calculate_evsi(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    sample_sizes: SampleSizes,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> EVSIResult:
    """Normal priors take the closed-form path; everything else is simulated."""
    if isinstance(prior, NormalPrior):
        return calculate_evsi_normal_fast_path(inputs, prior, sample_sizes, config=config, rng=rng)
    return calculate_evsi_monte_carlo(inputs, prior, sample_sizes, config=config, rng=rng)
