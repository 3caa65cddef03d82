"""
Integrated Net-Value engine.

One timing-aware simulation that prices the test itself. Each valid draw
of the true lift L is valued over one year, split into three periods:

- during the test: only the variant share sees the change,
  variant_fraction * K(L - T) * D_test / 365
- during decision latency: nothing ships, 0
- after the decision: K(L - T) * remaining_fraction if the posterior
  decision is act, else 0

Without a test the default decision holds for the full year. Net value is
the average difference, clamped at 0. Draws and decisions come from the
same simulation as Monte Carlo EVSI.
"""

import logging
from typing import Optional

import numpy as np

from .config import DAYS_PER_YEAR, SimulationConfig
from .distributions import PriorDistribution
from .schema import (
    Decision,
    DecisionInputs,
    ExperimentDesign,
    NetValueResult,
    SampleSizes,
)
from .simulation import sampling_warnings, simulate_posterior_decisions
from .stats.decision_math import default_decision, rare_event_warnings, se_of_relative_lift
from .stats.power import derive_sample_sizes
from .stats.truncation import summarize_feasible_prior

logger = logging.getLogger(__name__)


def period_fractions(design: ExperimentDesign):
    """(test, latency, remaining) shares of the year."""
    test_fraction = design.test_duration_days / DAYS_PER_YEAR
    latency_fraction = design.decision_latency_days / DAYS_PER_YEAR
    remaining_fraction = max(0.0, 1.0 - test_fraction - latency_fraction)
    return test_fraction, latency_fraction, remaining_fraction


def calculate_net_value(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    design: ExperimentDesign,
    sample_sizes: Optional[SampleSizes] = None,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> NetValueResult:
    """
    Net value of running the experiment, net of its timing costs.

    Args:
        inputs: K, threshold and baseline conversion rate
        prior: Prior over the true lift
        design: Duration, split and decision latency of the experiment
        sample_sizes: Per-arm counts (derived from design if omitted)
        config: Sample count, attempt cap, grid size and seed
        rng: Injected generator (overrides config.random_seed)

    Returns:
        NetValueResult with the net value and per-period averages
    """
    threshold = inputs.threshold_lift
    cr0 = inputs.baseline_conversion_rate
    sample_sizes = sample_sizes or derive_sample_sizes(design)
    if sample_sizes.n_total == 0:
        # No traffic: the test cannot inform the decision.
        summary = summarize_feasible_prior(prior, threshold, cr0)
        return NetValueResult(
            net_value_dollars=0.0,
            default_decision=default_decision(summary.mean, threshold),
            probability_clears_threshold=summary.probability_clears_threshold,
            probability_decision_changes=0.0,
            samples_used=0,
            samples_rejected=0,
        )

    se = se_of_relative_lift(cr0, sample_sizes.n_control, sample_sizes.n_variant)
    warnings = rare_event_warnings(cr0, sample_sizes.n_control, sample_sizes.n_variant)
    draws = simulate_posterior_decisions(prior, inputs, se, config=config, rng=rng)
    warnings.extend(sampling_warnings(draws))
    prob_clears = draws.prior_summary.probability_clears_threshold

    if draws.samples_used == 0:
        return NetValueResult(
            net_value_dollars=0.0,
            default_decision=draws.default_decision,
            probability_clears_threshold=prob_clears,
            probability_decision_changes=0.0,
            samples_used=0,
            samples_rejected=draws.samples_rejected,
            warnings=tuple(warnings),
        )

    test_fraction, _, remaining_fraction = period_fractions(design)
    annual_values = inputs.k * (draws.true_lifts - threshold)

    during_test = design.variant_fraction * annual_values * test_fraction
    during_latency = np.zeros_like(annual_values)
    after_decision = np.where(draws.acts, annual_values * remaining_fraction, 0.0)
    with_test = during_test + during_latency + after_decision
    if draws.default_decision == Decision.ACT:
        without_test = annual_values
    else:
        without_test = np.zeros_like(annual_values)

    avg_with = float(np.mean(with_test))
    avg_without = float(np.mean(without_test))
    net_value = max(0.0, avg_with - avg_without)

    logger.info(
        f"Net value: ${net_value:,.2f} (with test ${avg_with:,.2f}, "
        f"without ${avg_without:,.2f}, {design.test_duration_days}d test)"
    )
    return NetValueResult(
        net_value_dollars=net_value,
        default_decision=draws.default_decision,
        probability_clears_threshold=prob_clears,
        probability_decision_changes=draws.probability_decision_changes,
        samples_used=draws.samples_used,
        samples_rejected=draws.samples_rejected,
        avg_value_with_test=avg_with,
        avg_value_without_test=avg_without,
        avg_value_during_test=float(np.mean(during_test)),
        avg_value_during_latency=float(np.mean(during_latency)),
        avg_value_after_decision=float(np.mean(after_decision)),
        warnings=tuple(warnings),
    )
