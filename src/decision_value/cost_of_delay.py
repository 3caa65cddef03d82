"""
Cost of Delay.

Heuristic value foregone by testing instead of shipping now. Applies only
when the default decision is to act (expected annual value is positive);
otherwise nothing is lost by waiting. The prior mean is taken over the
feasible lift range, as everywhere else.

    daily = K * (E[L] - T) / 365
    CoD   = (1 - variant_fraction) * daily * test_duration_days
          + daily * decision_latency_days

Kept independent of the Net-Value simulation; the two can disagree.
"""

import logging

from .config import DAYS_PER_YEAR
from .distributions import PriorDistribution
from .schema import CostOfDelayResult, DecisionInputs, ExperimentDesign
from .stats.truncation import summarize_feasible_prior

logger = logging.getLogger(__name__)


def calculate_cost_of_delay(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    design: ExperimentDesign,
) -> CostOfDelayResult:
    """Cost of delaying the rollout by the test and the decision latency."""
    summary = summarize_feasible_prior(prior, inputs.threshold_lift, inputs.baseline_conversion_rate)
    annual_value = inputs.k * (summary.mean - inputs.threshold_lift)
    if annual_value <= 0:
        return CostOfDelayResult(cod_dollars=0.0, daily_opportunity_cost=0.0, applies=False)

    daily = annual_value / DAYS_PER_YEAR
    during_test = (1.0 - design.variant_fraction) * daily * design.test_duration_days
    during_latency = daily * design.decision_latency_days
    cod = during_test + during_latency

    logger.info(f"Cost of delay: ${cod:,.2f} (${daily:,.2f}/day)")
    return CostOfDelayResult(
        cod_dollars=cod,
        daily_opportunity_cost=daily,
        applies=True,
        cost_during_test=during_test,
        cost_during_latency=during_latency,
    )
