"""
Expected Value of Perfect Information.

EVPI = E[max(K(L - T), 0)] - max(K(E[L] - T), 0) for a Normal prior
truncated to the feasible lift range [-1, 1/CR0 - 1], evaluated in closed
form. The default decision and P(L >= T) come from the same truncated
prior; `edge_cases.truncation_applied` flags when truncation moves them.
The z-score terms describe the untruncated prior.
"""

import logging

from scipy import stats

from .config import MIN_FEASIBLE_MASS, NEAR_ZERO_SIGMA
from .distributions import NormalPrior
from .errors import InvalidInputError
from .schema import Decision, DecisionInputs, EdgeCaseFlags, EVPIResult
from .stats.decision_math import default_decision, detect_edge_cases, feasibility_bounds
from .stats.truncation import summarize_feasible_prior, truncated_normal_decision_value

logger = logging.getLogger(__name__)


def calculate_evpi(inputs: DecisionInputs, prior: NormalPrior) -> EVPIResult:
    """
    EVPI for a Normal prior.

    Args:
        inputs: K, threshold (lift units) and baseline conversion rate
        prior: Normal prior over the true lift

    Returns:
        EVPIResult with the dollar value and supporting metrics
    """
    if not isinstance(prior, NormalPrior):
        raise InvalidInputError("EVPI is available in closed form for Normal priors only.")

    mu = prior.location
    sigma = prior.scale
    threshold = inputs.threshold_lift
    summary = summarize_feasible_prior(prior, threshold, inputs.baseline_conversion_rate)
    decision = default_decision(summary.mean, threshold)
    prob_clears = summary.probability_clears_threshold
    chance_wrong = 1.0 - prob_clears if decision == Decision.ACT else prob_clears

    if prior.is_degenerate or summary.feasible_mass < MIN_FEASIBLE_MASS:
        # Point mass, or nothing feasible: no uncertainty left to resolve.
        return EVPIResult(
            evpi_dollars=0.0,
            default_decision=decision,
            probability_clears_threshold=prob_clears,
            chance_of_being_wrong=0.0,
            k=inputs.k,
            threshold_lift=threshold,
            threshold_dollars=inputs.threshold_dollars,
            z_score=0.0,
            phi_z=0.0,
            cdf_z=1.0 - prob_clears,
            edge_cases=EdgeCaseFlags(
                near_zero_sigma=sigma < NEAR_ZERO_SIGMA,
                prior_one_sided=True,
                truncation_applied=summary.truncation_material,
            ),
        )

    bounds = feasibility_bounds(inputs.baseline_conversion_rate)
    evpi = truncated_normal_decision_value(inputs.k, prior, threshold, bounds)
    z = (threshold - mu) / sigma
    cdf_z = float(stats.norm.cdf(z))
    edge_cases = detect_edge_cases(sigma, cdf_z, summary.feasible_mass)

    logger.info(
        f"EVPI: ${evpi:,.2f} (default={decision.value}, "
        f"P(L >= T)={prob_clears:.3f}, feasible mass={summary.feasible_mass:.4f})"
    )
    return EVPIResult(
        evpi_dollars=evpi,
        default_decision=decision,
        probability_clears_threshold=prob_clears,
        chance_of_being_wrong=chance_wrong,
        k=inputs.k,
        threshold_lift=threshold,
        threshold_dollars=inputs.threshold_dollars,
        z_score=z,
        phi_z=float(stats.norm.pdf(z)),
        cdf_z=cdf_z,
        edge_cases=edge_cases,
    )
