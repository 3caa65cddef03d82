"""
Shared decision math for EVPI, EVSI and Net Value.

Feasibility bounds, the standard error of a relative-lift estimate, the
default decision rule, and the untruncated closed-form expected-opportunity-loss
formula the EVSI fast path evaluates.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from scipy import stats

from ..config import (
    NEAR_ZERO_SIGMA,
    ONE_SIDED_TAIL,
    RARE_EVENTS_MIN_CONVERSIONS,
    TRUNCATION_MASS,
)
from ..errors import InvalidInputError
from ..schema import CalculationWarning, Decision, EdgeCaseFlags


@dataclass(frozen=True)
class ClosedFormValue:
    """Closed-form decision value and the z-score terms behind it."""
    value: float
    z: float
    phi_z: float
    cdf_z: float


def derive_k(
    annual_visitors: float,
    baseline_conversion_rate: float,
    value_per_conversion: float,
) -> float:
    """
    Annual dollars per unit of relative lift.

    K = N_year * CR0 * V
    """
    return annual_visitors * baseline_conversion_rate * value_per_conversion


def normalize_threshold_to_lift(threshold_value: float, unit: str, k: float) -> float:
    """
    Convert a threshold entered in dollars or in percent lift to lift units.

    Args:
        threshold_value: Value as entered (dollars, or percent such as 5 for 5%)
        unit: "dollars" or "lift"
        k: Annual dollars per unit lift (used for dollar thresholds)

    Returns:
        Threshold as decimal lift (0.05 for 5%)
    """
    if unit == "dollars":
        if k <= 0:
            raise InvalidInputError("k must be positive to convert a dollar threshold.")
        return threshold_value / k
    if unit == "lift":
        return threshold_value / 100.0
    raise InvalidInputError(f"Unknown threshold unit: {unit!r}")


def default_decision(prior_mean: float, threshold_lift: float) -> Decision:
    """Act when the prior mean meets the threshold; ties act."""
    return Decision.ACT if prior_mean >= threshold_lift else Decision.DEFER


def feasibility_bounds(baseline_conversion_rate: float) -> Tuple[float, float]:
    """
    Lift values that keep CR1 = CR0 * (1 + L) inside [0, 1].

    Returns:
        (L_min, L_max) = (-1, 1/CR0 - 1)
    """
    return -1.0, 1.0 / baseline_conversion_rate - 1.0


def se_of_relative_lift(baseline_conversion_rate: float, n_control: int, n_variant: int) -> float:
    """
    Standard error of the relative-lift estimate (delta method).

    SE^2 = (1 - CR0) / CR0 * (1/n_control + 1/n_variant)
    """
    if n_control <= 0 or n_variant <= 0:
        raise InvalidInputError("Both experiment arms need at least one sample.")
    cr0 = baseline_conversion_rate
    return math.sqrt((1.0 - cr0) / cr0 * (1.0 / n_control + 1.0 / n_variant))


def closed_form_decision_value(
    k: float,
    mu: float,
    sigma: float,
    threshold_lift: float,
) -> ClosedFormValue:
    """
    Expected opportunity loss of the default decision under N(mu, sigma^2).

    With z = (T - mu) / sigma:
        default act:   K * [ (T - mu) * Phi(z) + sigma * phi(z) ]
        default defer: K * [ (mu - T) * (1 - Phi(z)) + sigma * phi(z) ]

    The EVSI fast path evaluates this with the pre-posterior sigma; EVPI
    uses the truncated form in `truncation.py`. sigma must be > 0.
    """
    z = (threshold_lift - mu) / sigma
    phi_z = float(stats.norm.pdf(z))
    cdf_z = float(stats.norm.cdf(z))
    if mu >= threshold_lift:
        value = k * ((threshold_lift - mu) * cdf_z + sigma * phi_z)
    else:
        value = k * ((mu - threshold_lift) * (1.0 - cdf_z) + sigma * phi_z)
    # Non-negative mathematically; clamp float error.
    return ClosedFormValue(value=max(0.0, value), z=z, phi_z=phi_z, cdf_z=cdf_z)


def detect_edge_cases(sigma: float, cdf_z: float, feasible_mass: float) -> EdgeCaseFlags:
    """Flags for near-certain priors, one-sided priors and mass outside the feasible range."""
    return EdgeCaseFlags(
        near_zero_sigma=sigma < NEAR_ZERO_SIGMA,
        prior_one_sided=cdf_z > 1.0 - ONE_SIDED_TAIL or cdf_z < ONE_SIDED_TAIL,
        truncation_applied=feasible_mass < 1.0 - TRUNCATION_MASS,
    )


def rare_event_warnings(baseline_conversion_rate: float, n_control: int, n_variant: int) -> List[CalculationWarning]:
    """Advisory when either arm expects fewer than 20 conversions."""
    min_expected = min(n_control, n_variant) * baseline_conversion_rate
    if min_expected < RARE_EVENTS_MIN_CONVERSIONS:
        return [CalculationWarning(
            code="rare_events",
            message=(
                f"Expected conversions per group are low (<{RARE_EVENTS_MIN_CONVERSIONS}). "
                "The normal approximation for lift may be less accurate. "
                "Consider increasing test duration or traffic."
            ),
        )]
    return []
