"""
Sample-size derivation for the experiment being valued.

Turns traffic, duration, eligibility and split into per-arm counts.
"""

import math

from ..schema import ExperimentDesign, SampleSizes


def derive_sample_sizes(design: ExperimentDesign) -> SampleSizes:
    """
    Per-arm sample sizes implied by an experiment design.

    n_total   = floor(daily_traffic * test_duration_days * eligibility_fraction)
    n_variant = floor(n_total * variant_fraction)
    n_control = n_total - n_variant

    The control arm is the remainder, so the arms always sum to n_total
    (flooring both arms independently can lose a unit).

    Args:
        design: Validated experiment design

    Returns:
        SampleSizes with n_total, n_control, n_variant
    """
    n_total = int(math.floor(
        design.daily_traffic * design.test_duration_days * design.eligibility_fraction
    ))
    n_variant = int(math.floor(n_total * design.variant_fraction))
    n_control = n_total - n_variant
    return SampleSizes(n_total=n_total, n_control=n_control, n_variant=n_variant)
