"""Decision-value statistics module."""

from .decision_math import (
    ClosedFormValue,
    closed_form_decision_value,
    default_decision,
    derive_k,
    detect_edge_cases,
    feasibility_bounds,
    normalize_threshold_to_lift,
    rare_event_warnings,
    se_of_relative_lift,
)
from .posterior import (
    grid_posterior_mean,
    posterior_decision,
    posterior_mean,
    shrinkage_weight,
    truncated_normal_mean,
)
from .power import derive_sample_sizes
from .truncation import (
    FeasiblePrior,
    feasible_mass,
    summarize_feasible_prior,
    truncated_normal_decision_value,
)

__all__ = [
    "ClosedFormValue",
    "closed_form_decision_value",
    "default_decision",
    "derive_k",
    "detect_edge_cases",
    "feasibility_bounds",
    "normalize_threshold_to_lift",
    "rare_event_warnings",
    "se_of_relative_lift",
    "grid_posterior_mean",
    "posterior_decision",
    "posterior_mean",
    "shrinkage_weight",
    "truncated_normal_mean",
    "derive_sample_sizes",
    "FeasiblePrior",
    "feasible_mass",
    "summarize_feasible_prior",
    "truncated_normal_decision_value",
]
