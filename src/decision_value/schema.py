"""
Data models for the experiment decision-value engine.

Dataclass schemas for decision inputs, experiment design, sample sizes,
and the EVPI / EVSI / Cost-of-Delay / Net-Value results. Inputs validate
themselves on construction; results are frozen and never mutated.
"""

import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidInputError


class Decision(str, Enum):
    """What to do about the change under consideration."""
    ACT = "act"
    DEFER = "defer"


class CalculationMethod(str, Enum):
    """Which computation path produced a result."""
    CLOSED_FORM = "closed_form"
    MONTE_CARLO = "monte_carlo"


class Recommendation(str, Enum):
    """Headline recommendation of a decision analysis."""
    RUN_TEST = "run_test"
    ACT_NOW = "act_now"
    DEFER = "defer"


def _is_finite_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _is_whole_number(value) -> bool:
    return _is_finite_number(value) and int(value) == value


@dataclass(frozen=True)
class DecisionInputs:
    """Business inputs shared by every calculator."""
    k: float  # annual dollars per unit of relative lift
    threshold_lift: float  # minimum lift at which acting is worthwhile
    baseline_conversion_rate: float  # CR0, decimal in (0, 1)

    def __post_init__(self):
        if not _is_finite_number(self.k) or self.k <= 0:
            raise InvalidInputError("k (dollars per unit lift) must be a positive number.")
        if not _is_finite_number(self.threshold_lift):
            raise InvalidInputError("threshold_lift must be a finite number.")
        if not _is_finite_number(self.baseline_conversion_rate) or not 0 < self.baseline_conversion_rate < 1:
            raise InvalidInputError("baseline_conversion_rate must be in (0, 1).")

    @property
    def threshold_dollars(self) -> float:
        return self.k * self.threshold_lift


@dataclass(frozen=True)
class ExperimentDesign:
    """Traffic and timing of the experiment being valued."""
    daily_traffic: float
    test_duration_days: int
    eligibility_fraction: float = 1.0
    variant_fraction: float = 0.5
    conversion_latency_days: float = 0.0
    decision_latency_days: float = 0.0

    def __post_init__(self):
        if not _is_finite_number(self.daily_traffic) or self.daily_traffic <= 0:
            raise InvalidInputError("daily_traffic must be positive.")
        if not _is_whole_number(self.test_duration_days) or self.test_duration_days < 1:
            raise InvalidInputError("test_duration_days must be a positive integer.")
        if not _is_finite_number(self.eligibility_fraction) or not 0 < self.eligibility_fraction <= 1:
            raise InvalidInputError("eligibility_fraction must be in (0, 1].")
        if not _is_finite_number(self.variant_fraction) or not 0 < self.variant_fraction < 1:
            raise InvalidInputError("variant_fraction must be in (0, 1).")
        if not _is_finite_number(self.conversion_latency_days) or self.conversion_latency_days < 0:
            raise InvalidInputError("conversion_latency_days must be >= 0.")
        if not _is_finite_number(self.decision_latency_days) or self.decision_latency_days < 0:
            raise InvalidInputError("decision_latency_days must be >= 0.")


@dataclass(frozen=True)
class SampleSizes:
    """Per-arm sample counts; the arms always sum to the total."""
    n_total: int
    n_control: int
    n_variant: int

    def __post_init__(self):
        for name in ("n_total", "n_control", "n_variant"):
            value = getattr(self, name)
            if not _is_whole_number(value) or value < 0:
                raise InvalidInputError(f"{name} must be a non-negative integer.")
        if self.n_control + self.n_variant != self.n_total:
            raise InvalidInputError("n_control + n_variant must equal n_total.")


@dataclass(frozen=True)
class CalculationWarning:
    """Non-blocking advisory attached to a result."""
    code: str  # rare_events, high_rejection, sampling_shortfall, heavy_tails, conversion_latency
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class EdgeCaseFlags:
    """Situations that deserve an explanatory note next to EVPI."""
    near_zero_sigma: bool = False
    prior_one_sided: bool = False
    truncation_applied: bool = False


@dataclass(frozen=True)
class EVPIResult:
    """Expected value of perfect information and supporting metrics."""
    evpi_dollars: float
    default_decision: Decision
    probability_clears_threshold: float
    chance_of_being_wrong: float
    k: float
    threshold_lift: float
    threshold_dollars: float
    z_score: float
    phi_z: float
    cdf_z: float
    edge_cases: EdgeCaseFlags = field(default_factory=EdgeCaseFlags)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "evpi_dollars": self.evpi_dollars,
            "default_decision": self.default_decision.value,
            "probability_clears_threshold": self.probability_clears_threshold,
            "chance_of_being_wrong": self.chance_of_being_wrong,
            "k": self.k,
            "threshold_lift": self.threshold_lift,
            "threshold_dollars": self.threshold_dollars,
            "z_score": self.z_score,
            "phi_z": self.phi_z,
            "cdf_z": self.cdf_z,
            "edge_cases": {
                "near_zero_sigma": self.edge_cases.near_zero_sigma,
                "prior_one_sided": self.edge_cases.prior_one_sided,
                "truncation_applied": self.edge_cases.truncation_applied,
            },
        }


@dataclass(frozen=True)
class EVSIResult:
    """Expected value of sample information for one experiment design."""
    evsi_dollars: float
    default_decision: Decision
    probability_clears_threshold: float
    probability_decision_changes: float
    method: CalculationMethod
    samples_used: int = 0
    samples_rejected: int = 0
    warnings: Tuple[CalculationWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "evsi_dollars": self.evsi_dollars,
            "default_decision": self.default_decision.value,
            "probability_clears_threshold": self.probability_clears_threshold,
            "probability_decision_changes": self.probability_decision_changes,
            "method": self.method.value,
            "samples_used": self.samples_used,
            "samples_rejected": self.samples_rejected,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class CostOfDelayResult:
    """Foregone value while testing and waiting for a decision."""
    cod_dollars: float
    daily_opportunity_cost: float
    applies: bool
    cost_during_test: float = 0.0
    cost_during_latency: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cod_dollars": self.cod_dollars,
            "daily_opportunity_cost": self.daily_opportunity_cost,
            "applies": self.applies,
            "cost_during_test": self.cost_during_test,
            "cost_during_latency": self.cost_during_latency,
        }


@dataclass(frozen=True)
class NetValueResult:
    """Timing-aware value of running the experiment."""
    net_value_dollars: float
    default_decision: Decision
    probability_clears_threshold: float
    probability_decision_changes: float
    samples_used: int
    samples_rejected: int
    avg_value_with_test: float = 0.0
    avg_value_without_test: float = 0.0
    avg_value_during_test: float = 0.0
    avg_value_during_latency: float = 0.0
    avg_value_after_decision: float = 0.0
    warnings: Tuple[CalculationWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "net_value_dollars": self.net_value_dollars,
            "default_decision": self.default_decision.value,
            "probability_clears_threshold": self.probability_clears_threshold,
            "probability_decision_changes": self.probability_decision_changes,
            "samples_used": self.samples_used,
            "samples_rejected": self.samples_rejected,
            "avg_value_with_test": self.avg_value_with_test,
            "avg_value_without_test": self.avg_value_without_test,
            "avg_value_during_test": self.avg_value_during_test,
            "avg_value_during_latency": self.avg_value_during_latency,
            "avg_value_after_decision": self.avg_value_after_decision,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class DecisionReport:
    """Complete decision analysis for one set of inputs."""
    inputs: DecisionInputs
    design: ExperimentDesign
    sample_sizes: SampleSizes
    prior_type: str
    evsi: EVSIResult
    cost_of_delay: CostOfDelayResult
    net_value: NetValueResult
    evpi: Optional[EVPIResult] = None
    recommendation: Recommendation = Recommendation.DEFER
    recommendation_reason: str = ""
    warnings: Tuple[CalculationWarning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "k": self.inputs.k,
            "threshold_lift": self.inputs.threshold_lift,
            "baseline_conversion_rate": self.inputs.baseline_conversion_rate,
            "prior_type": self.prior_type,
            "sample_sizes": {
                "n_total": self.sample_sizes.n_total,
                "n_control": self.sample_sizes.n_control,
                "n_variant": self.sample_sizes.n_variant,
            },
            "evpi": self.evpi.to_dict() if self.evpi else None,
            "evsi": self.evsi.to_dict(),
            "cost_of_delay": self.cost_of_delay.to_dict(),
            "net_value": self.net_value.to_dict(),
            "recommendation": self.recommendation.value,
            "recommendation_reason": self.recommendation_reason,
            "warnings": [w.to_dict() for w in self.warnings],
        }
