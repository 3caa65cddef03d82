"""Tests for EVPI."""
import math

import pytest
from src.decision_value.distributions import NormalPrior, UniformPrior
from src.decision_value.errors import InvalidInputError
from src.decision_value.evpi import calculate_evpi
from src.decision_value.schema import Decision, DecisionInputs


def test_evpi_known_value():
    """K=50000, N(0, 0.05), T=0 -> K * sigma * phi(0) ~ 997.35."""
    inputs = DecisionInputs(k=50_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    result = calculate_evpi(inputs, NormalPrior(location=0.0, scale=0.05))
    assert result.evpi_dollars == pytest.approx(997.35, abs=0.01)
    assert result.probability_clears_threshold == pytest.approx(0.5)
    assert result.default_decision == Decision.ACT
    assert result.chance_of_being_wrong == pytest.approx(0.5)
    assert result.z_score == 0.0


def test_evpi_defer_branch():
    """Prior mean below threshold -> default defer, symmetric formula."""
    inputs = DecisionInputs(k=100_000, threshold_lift=0.05, baseline_conversion_rate=0.05)
    prior = NormalPrior(location=0.0, scale=0.05)
    result = calculate_evpi(inputs, prior)
    assert result.default_decision == Decision.DEFER
    # z = 1: K * (-0.05 * (1 - Phi(1)) + 0.05 * phi(1))
    expected = 100_000 * (-0.05 * 0.15865525 + 0.05 * 0.24197072)
    assert result.evpi_dollars == pytest.approx(expected, rel=1e-6)
    assert result.chance_of_being_wrong == pytest.approx(result.probability_clears_threshold)


def test_evpi_is_non_negative_far_from_threshold():
    inputs = DecisionInputs(k=1e6, threshold_lift=0.0, baseline_conversion_rate=0.05)
    result = calculate_evpi(inputs, NormalPrior(location=0.5, scale=0.01))
    assert result.evpi_dollars >= 0
    assert result.edge_cases.prior_one_sided


def test_evpi_degenerate_prior():
    """Point-mass prior: EVPI 0, probability exactly 0 or 1, no NaN."""
    inputs = DecisionInputs(k=50_000, threshold_lift=0.01, baseline_conversion_rate=0.05)
    above = calculate_evpi(inputs, NormalPrior(location=0.02, scale=0.0))
    below = calculate_evpi(inputs, NormalPrior(location=0.0, scale=0.0))
    assert above.evpi_dollars == 0.0
    assert above.probability_clears_threshold == 1.0
    assert below.probability_clears_threshold == 0.0
    assert not math.isnan(above.z_score)
    assert above.edge_cases.near_zero_sigma


def test_evpi_threshold_dollars():
    inputs = DecisionInputs(k=200_000, threshold_lift=0.02, baseline_conversion_rate=0.05)
    result = calculate_evpi(inputs, NormalPrior(location=0.0, scale=0.05))
    assert result.threshold_dollars == pytest.approx(4000)


def test_evpi_flags_truncation():
    """Prior with real mass below -100% lift."""
    inputs = DecisionInputs(k=50_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    result = calculate_evpi(inputs, NormalPrior(location=-0.8, scale=0.5))
    assert result.edge_cases.truncation_applied


def test_evpi_rejects_non_normal_prior():
    inputs = DecisionInputs(k=50_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    with pytest.raises(InvalidInputError):
        calculate_evpi(inputs, UniformPrior(low=-0.1, high=0.1))


def test_evpi_to_dict():
    inputs = DecisionInputs(k=50_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    d = calculate_evpi(inputs, NormalPrior(location=0.0, scale=0.05)).to_dict()
    assert d["default_decision"] == "act"
    assert set(d["edge_cases"]) == {"near_zero_sigma", "prior_one_sided", "truncation_applied"}


def test_evpi_uses_truncated_prior():
    """N(-0.6, 1) on [-1, 19]: truncated mean ~ -0.038 clears T = -0.5, untruncated -0.6 does not."""
    inputs = DecisionInputs(k=1_000_000, threshold_lift=-0.5, baseline_conversion_rate=0.05)
    result = calculate_evpi(inputs, NormalPrior(location=-0.6, scale=1.0))
    assert result.default_decision == Decision.ACT
    assert result.probability_clears_threshold == pytest.approx(0.702, abs=0.01)
    assert result.chance_of_being_wrong == pytest.approx(0.298, abs=0.01)
    # K * E[(T - L)+] under the truncated prior
    assert result.evpi_dollars == pytest.approx(73_550, rel=0.005)
