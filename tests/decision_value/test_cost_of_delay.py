"""Tests for Cost of Delay."""
import pytest
from src.decision_value.cost_of_delay import calculate_cost_of_delay
from src.decision_value.distributions import NormalPrior, UniformPrior
from src.decision_value.schema import DecisionInputs, ExperimentDesign


@pytest.fixture
def design():
    return ExperimentDesign(
        daily_traffic=1000, test_duration_days=14, variant_fraction=0.5, decision_latency_days=3
    )


def test_cod_zero_when_default_is_defer(design):
    inputs = DecisionInputs(k=365_000, threshold_lift=0.05, baseline_conversion_rate=0.05)
    result = calculate_cost_of_delay(inputs, NormalPrior(location=0.0, scale=0.05), design)
    assert result.cod_dollars == 0.0
    assert not result.applies


def test_cod_zero_at_exact_threshold(design):
    inputs = DecisionInputs(k=365_000, threshold_lift=0.05, baseline_conversion_rate=0.05)
    result = calculate_cost_of_delay(inputs, NormalPrior(location=0.05, scale=0.05), design)
    assert result.cod_dollars == 0.0


def test_cod_known_value(design):
    """$100/day: half the traffic waits 14 days (700) plus 3 days latency (300)."""
    inputs = DecisionInputs(k=365_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    result = calculate_cost_of_delay(inputs, NormalPrior(location=0.1, scale=0.05), design)
    assert result.applies
    assert result.daily_opportunity_cost == pytest.approx(100.0)
    assert result.cost_during_test == pytest.approx(700.0)
    assert result.cost_during_latency == pytest.approx(300.0)
    assert result.cod_dollars == pytest.approx(1000.0)


def test_cod_uses_prior_mean(design):
    inputs = DecisionInputs(k=365_000, threshold_lift=0.0, baseline_conversion_rate=0.05)
    result = calculate_cost_of_delay(inputs, UniformPrior(low=0.0, high=0.2), design)
    assert result.daily_opportunity_cost == pytest.approx(100.0)


def test_cod_uses_feasible_prior_mean(design):
    """Untruncated mean -0.6 sits below T = -0.5; over [-1, 19] the mean is ~ -0.038."""
    inputs = DecisionInputs(k=365_000, threshold_lift=-0.5, baseline_conversion_rate=0.05)
    result = calculate_cost_of_delay(inputs, NormalPrior(location=-0.6, scale=1.0), design)
    assert result.applies
    assert result.daily_opportunity_cost == pytest.approx(461.9, rel=0.002)
