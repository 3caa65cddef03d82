"""Tests for input validation and configuration."""
import math

import numpy as np
import pytest
from src.decision_value.config import SimulationConfig
from src.decision_value.errors import InvalidInputError
from src.decision_value.schema import DecisionInputs, ExperimentDesign, SampleSizes


@pytest.mark.parametrize("kwargs", [
    {"k": 0, "threshold_lift": 0.0, "baseline_conversion_rate": 0.05},
    {"k": 1000, "threshold_lift": math.inf, "baseline_conversion_rate": 0.05},
    {"k": 1000, "threshold_lift": 0.0, "baseline_conversion_rate": 1.0},
    {"k": 1000, "threshold_lift": 0.0, "baseline_conversion_rate": 0.0},
])
def test_decision_inputs_invalid(kwargs):
    with pytest.raises(InvalidInputError):
        DecisionInputs(**kwargs)


@pytest.mark.parametrize("kwargs", [
    {"daily_traffic": 0, "test_duration_days": 14},
    {"daily_traffic": 100, "test_duration_days": 14.5},
    {"daily_traffic": 100, "test_duration_days": 0},
    {"daily_traffic": 100, "test_duration_days": 14, "eligibility_fraction": 0},
    {"daily_traffic": 100, "test_duration_days": 14, "variant_fraction": 1.0},
    {"daily_traffic": 100, "test_duration_days": 14, "decision_latency_days": -1},
])
def test_experiment_design_invalid(kwargs):
    with pytest.raises(InvalidInputError):
        ExperimentDesign(**kwargs)


def test_experiment_design_accepts_numpy_numbers():
    design = ExperimentDesign(daily_traffic=np.float64(500.0), test_duration_days=np.int64(7))
    assert design.test_duration_days == 7


def test_sample_sizes_must_sum():
    with pytest.raises(InvalidInputError):
        SampleSizes(n_total=10, n_control=5, n_variant=4)


def test_simulation_config():
    assert SimulationConfig(num_samples=100).max_attempts == 1000
    with pytest.raises(InvalidInputError):
        SimulationConfig(num_samples=0)


def test_error_is_value_error():
    assert issubclass(InvalidInputError, ValueError)
