"""End-to-end: inputs -> decision report and duration sweep."""
import json

import pandas as pd
import pytest
from src.decision_value.analyze import run_analysis, sweep_test_durations
from src.decision_value.config import SimulationConfig
from src.decision_value.distributions import NormalPrior, StudentTPrior
from src.decision_value.schema import DecisionInputs, ExperimentDesign, Recommendation


@pytest.fixture
def inputs():
    return DecisionInputs(k=5_000_000, threshold_lift=0.0, baseline_conversion_rate=0.05)


@pytest.fixture
def design():
    return ExperimentDesign(daily_traffic=10_000, test_duration_days=14, decision_latency_days=3)


@pytest.fixture
def config():
    return SimulationConfig(num_samples=1000, random_seed=42)


def test_uncertain_prior_recommends_test(inputs, design, config):
    report = run_analysis(inputs, NormalPrior(location=0.0, scale=0.05), design, config=config)
    assert report.recommendation == Recommendation.RUN_TEST
    assert report.evpi is not None
    assert report.evsi.evsi_dollars <= report.evpi.evpi_dollars
    assert report.sample_sizes.n_total == 140_000
    assert report.prior_type == "normal"


def test_certain_win_recommends_act_now(inputs, design, config):
    report = run_analysis(inputs, NormalPrior(location=0.1, scale=0.001), design, config=config)
    assert report.recommendation == Recommendation.ACT_NOW
    assert report.cost_of_delay.applies


def test_certain_loss_recommends_defer(inputs, design, config):
    report = run_analysis(inputs, NormalPrior(location=-0.1, scale=0.001), design, config=config)
    assert report.recommendation == Recommendation.DEFER
    assert report.cost_of_delay.cod_dollars == 0.0


def test_non_normal_prior_skips_evpi(inputs, design, config):
    report = run_analysis(inputs, StudentTPrior(location=0.0, scale=0.05, df=5), design, config=config)
    assert report.evpi is None
    assert report.evsi.method.value == "monte_carlo"


def test_conversion_latency_warning(inputs, config):
    design = ExperimentDesign(daily_traffic=10_000, test_duration_days=7, conversion_latency_days=10)
    report = run_analysis(inputs, NormalPrior(location=0.0, scale=0.05), design, config=config)
    assert "conversion_latency" in {w.code for w in report.warnings}


def test_report_is_reproducible_and_serializable(inputs, design, config):
    prior = StudentTPrior(location=0.01, scale=0.04, df=4)
    first = run_analysis(inputs, prior, design, config=config).to_dict()
    second = run_analysis(inputs, prior, design, config=config).to_dict()
    assert first == second
    assert json.loads(json.dumps(first))["recommendation"] in {"run_test", "act_now", "defer"}


def test_sweep_table(inputs, design):
    table = sweep_test_durations(
        inputs, NormalPrior(location=0.0, scale=0.05), design, durations=[21, 7, 14, 7], num_samples=300
    )
    assert isinstance(table, pd.DataFrame)
    assert list(table["test_duration_days"]) == [7, 14, 21]
    assert (table["n_control"] + table["n_variant"] == table["n_total"]).all()
    assert (table["net_value_dollars"] >= 0).all()
    # Longer tests measure more precisely
    assert table["evsi_dollars"].is_monotonic_increasing


def test_sweep_is_reproducible(inputs, design):
    prior = NormalPrior(location=0.0, scale=0.05)
    first = sweep_test_durations(inputs, prior, design, durations=[7, 14], num_samples=200, random_seed=3)
    second = sweep_test_durations(inputs, prior, design, durations=[7, 14], num_samples=200, random_seed=3)
    pd.testing.assert_frame_equal(first, second)
