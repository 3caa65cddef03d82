#!/usr/bin/env python3
"""
Run a full decision-value demo: EVPI -> EVSI -> Cost of Delay -> Net Value.

Values a checkout redesign for a shop with 1M annual visitors, a 5% baseline
conversion rate and $50 per conversion, then sweeps the test duration.
"""

import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def main():
    from src.decision_value.config import SIMULATOR_SEED, SimulationConfig
    from src.decision_value.distributions import StudentTPrior, prior_from_interval
    from src.decision_value.schema import DecisionInputs, ExperimentDesign
    from src.decision_value.stats import derive_k, normalize_threshold_to_lift
    from src.decision_value.analyze import run_analysis, sweep_test_durations

    k = derive_k(annual_visitors=1_000_000, baseline_conversion_rate=0.05, value_per_conversion=50)
    threshold = normalize_threshold_to_lift(10_000, "dollars", k)
    inputs = DecisionInputs(k=k, threshold_lift=threshold, baseline_conversion_rate=0.05)
    design = ExperimentDesign(
        daily_traffic=2_700,
        test_duration_days=14,
        variant_fraction=0.5,
        decision_latency_days=3,
    )
    config = SimulationConfig(num_samples=5000, random_seed=SIMULATOR_SEED)

    print("1. Normal prior from a 90% interval of -5% .. +10% lift...")
    normal_prior = prior_from_interval(-5, 10)
    report = run_analysis(inputs, normal_prior, design, config=config)
    print(json.dumps(report.to_dict(), indent=2))

    print("2. Heavy-tailed Student-t prior (Monte Carlo EVSI)...")
    t_prior = StudentTPrior(location=normal_prior.location, scale=normal_prior.scale, df=3)
    report_t = run_analysis(inputs, t_prior, design, config=config)
    print(f"   EVSI ${report_t.evsi.evsi_dollars:,.0f}, net value ${report_t.net_value.net_value_dollars:,.0f}")
    print(f"   Recommendation: {report_t.recommendation.value}")

    print("3. Sweeping test duration...")
    table = sweep_test_durations(inputs, normal_prior, design, durations=[7, 14, 21, 28, 42], num_samples=2000)
    print(table.to_string(index=False))

    best = table.loc[table["net_value_dollars"].idxmax()]
    print(f"\n[OK] Demo complete. Best duration: {int(best['test_duration_days'])} days "
          f"(net value ${best['net_value_dollars']:,.0f})")


if __name__ == "__main__":
    main()
