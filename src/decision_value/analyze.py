"""
Decision analysis entrypoint.

Input: decision inputs (K, threshold, CR0), a prior over the lift and an
experiment design.
Output: DecisionReport with EVPI, EVSI, Cost of Delay, Net Value and a
run-test / act-now / defer recommendation. `sweep_test_durations` tabulates
the same numbers across candidate test lengths.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .config import DEFAULT_NUM_SAMPLES, SIMULATOR_SEED, SimulationConfig
from .cost_of_delay import calculate_cost_of_delay
from .distributions import NormalPrior, PriorDistribution
from .evpi import calculate_evpi
from .evsi import calculate_evsi
from .net_value import calculate_net_value
from .schema import (
    CalculationWarning,
    Decision,
    DecisionInputs,
    DecisionReport,
    ExperimentDesign,
    Recommendation,
)
from .simulation import make_rng
from .stats.power import derive_sample_sizes

logger = logging.getLogger(__name__)


def _merge_warnings(*groups) -> List[CalculationWarning]:
    seen = set()
    merged = []
    for group in groups:
        for w in group:
            if w.code not in seen:
                seen.add(w.code)
                merged.append(w)
    return merged


def run_analysis(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    design: ExperimentDesign,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> DecisionReport:
    """
    Run the full decision analysis.

    Args:
        inputs: K, threshold (lift units) and baseline conversion rate
        prior: Prior over the true lift
        design: Experiment traffic, duration, split and latencies
        config: Monte Carlo settings; its random_seed seeds the whole analysis
        rng: Injected generator (overrides config.random_seed)

    Returns:
        DecisionReport
    """
    config = config or SimulationConfig()
    rng = make_rng(rng, config.random_seed)
    sample_sizes = derive_sample_sizes(design)

    evpi = calculate_evpi(inputs, prior) if isinstance(prior, NormalPrior) else None
    evsi = calculate_evsi(inputs, prior, sample_sizes, config=config, rng=rng)
    cost_of_delay = calculate_cost_of_delay(inputs, prior, design)
    net_value = calculate_net_value(
        inputs, prior, design, sample_sizes=sample_sizes, config=config, rng=rng
    )

    latency_warnings = []
    if design.conversion_latency_days >= design.test_duration_days:
        latency_warnings.append(CalculationWarning(
            code="conversion_latency",
            message=(
                f"Conversion latency ({design.conversion_latency_days:g} days) is not shorter than "
                f"the test ({design.test_duration_days} days). Few conversions will be observed "
                "before the test ends."
            ),
        ))

    # Recommendation logic
    if net_value.net_value_dollars > 0:
        recommendation = Recommendation.RUN_TEST
        reason = (
            f"Testing is worth ${net_value.net_value_dollars:,.0f} after timing costs; "
            f"it changes the decision {net_value.probability_decision_changes:.0%} of the time."
        )
    elif evsi.default_decision == Decision.ACT:
        recommendation = Recommendation.ACT_NOW
        reason = "The test does not pay for its delay. Ship on the current evidence."
    else:
        recommendation = Recommendation.DEFER
        reason = "The test does not pay for its delay and the change is not expected to clear the threshold."

    report = DecisionReport(
        inputs=inputs,
        design=design,
        sample_sizes=sample_sizes,
        prior_type=prior.kind,
        evsi=evsi,
        cost_of_delay=cost_of_delay,
        net_value=net_value,
        evpi=evpi,
        recommendation=recommendation,
        recommendation_reason=reason,
        warnings=tuple(_merge_warnings(evsi.warnings, net_value.warnings, latency_warnings)),
    )
    logger.info(f"Analysis complete: {recommendation.value} ({reason})")
    return report


def _evaluate_duration(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    design: ExperimentDesign,
    config: SimulationConfig,
    seed_sequence: np.random.SeedSequence,
) -> Dict:
    rng = np.random.default_rng(seed_sequence)
    sample_sizes = derive_sample_sizes(design)
    evsi = calculate_evsi(inputs, prior, sample_sizes, config=config, rng=rng)
    cod = calculate_cost_of_delay(inputs, prior, design)
    net = calculate_net_value(inputs, prior, design, sample_sizes=sample_sizes, config=config, rng=rng)
    return {
        "test_duration_days": design.test_duration_days,
        "n_total": sample_sizes.n_total,
        "n_control": sample_sizes.n_control,
        "n_variant": sample_sizes.n_variant,
        "evsi_dollars": evsi.evsi_dollars,
        "cod_dollars": cod.cod_dollars,
        "net_value_dollars": net.net_value_dollars,
        "probability_decision_changes": net.probability_decision_changes,
    }


def sweep_test_durations(
    inputs: DecisionInputs,
    prior: PriorDistribution,
    design: ExperimentDesign,
    durations: Iterable[int],
    num_samples: int = DEFAULT_NUM_SAMPLES,
    random_seed: int = SIMULATOR_SEED,
    n_jobs: int = 1,
) -> pd.DataFrame:
    """
    Value of the experiment for each candidate test duration.

    Each row gets its own generator spawned from `random_seed`, so the table
    is identical for any `n_jobs`.

    Returns:
        DataFrame with one row per duration, sorted by duration
    """
    durations = sorted(set(int(d) for d in durations))
    config = SimulationConfig(num_samples=num_samples)
    seeds = np.random.SeedSequence(random_seed).spawn(len(durations))
    rows = Parallel(n_jobs=n_jobs)(
        delayed(_evaluate_duration)(
            inputs, prior, replace(design, test_duration_days=d), config, seed
        )
        for d, seed in zip(durations, seeds)
    )
    logger.info(f"Swept {len(rows)} test durations")
    return pd.DataFrame(rows)
