"""
Pre-posterior Monte Carlo simulation.

Shared by the EVSI Monte Carlo path and the Net-Value engine so both see
the same feasibility-checked draws and the same posterior decision:

1. draw the true lift L from the prior
2. reject L outside [-1, 1/CR0 - 1] (attempts capped at a multiple of N)
3. simulate the test estimate L_hat = L + SE * z
4. decide with the posterior mean E[L | L_hat] against the threshold
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .config import HIGH_REJECTION_RATE, SimulationConfig
from .distributions import PriorDistribution, sample_standard_normal
from .schema import CalculationWarning, Decision, DecisionInputs
from .stats.decision_math import default_decision, feasibility_bounds
from .stats.posterior import posterior_decision, posterior_mean
from .stats.truncation import FeasiblePrior, summarize_feasible_prior

logger = logging.getLogger(__name__)


@dataclass
class SimulationDraws:
    """Valid draws of one simulation run and the decision taken on each."""
    true_lifts: np.ndarray
    acts: np.ndarray  # bool per draw: posterior decision is act
    default_decision: Decision
    prior_summary: FeasiblePrior  # prior restricted to the feasible range, as the draws are
    samples_requested: int
    samples_rejected: int
    attempts: int

    @property
    def samples_used(self) -> int:
        return int(self.true_lifts.size)

    @property
    def decision_changes(self) -> int:
        default_acts = self.default_decision == Decision.ACT
        return int(np.count_nonzero(self.acts != default_acts))

    @property
    def probability_decision_changes(self) -> float:
        if self.samples_used == 0:
            return 0.0
        return self.decision_changes / self.samples_used


def make_rng(rng: Optional[np.random.Generator] = None, random_seed: Optional[int] = None) -> np.random.Generator:
    """Use the injected generator, else a fresh one seeded with `random_seed`."""
    if rng is not None:
        return rng
    return np.random.default_rng(random_seed)


def simulate_posterior_decisions(
    prior: PriorDistribution,
    inputs: DecisionInputs,
    se: float,
    config: Optional[SimulationConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> SimulationDraws:
    """
    Run the feasibility-checked pre-posterior simulation.

    Args:
        prior: Prior over the true lift
        inputs: K, threshold and baseline conversion rate
        se: Standard error of the test's lift estimate
        config: Sample count, attempt cap, grid size and seed
        rng: Injected generator (overrides config.random_seed)

    Returns:
        SimulationDraws with the valid true lifts and posterior decisions
    """
    config = config or SimulationConfig()
    rng = make_rng(rng, config.random_seed)
    cr0 = inputs.baseline_conversion_rate
    threshold = inputs.threshold_lift
    lift_min, lift_max = feasibility_bounds(cr0)
    summary = summarize_feasible_prior(prior, threshold, cr0)
    default = default_decision(summary.mean, threshold)

    num_samples = int(config.num_samples)
    max_attempts = config.max_attempts
    true_lifts: List[float] = []
    acts: List[bool] = []
    attempts = 0
    rejected = 0

    while len(true_lifts) < num_samples and attempts < max_attempts:
        attempts += 1
        true_lift = prior.draw(rng)
        if true_lift < lift_min or true_lift > lift_max:
            rejected += 1
            continue
        observed = true_lift + se * sample_standard_normal(rng)
        post_mean = posterior_mean(observed, se, prior, cr0, grid_size=config.grid_size)
        true_lifts.append(true_lift)
        acts.append(posterior_decision(post_mean, threshold) == Decision.ACT)

    draws = SimulationDraws(
        true_lifts=np.asarray(true_lifts, dtype=float),
        acts=np.asarray(acts, dtype=bool),
        default_decision=default,
        prior_summary=summary,
        samples_requested=num_samples,
        samples_rejected=rejected,
        attempts=attempts,
    )
    logger.info(
        f"Simulation complete: {draws.samples_used}/{num_samples} valid draws, "
        f"{rejected} rejected, {draws.decision_changes} decision changes"
    )
    return draws


def sampling_warnings(draws: SimulationDraws) -> List[CalculationWarning]:
    """Advisories for heavy rejection and for falling short of the requested draws."""
    warnings = []
    if draws.attempts > 0 and draws.samples_rejected / draws.attempts > HIGH_REJECTION_RATE:
        rate = draws.samples_rejected / draws.attempts
        warnings.append(CalculationWarning(
            code="high_rejection",
            message=(
                f"{rate:.0%} of prior draws fell outside the feasible lift range. "
                "The prior puts substantial mass on impossible conversion rates."
            ),
        ))
    if draws.samples_used < draws.samples_requested:
        warnings.append(CalculationWarning(
            code="sampling_shortfall",
            message=(
                f"Only {draws.samples_used} of {draws.samples_requested} requested draws were "
                f"feasible after {draws.attempts} attempts."
            ),
        ))
    for w in warnings:
        logger.warning(w.message)
    return warnings
