"""
Simulation configuration and advisory thresholds.

Module-level constants hold the engine's tunables; `SimulationConfig`
bundles the ones a caller may override per Monte Carlo request.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidInputError

DAYS_PER_YEAR = 365

# Monte Carlo
DEFAULT_NUM_SAMPLES = 5000
MAX_ATTEMPTS_MULTIPLIER = 10  # total draws allowed = multiplier * requested samples
SIMULATOR_SEED = 42

# Posterior-mean grid integration (non-Normal priors)
POSTERIOR_GRID_SIZE = 400
LIKELIHOOD_WINDOW_SE = 8.0  # likelihood window: L_hat +/- this many standard errors
PRIOR_WINDOW_SCALES = 10.0  # prior core window: location +/- this many scales

# Advisories
RARE_EVENTS_MIN_CONVERSIONS = 20
HIGH_REJECTION_RATE = 0.10
HEAVY_TAILS_MAX_DF = 2.0

# Edge-case flags
NEAR_ZERO_SIGMA = 0.001
ONE_SIDED_TAIL = 1e-4
TRUNCATION_MASS = 0.001  # infeasible prior mass above which truncation changes the closed forms

# Feasible-range truncation
MIN_FEASIBLE_MASS = 1e-10  # below this the truncated prior is undefined; untruncated summaries are used
POSTERIOR_TAIL_Z = 8.0  # Normal posterior this many sds inside both bounds needs no truncation

# 95th percentile of the standard normal (90% central interval -> scale)
Z_95 = 1.6448536


@dataclass(frozen=True)
class SimulationConfig:
    """Per-request Monte Carlo settings."""
    num_samples: int = DEFAULT_NUM_SAMPLES
    max_attempts_multiplier: int = MAX_ATTEMPTS_MULTIPLIER
    grid_size: int = POSTERIOR_GRID_SIZE
    random_seed: Optional[int] = None

    def __post_init__(self):
        if int(self.num_samples) != self.num_samples or self.num_samples < 1:
            raise InvalidInputError("num_samples must be a positive integer.")
        if int(self.max_attempts_multiplier) != self.max_attempts_multiplier or self.max_attempts_multiplier < 1:
            raise InvalidInputError("max_attempts_multiplier must be a positive integer.")
        if int(self.grid_size) != self.grid_size or self.grid_size < 2:
            raise InvalidInputError("grid_size must be an integer >= 2.")

    @property
    def max_attempts(self) -> int:
        return int(self.num_samples) * int(self.max_attempts_multiplier)
