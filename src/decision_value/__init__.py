"""Decision-value engine: is an A/B test worth running?"""

from .schema import (
    Decision,
    CalculationMethod,
    Recommendation,
    DecisionInputs,
    ExperimentDesign,
    SampleSizes,
    CalculationWarning,
    EdgeCaseFlags,
    EVPIResult,
    EVSIResult,
    CostOfDelayResult,
    NetValueResult,
    DecisionReport,
)
from .errors import InvalidInputError, WorkerError
from .config import SimulationConfig
from .distributions import NormalPrior, StudentTPrior, UniformPrior, prior_from_interval
from .evpi import calculate_evpi
from .evsi import calculate_evsi, calculate_evsi_monte_carlo, calculate_evsi_normal_fast_path
from .cost_of_delay import calculate_cost_of_delay
from .net_value import calculate_net_value
from .stats.power import derive_sample_sizes
from .worker import SimulationRequest, SimulationWorker, WorkerResponse
from .analyze import run_analysis, sweep_test_durations

__all__ = [
    "Decision",
    "CalculationMethod",
    "Recommendation",
    "DecisionInputs",
    "ExperimentDesign",
    "SampleSizes",
    "CalculationWarning",
    "EdgeCaseFlags",
    "EVPIResult",
    "EVSIResult",
    "CostOfDelayResult",
    "NetValueResult",
    "DecisionReport",
    "InvalidInputError",
    "WorkerError",
    "SimulationConfig",
    "NormalPrior",
    "StudentTPrior",
    "UniformPrior",
    "prior_from_interval",
    "calculate_evpi",
    "calculate_evsi",
    "calculate_evsi_monte_carlo",
    "calculate_evsi_normal_fast_path",
    "calculate_cost_of_delay",
    "calculate_net_value",
    "derive_sample_sizes",
    "SimulationRequest",
    "SimulationWorker",
    "WorkerResponse",
    "run_analysis",
    "sweep_test_durations",
]
