"""
Background execution for Monte Carlo requests.

Each submitted request gets a monotonically increasing id and runs in its
own process, reporting back over its own pipe. Only the latest request
counts: submitting a new one terminates the one in flight and closes its
pipe, so an older response can never be read. Errors come back as typed values on the
response, never as a hung caller.

Usage:
    with SimulationWorker() as worker:
        worker.submit(SimulationRequest("evsi", inputs, prior, sample_sizes=sizes))
        response = worker.result(timeout=30)
"""

import logging
import multiprocessing
from dataclasses import dataclass
from multiprocessing.connection import wait
from typing import Any, Optional, Union

from .config import DEFAULT_NUM_SAMPLES, SimulationConfig
from .distributions import PriorDistribution
from .errors import InvalidInputError, WorkerError
from .evsi import calculate_evsi
from .net_value import calculate_net_value
from .schema import DecisionInputs, ExperimentDesign, SampleSizes
from .stats.power import derive_sample_sizes

logger = logging.getLogger(__name__)

REQUEST_KINDS = ("evsi", "net_value")


@dataclass(frozen=True)
class SimulationRequest:
    """One calculation to run in the background."""
    kind: str  # evsi, net_value
    inputs: DecisionInputs
    prior: PriorDistribution
    sample_sizes: Optional[SampleSizes] = None
    design: Optional[ExperimentDesign] = None
    num_samples: int = DEFAULT_NUM_SAMPLES
    random_seed: Optional[int] = None

    def __post_init__(self):
        if self.kind not in REQUEST_KINDS:
            raise InvalidInputError(f"Unknown request kind: {self.kind!r}")
        if self.kind == "net_value" and self.design is None:
            raise InvalidInputError("net_value requests need an experiment design.")
        if self.sample_sizes is None and self.design is None:
            raise InvalidInputError("Provide sample_sizes or an experiment design.")
        # Fails here on a bad num_samples rather than inside the child process.
        SimulationConfig(num_samples=self.num_samples, random_seed=self.random_seed)

    @property
    def config(self) -> SimulationConfig:
        return SimulationConfig(num_samples=self.num_samples, random_seed=self.random_seed)


@dataclass(frozen=True)
class WorkerResponse:
    """Outcome of one request: a result or a typed error."""
    request_id: int
    result: Any = None
    error: Optional[Union[InvalidInputError, WorkerError]] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compute(request: SimulationRequest):
    """Run a request synchronously. Used in the child process and directly in tests."""
    config = request.config
    sample_sizes = request.sample_sizes or derive_sample_sizes(request.design)
    if request.kind == "evsi":
        return calculate_evsi(request.inputs, request.prior, sample_sizes, config=config)
    return calculate_net_value(
        request.inputs, request.prior, request.design, sample_sizes=sample_sizes, config=config
    )


def _run_request(conn, request_id: int, request: SimulationRequest):
    try:
        response = WorkerResponse(request_id=request_id, result=compute(request))
    except InvalidInputError as e:
        response = WorkerResponse(request_id=request_id, error=e)
    except Exception as e:
        response = WorkerResponse(request_id=request_id, error=WorkerError(request_id, f"{type(e).__name__}: {e}"))
    try:
        conn.send(response)
    finally:
        conn.close()


class SimulationWorker:
    """Runs the latest submitted request in a child process."""

    def __init__(self, start_method: Optional[str] = None):
        self._context = multiprocessing.get_context(start_method)
        self._latest_id = 0
        self._process = None
        self._conn = None

    @property
    def latest_request_id(self) -> int:
        return self._latest_id

    @property
    def busy(self) -> bool:
        return self._process is not None

    def submit(self, request: SimulationRequest) -> int:
        """Start a request, superseding any request still in flight. Returns its id."""
        self.cancel()
        self._latest_id += 1
        parent_conn, child_conn = self._context.Pipe(duplex=False)
        process = self._context.Process(
            target=_run_request,
            args=(child_conn, self._latest_id, request),
            daemon=True,
        )
        process.start()
        child_conn.close()
        self._process, self._conn = process, parent_conn
        logger.info(f"Submitted {request.kind} request {self._latest_id} (pid {process.pid})")
        return self._latest_id

    def poll(self, timeout: float = 0.0) -> Optional[WorkerResponse]:
        """Response for the latest request if it has finished within `timeout`, else None."""
        if self._process is None:
            return None
        ready = wait([self._conn, self._process.sentinel], timeout)
        if not ready:
            return None
        return self._collect()

    def result(self, timeout: Optional[float] = None) -> WorkerResponse:
        """
        Block until the latest request finishes.

        Raises:
            WorkerError: if nothing has been submitted
            TimeoutError: if the request is still running after `timeout` seconds
        """
        if self._process is None:
            raise WorkerError(self._latest_id, "No request in flight.")
        response = self.poll(timeout)
        if response is None:
            raise TimeoutError(f"Request {self._latest_id} did not finish within {timeout}s")
        return response

    def _collect(self) -> WorkerResponse:
        # The pipe belongs to the latest request only; superseded pipes are closed in cancel().
        request_id = self._latest_id
        response = None
        if self._conn.poll():
            try:
                response = self._conn.recv()
            except EOFError:
                response = None
        self._cleanup(terminate=False)
        if response is None:
            return WorkerResponse(
                request_id=request_id,
                error=WorkerError(request_id, "Worker process exited without a result."),
            )
        return response

    def cancel(self):
        """Terminate the request in flight, if any; its result is discarded."""
        if self._process is not None:
            logger.info(f"Cancelling request {self._latest_id}")
            self._cleanup(terminate=True)

    def _cleanup(self, terminate: bool):
        process, conn = self._process, self._conn
        self._process, self._conn = None, None
        if terminate and process.is_alive():
            process.terminate()
        process.join()
        conn.close()

    def close(self):
        self.cancel()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
