"""
Position Estimator
==================
Runs one simplex search per measurement batch.

Why is this file needed?
------------------------
1. Gating: A batch is only solved when enough usable readings are present.
2. Responsiveness: `submit` pushes the search to a background worker so the
   caller (UI, publisher) is never blocked. At most one search is in flight;
   batches arriving while the worker is busy are skipped, the next batch
   carries fresher readings anyway.

Classes:
    PositionEstimate: Result of one batch.
    PositionEstimator: Builds the cost model and the search for each batch.
"""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import math
import threading
from typing import Callable, Dict, Mapping, Optional, TYPE_CHECKING

import numpy as np

from indoorlocation.config import DEFAULT_MAX_ITERATIONS, MIN_MEASUREMENTS, CostModelConfig, OptimizerConfig
from indoorlocation.errors import NonFiniteInputError, UnknownAnchorError
from indoorlocation.optimization.simplex import SimplexResult, SimplexSearcher
from indoorlocation.positioning.cost_model import IndoorLocationModel

if TYPE_CHECKING:
    import numpy.typing as npt

    from indoorlocation.positioning.floorplan import Floorplan
    from indoorlocation.positioning.probes import ProbeTrace

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PositionEstimate:
    """
    Estimated position for one measurement batch.

    `location` and `error` are None when no feasible position was found.
    """
    location: Optional[npt.NDArray[np.float64]]
    error: Optional[float]
    result: SimplexResult
    probes: ProbeTrace
    distances: Dict[str, float]

    @property
    def feasible(self) -> bool:
        return self.location is not None


class PositionEstimator:
    """
    Estimates the receiver position from distance snapshots on one floorplan.
    """

    def __init__(
        self,
        floorplan: Floorplan,
        cost_config: CostModelConfig | None = None,
        optimizer_config: OptimizerConfig | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        min_measurements: int = MIN_MEASUREMENTS,
        ignore_unknown_anchors: bool = False,
    ) -> None:
        """
        Initialize the estimator.

        Args:
            floorplan: Floor bounds and anchors.
            cost_config: Cost model tunables.
            optimizer_config: Simplex tunables.
            max_iterations: Iteration budget of each search.
            min_measurements: Minimum number of usable readings to solve a batch.
            ignore_unknown_anchors: Drop readings of anchors missing from the
                floorplan instead of failing.
        """
        if max_iterations < 0:
            raise ValueError(f"'max_iterations' must be >= 0, got {max_iterations}.")

        self.floorplan = floorplan
        self.cost_config = cost_config or CostModelConfig()
        self.optimizer_config = optimizer_config or OptimizerConfig()
        self.max_iterations = max_iterations
        self.min_measurements = max(1, min_measurements)
        self.ignore_unknown_anchors = ignore_unknown_anchors

        self._anchor_ids = {anchor.id for anchor in floorplan.anchors}
        self._executor: ThreadPoolExecutor | None = None
        self._pending: Future | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> PositionEstimator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def busy(self) -> bool:
        """Whether a background search is still running."""
        with self._lock:
            return self._pending is not None and not self._pending.done()

    def usable_distances(self, distances: Mapping[str, float]) -> Dict[str, float]:
        """
        Readings that can enter the cost model.

        Infinite readings (anchor out of range) are dropped. NaN readings are an
        error.

        Raises:
            NonFiniteInputError: If a reading is NaN.
            UnknownAnchorError: If a reading names an unknown anchor and
                `ignore_unknown_anchors` is False.
        """
        usable: Dict[str, float] = {}
        for anchor_id, distance in distances.items():
            distance = float(distance)
            if math.isnan(distance):
                raise NonFiniteInputError(f"Distance to anchor '{anchor_id}' is NaN.")
            if math.isinf(distance):
                logger.debug(f"Ignoring out-of-range reading for anchor '{anchor_id}'.")
                continue
            if anchor_id not in self._anchor_ids:
                if self.ignore_unknown_anchors:
                    logger.warning(f"Ignoring reading for unknown anchor '{anchor_id}'.")
                    continue
                raise UnknownAnchorError(f"Distance reported for unknown anchor '{anchor_id}'.")
            usable[anchor_id] = distance
        return usable

    def estimate(self, distances: Mapping[str, float]) -> PositionEstimate | None:
        """
        Solve one measurement batch on the calling thread.

        Args:
            distances: Measured distance per anchor id, in meters.

        Returns:
            The estimate, or None when the batch has too few usable readings.
        """
        usable = self.usable_distances(distances)
        if len(usable) < self.min_measurements:
            logger.info(
                f"Skipping batch: {len(usable)} usable reading(s), {self.min_measurements} required."
            )
            return None

        model = IndoorLocationModel.from_floorplan(self.floorplan, usable, config=self.cost_config)
        optimizer = SimplexSearcher(model, config=self.optimizer_config)
        result = optimizer.optimize(self.max_iterations)

        if result.feasible:
            logger.info(
                f"Estimated position {np.round(result.best_solution, 3).tolist()} "
                f"(error={result.best_value:.4f}, iterations={result.iterations}, {result.status}, "
                f"{model.probes.feasible_count}/{len(model.probes)} feasible probes)"
            )
        else:
            logger.warning(f"No feasible position for this batch ({len(model.probes)} probes, all outside the floor).")

        return PositionEstimate(
            location=result.best_solution,
            error=result.best_value,
            result=result,
            probes=model.probes,
            distances=dict(model.distances),
        )

    def submit(
        self,
        distances: Mapping[str, float],
        on_result: Callable[[PositionEstimate | None], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> Future | None:
        """
        Solve one measurement batch on the background worker.

        Args:
            distances: Measured distance per anchor id, in meters. A snapshot is
                taken before returning.
            on_result: Called from the worker thread with the estimate.
            on_error: Called from the worker thread if the search raised.

        Returns:
            The future of the estimate, or None when the previous batch is still
            being solved and this one was skipped.
        """
        snapshot = dict(distances)
        with self._lock:
            if self._pending is not None and not self._pending.done():
                logger.warning("Previous estimate still running, skipping measurement batch.")
                return None

            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="location-solver")

            future = self._executor.submit(self.estimate, snapshot)
            self._pending = future

        def _done(f: Future) -> None:
            error = f.exception()
            if error is not None:
                logger.error(f"Error in location solver: {error}", exc_info=error)
                if on_error is not None:
                    on_error(error)
            elif on_result is not None:
                on_result(f.result())

        future.add_done_callback(_done)
        return future

    def close(self) -> None:
        """Wait for the running search, if any, and stop the worker."""
        with self._lock:
            executor, self._executor = self._executor, None
            self._pending = None
        if executor is not None:
            executor.shutdown(wait=True)
