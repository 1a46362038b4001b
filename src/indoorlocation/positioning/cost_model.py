"""
Multilateration Cost
====================
Turns a snapshot of per-anchor distance readings into the scalar objective
minimized by the simplex search.

The cost at a candidate position is the mean squared ranging residual, with
two quirks inherited from the tuning of the deployed system:

1. Residuals (computed - measured distance) are clipped from above only.
2. Approximate anchors are used only while few exact anchors are measured, and
   at most `approximate_keep_limit` of them are kept.

Positions outside the floor's bounding box are infeasible (`+inf`).
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, Iterable, Mapping

import numpy as np

from indoorlocation.config import CostModelConfig
from indoorlocation.errors import (
    DimensionMismatchError,
    EmptyInputError,
    NonFiniteInputError,
    UnknownAnchorError,
)
from indoorlocation.optimization.optimizable import Optimizable
from indoorlocation.optimization.vector_utils import as_point, box_contains, check_same_dimension, mean_or_zero
from indoorlocation.positioning.probes import ProbeTrace

if TYPE_CHECKING:
    import numpy.typing as npt

    from indoorlocation.positioning.floorplan import Anchor, Floorplan

logger = logging.getLogger(__name__)


class IndoorLocationModel(Optimizable):
    """
    Box-constrained multilateration cost for one measurement batch.

    The model keeps a filtered copy of the distance readings and records every
    evaluated point in `probes`. Anchors are only read.
    """

    def __init__(
        self,
        anchors: Iterable[Anchor],
        bounds: tuple[npt.ArrayLike, npt.ArrayLike],
        distances: Mapping[str, float],
        config: CostModelConfig | None = None,
    ) -> None:
        """
        Initialize the cost model.

        Args:
            anchors: Anchors of the floor.
            bounds: (min_corner, max_corner) of the floor's bounding box.
            distances: Measured distance per anchor id, in meters.
            config: Cost tunables.

        Raises:
            EmptyInputError: If there are no anchors or no distances.
            DimensionMismatchError: If the bounds and anchor locations differ in dimension.
            NonFiniteInputError: If a bound or distance is NaN or infinite.
            UnknownAnchorError: If a distance refers to an unknown anchor.
        """
        self.config = config or CostModelConfig()
        self.probes = ProbeTrace()

        self._anchors: Dict[str, Anchor] = {anchor.id: anchor for anchor in anchors}
        if not self._anchors:
            raise EmptyInputError("Cannot build a cost model without anchors.")
        if not distances:
            raise EmptyInputError("Cannot build a cost model from an empty measurement set.")

        self._lower = as_point(bounds[0], "min corner of the bounding box")
        self._upper = as_point(bounds[1], "max corner of the bounding box")
        dimension = check_same_dimension([self._lower, self._upper], ["min corner", "max corner"])

        for anchor in self._anchors.values():
            if anchor.dimension != dimension:
                raise DimensionMismatchError(
                    f"Anchor '{anchor.id}' has dimension {anchor.dimension}, bounds have dimension {dimension}."
                )

        self.distances = self._filter_distances(distances)

        kept = [self._anchors[anchor_id] for anchor_id in self.distances]
        self._locations: npt.NDArray[np.float64] = np.array([anchor.location for anchor in kept], dtype=np.float64)
        self._measured: npt.NDArray[np.float64] = np.fromiter(self.distances.values(), dtype=np.float64)
        self._exact: npt.NDArray[np.bool_] = np.array([anchor.exact for anchor in kept], dtype=bool)

        logger.debug(
            f"Cost model: {self.exact_count} exact and {self.approximate_count} approximate "
            f"measurement(s) kept out of {len(distances)}."
        )

    @classmethod
    def from_floorplan(
        cls,
        floorplan: Floorplan,
        distances: Mapping[str, float],
        config: CostModelConfig | None = None,
    ) -> IndoorLocationModel:
        """Cost model on the floorplan's positioning floor."""
        return cls(
            anchors=floorplan.anchors,
            bounds=floorplan.floor.bounds,
            distances=distances,
            config=config,
        )

    def _filter_distances(self, distances: Mapping[str, float]) -> Dict[str, float]:
        """
        Keep every exact-anchor reading and the first few approximate ones.

        "First" follows the iteration order of `distances`.
        """
        kept: Dict[str, float] = {}
        n_approximate = 0
        for anchor_id, distance in distances.items():
            anchor = self._anchors.get(anchor_id)
            if anchor is None:
                raise UnknownAnchorError(f"Distance reported for unknown anchor '{anchor_id}'.")

            distance = float(distance)
            if not math.isfinite(distance):
                raise NonFiniteInputError(f"Distance to anchor '{anchor_id}' is {distance}.")

            if not anchor.exact:
                n_approximate += 1
                if n_approximate > self.config.approximate_keep_limit:
                    logger.debug(f"Dropping approximate anchor '{anchor_id}' (keep limit reached).")
                    continue
            kept[anchor_id] = distance
        return kept

    @property
    def min_init_solution(self) -> npt.NDArray[np.float64]:
        return self._lower.copy()

    @property
    def max_init_solution(self) -> npt.NDArray[np.float64]:
        return self._upper.copy()

    @property
    def exact_count(self) -> int:
        return int(np.count_nonzero(self._exact))

    @property
    def approximate_count(self) -> int:
        return len(self._exact) - self.exact_count

    def cost(self, solution: npt.NDArray[np.float64]) -> float:
        """
        Evaluate the multilateration cost at a candidate position.

        Args:
            solution: Candidate position.

        Raises:
            DimensionMismatchError: If `solution` has the wrong dimension.
            NonFiniteInputError: If `solution` contains NaN.

        Returns:
            `+inf` outside the bounding box, the non-negative cost otherwise.
        """
        point = np.asarray(solution, dtype=np.float64)
        if point.shape != self._lower.shape:
            raise DimensionMismatchError(
                f"Candidate has shape {point.shape}, expected {self._lower.shape}."
            )
        if np.any(np.isnan(point)):
            raise NonFiniteInputError(f"Candidate contains NaN: {point.tolist()}.")

        if not box_contains(point, self._lower, self._upper):
            self.probes.record(point, math.inf)
            return math.inf

        computed = np.linalg.norm(self._locations - point, axis=1)
        residuals = np.minimum(computed - self._measured, self.config.residual_cap)
        squared = residuals ** 2

        exact = squared[self._exact]
        approximate = squared[~self._exact]
        if len(exact) > self.config.exact_group_threshold:
            value = mean_or_zero(exact)
        else:
            value = mean_or_zero(exact) * self.config.exact_weight + mean_or_zero(approximate)

        self.probes.record(point, value)
        return value
