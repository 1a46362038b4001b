from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

from indoorlocation.config import OptimizerConfig
from indoorlocation.errors import NonFiniteInputError
from indoorlocation.optimization.vector_utils import as_point, check_same_dimension, vector_mean

if TYPE_CHECKING:
    import numpy.typing as npt

    from indoorlocation.optimization.optimizable import Optimizable

logger = logging.getLogger(__name__)


class TerminationStatus(StrEnum):
    CONVERGED = "converged"
    DEGENERATE = "degenerate"
    MAX_ITERATIONS = "max_iterations"


class Move(StrEnum):
    REFLECT = "reflect"
    EXPAND = "expand"
    CONTRACT = "contract"
    SHRINK = "shrink"


@dataclass(frozen=True)
class SimplexResult:
    """
    Outcome of one `SimplexSearcher.optimize` call.

    `best_solution` and `best_value` are None when every evaluated point was
    infeasible.
    """
    best_solution: npt.NDArray[np.float64] | None
    best_value: float | None
    iterations: int
    evaluations: int
    status: TerminationStatus
    moves: dict[Move, int] = field(default_factory=dict)
    restarts: int = 0

    @property
    def feasible(self) -> bool:
        return self.best_solution is not None


class SimplexSearcher:
    """
    Bounded Nelder-Mead simplex search.

    The initial simplex is built deterministically from the problem's box: the
    midpoint plus one vertex per axis, moved from the midpoint towards the
    upper bound. The box only seeds the search, feasibility is the problem's
    business (it returns `+inf` outside its domain).

    Convergence needs both a small cost spread and a small simplex. A wide
    simplex with equal costs sits on a plateau (e.g. where every residual is
    capped); the box is then scanned once on a coarse grid and the simplex is
    rebuilt around the lowest sample, if it beats the plateau.

    Not re-entrant: the simplex is rebuilt from scratch on every `optimize`.
    """

    def __init__(
        self,
        model: Optimizable,
        config: OptimizerConfig | None = None,
    ) -> None:
        """
        Initialize the search for a problem.

        Args:
            model: The problem to minimize.
            config: Simplex coefficients and tolerances.

        Raises:
            DimensionMismatchError: If the problem's bounds differ in dimension.
            NonFiniteInputError: If the bounds contain NaN or infinite values.
        """
        self.model = model
        self.config = config or OptimizerConfig()

        self._lower = as_point(model.min_init_solution, "min_init_solution")
        self._upper = as_point(model.max_init_solution, "max_init_solution")
        self.dimension = check_same_dimension(
            [self._lower, self._upper], ["min_init_solution", "max_init_solution"]
        )
        self._span: npt.NDArray[np.float64] = self._upper - self._lower

        self.best_solution: npt.NDArray[np.float64] | None = None
        self.best_value: float | None = None
        self.history: list[float] = []  # best cost at the start of every iteration
        self.iterations: int = 0
        self.evaluations: int = 0
        self.restarts: int = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model.__class__.__name__}, dimension={self.dimension})"

    def optimize(self, max_iterations: int) -> SimplexResult:
        """
        Minimize the problem's cost.

        Args:
            max_iterations: Upper bound on Nelder-Mead iterations. With 0 only
                the midpoint of the box is evaluated.

        Raises:
            ValueError: If `max_iterations` is negative.
            NonFiniteInputError: If the cost is NaN (or -inf) at some point.

        Returns:
            The search result. `best_solution`/`best_value` are also kept on the
            instance.
        """
        if max_iterations < 0:
            raise ValueError(f"'max_iterations' must be >= 0, got {max_iterations}.")

        self.best_solution = None
        self.best_value = None
        self.history = []
        self.iterations = 0
        self.evaluations = 0
        self.restarts = 0
        moves: Counter[Move] = Counter()

        if max_iterations == 0:
            vertices = vector_mean([self._lower, self._upper])[np.newaxis, :]
            values = np.array([self._evaluate(vertices[0])])
            self.history.append(float(values[0]))
            return self._finish(vertices, values, TerminationStatus.MAX_ITERATIONS, moves)

        vertices = self._initial_simplex()
        values = np.array([self._evaluate(vertex) for vertex in vertices], dtype=np.float64)
        logger.debug(f"Starting simplex search: dimension={self.dimension}, max_iterations={max_iterations}")

        status = TerminationStatus.MAX_ITERATIONS
        plateau_scanned = False
        while True:
            # Stable, so equal costs (e.g. many +inf) keep their previous order
            order = np.argsort(values, kind="stable")
            vertices = vertices[order]
            values = values[order]
            self.history.append(float(values[0]))

            if self._has_converged(values):
                if self._is_small(vertices):
                    status = TerminationStatus.CONVERGED
                    break
                if not plateau_scanned:
                    # Equal costs over a wide simplex: look for lower ground elsewhere in the box
                    plateau_scanned = True
                    reseeded = self._reseed_from_grid(values[0])
                    if reseeded is not None:
                        vertices, values = reseeded
                        self.restarts += 1
                        continue
            if self._is_degenerate(vertices):
                status = TerminationStatus.DEGENERATE
                break
            if self.iterations >= max_iterations:
                break

            moves[self._step(vertices, values)] += 1
            self.iterations += 1

        return self._finish(vertices, values, status, moves)

    def _initial_simplex(self) -> npt.NDArray[np.float64]:
        midpoint = vector_mean([self._lower, self._upper])
        vertices = np.tile(midpoint, (self.dimension + 1, 1))
        for axis in range(self.dimension):
            vertices[axis + 1, axis] += self.config.initial_step * (self._upper[axis] - midpoint[axis])
        return vertices

    def _evaluate(self, point: npt.NDArray[np.float64]) -> float:
        value = float(self.model.cost(point))
        self.evaluations += 1
        if math.isnan(value) or value == -math.inf:
            raise NonFiniteInputError(f"Cost evaluated to {value} at {point.tolist()}.")
        return value

    def _step(self, vertices: npt.NDArray[np.float64], values: npt.NDArray[np.float64]) -> Move:
        """
        Perform one Nelder-Mead iteration on a sorted simplex, in place.

        Returns:
            The move that was taken.
        """
        cfg = self.config
        worst = vertices[-1]
        centroid = vector_mean(vertices[:-1])

        reflected = centroid + cfg.reflection * (centroid - worst)
        reflected_value = self._evaluate(reflected)

        if reflected_value < values[0]:
            expanded = centroid + cfg.expansion * (reflected - centroid)
            expanded_value = self._evaluate(expanded)
            if expanded_value < reflected_value:
                vertices[-1], values[-1] = expanded, expanded_value
                return Move.EXPAND
            vertices[-1], values[-1] = reflected, reflected_value
            return Move.REFLECT

        if reflected_value < values[-2]:
            vertices[-1], values[-1] = reflected, reflected_value
            return Move.REFLECT

        contracted = centroid + cfg.contraction * (worst - centroid)
        contracted_value = self._evaluate(contracted)
        if contracted_value < values[-1]:
            vertices[-1], values[-1] = contracted, contracted_value
            return Move.CONTRACT

        best = vertices[0]
        for i in range(1, len(vertices)):
            vertices[i] = best + cfg.shrink * (vertices[i] - best)
            values[i] = self._evaluate(vertices[i])
        return Move.SHRINK

    def _has_converged(self, values: npt.NDArray[np.float64]) -> bool:
        best, worst = values[0], values[-1]
        if not math.isfinite(worst):
            return False
        return worst - best <= self.config.f_rtol * abs(best) + self.config.f_atol

    def _is_small(self, vertices: npt.NDArray[np.float64]) -> bool:
        """Whether every vertex lies within `x_tol` of the best one, per axis, in units of the box."""
        free = self._span > 0.0
        if not np.any(free):
            return True
        spread = np.abs(vertices[1:] - vertices[0])[:, free] / self._span[free]
        return float(np.max(spread)) <= self.config.x_tol

    def _reseed_from_grid(
        self, plateau_value: float
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]] | None:
        """
        Rebuild the simplex around the lowest point of a coarse grid over the box.

        The grid holds the cell centers of `plateau_samples` cells per axis with
        non-zero span (so `plateau_samples ** n_free` evaluations). The new
        simplex is the best sample plus one vertex per axis, one cell towards
        the middle of the box.

        Returns:
            The new (vertices, values), or None when no sample is strictly
            below `plateau_value`.
        """
        samples = self.config.plateau_samples
        free = self._span > 0.0
        if samples <= 0 or not np.any(free):
            return None

        offsets = (np.arange(samples) + 0.5) / samples
        axes = [
            self._lower[axis] + offsets * self._span[axis] if free[axis] else self._lower[axis:axis + 1]
            for axis in range(self.dimension)
        ]
        grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, self.dimension)
        grid_values = np.array([self._evaluate(point) for point in grid], dtype=np.float64)

        index = int(np.argmin(grid_values))
        if not grid_values[index] < plateau_value:
            logger.debug(f"Plateau at cost {plateau_value}: no lower grid sample out of {len(grid)}.")
            return None

        seed = grid[index]
        cell = np.where(free, self._span / samples, 0.0)
        direction = np.where(seed <= vector_mean([self._lower, self._upper]), 1.0, -1.0)
        vertices = np.tile(seed, (self.dimension + 1, 1))
        for axis in range(self.dimension):
            vertices[axis + 1, axis] += direction[axis] * cell[axis]

        values = np.empty(self.dimension + 1, dtype=np.float64)
        values[0] = grid_values[index]
        for i in range(1, len(vertices)):
            values[i] = self._evaluate(vertices[i])

        logger.debug(
            f"Plateau at cost {plateau_value}: restarting from grid sample "
            f"{seed.tolist()} (cost {values[0]})."
        )
        return vertices, values

    def _is_degenerate(self, vertices: npt.NDArray[np.float64]) -> bool:
        """
        Whether the simplex has collapsed.

        Axes with zero extent in the box are excluded, a flat floor still spans
        a full simplex over the remaining axes. The extent is the geometric mean
        of the singular values of the edge matrix, in units of the box.
        """
        free = self._span > 0.0
        n_free = int(np.count_nonzero(free))
        if n_free == 0:
            return True

        edges = (vertices[1:] - vertices[0])[:, free] / self._span[free]
        singular_values = np.linalg.svd(edges, compute_uv=False)[:n_free]
        extent = float(np.prod(singular_values)) ** (1.0 / n_free)
        return extent < self.config.degenerate_tolerance

    def _finish(
        self,
        vertices: npt.NDArray[np.float64],
        values: npt.NDArray[np.float64],
        status: TerminationStatus,
        moves: Counter[Move],
    ) -> SimplexResult:
        best_value = float(values[0])
        if math.isinf(best_value):
            logger.warning(f"No feasible solution found after {self.evaluations} evaluations.")
            self.best_solution = None
            self.best_value = None
        else:
            self.best_solution = vertices[0].copy()
            self.best_value = best_value

        logger.debug(
            f"Simplex search finished ({status}): iterations={self.iterations}, "
            f"evaluations={self.evaluations}, best_value={self.best_value}"
        )
        return SimplexResult(
            best_solution=self.best_solution,
            best_value=self.best_value,
            iterations=self.iterations,
            evaluations=self.evaluations,
            status=status,
            moves=dict(moves),
            restarts=self.restarts,
        )
