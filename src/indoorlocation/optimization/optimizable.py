from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class Optimizable(ABC):
    """
    Abstract base class for problems solved by the simplex search.

    A problem provides the box that seeds the initial simplex and a scalar cost.
    The cost may be `+inf` to mark infeasible points.
    """

    @property
    @abstractmethod
    def min_init_solution(self) -> npt.NDArray[np.float64]:
        """Lower corner of the box used to build the initial simplex."""
        pass

    @property
    @abstractmethod
    def max_init_solution(self) -> npt.NDArray[np.float64]:
        """Upper corner of the box used to build the initial simplex."""
        pass

    @abstractmethod
    def cost(self, solution: npt.NDArray[np.float64]) -> float:
        """
        Evaluate the objective at a candidate solution.

        Args:
            solution: Candidate point, same dimension as the bounds.

        Returns:
            Non-negative cost, or `math.inf` for an infeasible point.
        """
        pass

    @property
    def dimension(self) -> int:
        """Number of free coordinates."""
        return len(self.min_init_solution)
