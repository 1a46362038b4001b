from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterator, Tuple

import numpy as np
import matplotlib.pyplot as plt

if TYPE_CHECKING:
    import numpy.typing as npt
    from matplotlib.axes import Axes

    from indoorlocation.positioning.floorplan import Floorplan

ProbeKey = Tuple[float, ...]


class ProbeTrace:
    """
    Every point evaluated by a cost model, with its cost.

    Keys are the exact coordinates of the probe. This is fine for diagnostics
    and overlays, use `quantized` for anything that deduplicates probes.
    """

    def __init__(self) -> None:
        self._probes: Dict[ProbeKey, float] = {}

    def __len__(self) -> int:
        return len(self._probes)

    def __iter__(self) -> Iterator[ProbeKey]:
        return iter(self._probes)

    def __contains__(self, point: object) -> bool:
        return self._key(point) in self._probes

    def __getitem__(self, point: npt.ArrayLike) -> float:
        return self._probes[self._key(point)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(probes={len(self)})"

    @staticmethod
    def _key(point: object) -> ProbeKey:
        return tuple(float(x) for x in np.asarray(point, dtype=np.float64).ravel())

    def record(self, point: npt.ArrayLike, cost: float) -> None:
        self._probes[self._key(point)] = float(cost)

    def items(self) -> Iterator[Tuple[ProbeKey, float]]:
        return iter(self._probes.items())

    def points(self) -> npt.NDArray[np.float64]:
        """Probe coordinates as an (n, dimension) array, in evaluation order."""
        if not self._probes:
            return np.empty((0, 0), dtype=np.float64)
        return np.array(list(self._probes.keys()), dtype=np.float64)

    def costs(self) -> npt.NDArray[np.float64]:
        return np.fromiter(self._probes.values(), dtype=np.float64, count=len(self._probes))

    @property
    def feasible_count(self) -> int:
        return sum(1 for cost in self._probes.values() if math.isfinite(cost))

    def best(self) -> Tuple[npt.NDArray[np.float64], float] | None:
        """Lowest-cost probe, or None when no feasible point was probed."""
        if not self._probes:
            return None
        key = min(self._probes, key=self._probes.__getitem__)
        cost = self._probes[key]
        if math.isinf(cost):
            return None
        return np.array(key, dtype=np.float64), cost

    def quantized(self, decimals: int = 3) -> Dict[ProbeKey, float]:
        """
        Probes keyed by rounded coordinates.

        Probes falling on the same rounded key keep the lowest cost.

        Args:
            decimals: Number of decimals kept per coordinate.
        """
        quantized: Dict[ProbeKey, float] = {}
        for key, cost in self._probes.items():
            # + 0.0 folds -0.0 into 0.0
            rounded = tuple(round(x, decimals) + 0.0 for x in key)
            if rounded not in quantized or cost < quantized[rounded]:
                quantized[rounded] = cost
        return quantized

    def plot(
        self,
        floorplan: Floorplan | None = None,
        location: npt.ArrayLike | None = None,
        ax: Axes | None = None,
    ) -> Axes:
        """
        Scatter the feasible probes in the x/y plane, colored by cost.

        Args:
            floorplan: If given, the floor outline and anchors are drawn too.
            location: Estimated location to highlight.
            ax: Axes to draw into, a new figure is created when None.

        Returns:
            The axes that were drawn into.
        """
        if ax is None:
            plt.rcParams["figure.constrained_layout.use"] = True
            _, ax = plt.subplots(figsize=(6, 6))

        points = self.points()
        costs = self.costs()
        if len(points) and points.shape[1] >= 2:
            feasible = np.isfinite(costs)
            scatter = ax.scatter(
                points[feasible, 0], points[feasible, 1],
                c=costs[feasible], s=4, cmap="viridis", label="probes"
            )
            ax.figure.colorbar(scatter, ax=ax, label="Cost")

        if floorplan is not None and floorplan.floor.dimension >= 2:
            lower, upper = floorplan.floor.bounds
            ax.add_patch(plt.Rectangle(
                (lower[0], lower[1]), upper[0] - lower[0], upper[1] - lower[1],
                fill=False, edgecolor="green", lw=1
            ))
            for anchor in floorplan.anchors:
                ax.plot(anchor.location[0], anchor.location[1], "o",
                        color="orange" if anchor.exact else "gray")

        loc = None if location is None else np.asarray(location, dtype=np.float64)
        if loc is not None and len(loc) >= 2:
            ax.plot(loc[0], loc[1], "x", color="purple", ms=10, mew=2, label="estimate")

        ax.set_aspect("equal")
        ax.grid(visible=True, which='major', axis='both', linestyle=':', color='gray', lw=0.5)
        ax.set_xlabel("x (m)")
        ax.set_ylabel("y (m)")
        return ax
