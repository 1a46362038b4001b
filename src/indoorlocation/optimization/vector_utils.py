from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np

from indoorlocation.errors import DimensionMismatchError, EmptyInputError, NonFiniteInputError

if TYPE_CHECKING:
    import numpy.typing as npt


def as_point(values: Iterable[float] | npt.ArrayLike, name: str = "point") -> npt.NDArray[np.float64]:
    """
    Convert a sequence of coordinates into a 1D float64 array.

    A copy is always returned, so the caller's data is never aliased.

    Args:
        values: Coordinates of the point.
        name: Name used in error messages.

    Raises:
        DimensionMismatchError: If `values` is not one-dimensional or empty.
        NonFiniteInputError: If any coordinate is NaN or infinite.

    Returns:
        The point as a new array.
    """
    point = np.array(values, dtype=np.float64)
    if point.ndim != 1 or point.size == 0:
        raise DimensionMismatchError(
            f"'{name}' must be a non-empty 1D sequence of coordinates, got shape {point.shape}."
        )
    if not np.all(np.isfinite(point)):
        raise NonFiniteInputError(f"'{name}' contains non-finite coordinates: {point.tolist()}.")
    return point


def check_same_dimension(points: Sequence[npt.NDArray[np.float64]], names: Sequence[str] | None = None) -> int:
    """
    Check that all points share one dimension.

    Returns:
        The common dimension.
    """
    if len(points) == 0:
        raise EmptyInputError("At least one point is required.")
    dimension = len(points[0])
    for i, point in enumerate(points):
        if len(point) != dimension:
            label = names[i] if names else f"point #{i}"
            raise DimensionMismatchError(
                f"'{label}' has dimension {len(point)}, expected {dimension}."
            )
    return dimension


def vector_sum(vectors: Sequence[npt.NDArray[np.float64]]) -> npt.NDArray[np.float64]:
    """Elementwise sum of equally sized vectors."""
    check_same_dimension(vectors)
    return np.sum(np.asarray(vectors, dtype=np.float64), axis=0)


def vector_mean(vectors: Sequence[npt.NDArray[np.float64]]) -> npt.NDArray[np.float64]:
    """Elementwise mean (centroid) of equally sized vectors."""
    return vector_sum(vectors) / len(vectors)


def mean_or_zero(values: Sequence[float]) -> float:
    """Arithmetic mean of `values`, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def box_contains(
    point: npt.NDArray[np.float64],
    lower: npt.NDArray[np.float64],
    upper: npt.NDArray[np.float64],
) -> bool:
    """Whether `point` lies in the closed axis-aligned box [lower, upper]."""
    return bool(np.all(point >= lower) and np.all(point <= upper))
