import numpy as np
import pytest

from indoorlocation.errors import DimensionMismatchError, EmptyInputError, NonFiniteInputError
from indoorlocation.optimization.vector_utils import (
    as_point,
    box_contains,
    check_same_dimension,
    mean_or_zero,
    vector_mean,
    vector_sum,
)


def test_as_point_copies_input():
    source = np.array([1.0, 2.0, 3.0])
    point = as_point(source)
    point[0] = 99.0
    assert source[0] == 1.0
    assert point.dtype == np.float64


def test_as_point_accepts_lists_of_ints():
    assert as_point([1, 2]).tolist() == [1.0, 2.0]


@pytest.mark.parametrize("values", [[], [[1.0, 2.0], [3.0, 4.0]], 5.0])
def test_as_point_rejects_bad_shapes(values):
    with pytest.raises(DimensionMismatchError):
        as_point(values)


@pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
def test_as_point_rejects_non_finite(bad):
    with pytest.raises(NonFiniteInputError, match="anchor"):
        as_point([0.0, bad], name="anchor")


def test_check_same_dimension():
    assert check_same_dimension([np.zeros(3), np.ones(3)]) == 3
    with pytest.raises(DimensionMismatchError, match="'max'"):
        check_same_dimension([np.zeros(3), np.ones(2)], ["min", "max"])
    with pytest.raises(EmptyInputError):
        check_same_dimension([])


def test_vector_sum_and_mean():
    vectors = [np.array([0.0, 2.0]), np.array([4.0, 6.0]), np.array([2.0, 1.0])]
    assert vector_sum(vectors).tolist() == [6.0, 9.0]
    assert vector_mean(vectors).tolist() == [2.0, 3.0]


def test_vector_mean_accepts_2d_array():
    assert vector_mean(np.array([[0.0, 0.0], [2.0, 4.0]])).tolist() == [1.0, 2.0]


def test_mean_or_zero():
    assert mean_or_zero([]) == 0.0
    assert mean_or_zero(np.array([])) == 0.0
    assert mean_or_zero([1.0, 2.0, 6.0]) == 3.0


def test_box_contains_is_inclusive():
    lower, upper = np.array([0.0, 0.0]), np.array([1.0, 2.0])
    assert box_contains(np.array([0.0, 2.0]), lower, upper)
    assert box_contains(np.array([0.5, 1.0]), lower, upper)
    assert not box_contains(np.array([1.0 + 1e-12, 1.0]), lower, upper)
    assert not box_contains(np.array([0.5, -np.inf]), lower, upper)
