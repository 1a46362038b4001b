from __future__ import annotations

import math

import matplotlib.pyplot as plt
import numpy as np

from indoorlocation.positioning.probes import ProbeTrace


def make_trace():
    trace = ProbeTrace()
    trace.record(np.array([1.0, 2.0, 0.0]), 4.0)
    trace.record(np.array([3.0, 1.0, 0.0]), 0.5)
    trace.record(np.array([-1.0, 2.0, 0.0]), math.inf)
    return trace


def test_record_and_lookup():
    trace = make_trace()
    assert len(trace) == 3
    assert trace[[3.0, 1.0, 0.0]] == 0.5
    assert np.array([1.0, 2.0, 0.0]) in trace
    assert (9.0, 9.0, 9.0) not in trace
    assert list(trace)[0] == (1.0, 2.0, 0.0)


def test_same_point_keeps_latest_cost():
    trace = ProbeTrace()
    trace.record([1.0, 1.0], 2.0)
    trace.record([1.0, 1.0], 3.0)
    assert len(trace) == 1
    assert trace[[1.0, 1.0]] == 3.0


def test_arrays_in_evaluation_order():
    trace = make_trace()
    np.testing.assert_array_equal(trace.points(), [[1.0, 2.0, 0.0], [3.0, 1.0, 0.0], [-1.0, 2.0, 0.0]])
    np.testing.assert_array_equal(trace.costs(), [4.0, 0.5, math.inf])
    assert trace.feasible_count == 2


def test_empty_trace():
    trace = ProbeTrace()
    assert trace.points().shape == (0, 0)
    assert trace.costs().shape == (0,)
    assert trace.best() is None


def test_best_probe():
    point, cost = make_trace().best()
    assert point.tolist() == [3.0, 1.0, 0.0]
    assert cost == 0.5

    trace = ProbeTrace()
    trace.record([5.0, 5.0], math.inf)
    assert trace.best() is None


def test_quantized_keeps_lowest_cost():
    trace = ProbeTrace()
    trace.record([0.0001, 1.0], 2.0)
    trace.record([-0.0002, 1.0004], 1.0)
    trace.record([0.5, 0.5], 7.0)

    quantized = trace.quantized(decimals=3)
    assert quantized == {(0.0, 1.0): 1.0, (0.5, 0.5): 7.0}
    assert math.copysign(1.0, next(iter(quantized))[0]) == 1.0


def test_plot_probes(room_floorplan):
    ax = make_trace().plot(floorplan=room_floorplan, location=[3.0, 1.0, 0.0])

    assert ax.get_xlabel() == "x (m)"
    assert len(ax.collections) == 1
    assert len(ax.collections[0].get_offsets()) == 2
    assert len(ax.patches) == 1
    plt.close(ax.figure)


def test_plot_into_existing_axes():
    fig, ax = plt.subplots()
    assert make_trace().plot(ax=ax) is ax
    plt.close(fig)


def test_plot_one_dimensional_trace():
    trace = ProbeTrace()
    trace.record([1.0], 1.0)
    ax = trace.plot(location=[1.0])
    assert len(ax.collections) == 0
    plt.close(ax.figure)
