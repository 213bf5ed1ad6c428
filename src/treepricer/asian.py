"""Arithmetic-average (Asian) options on the trinomial lattice.

The running average is carried alongside the option value: every node holds
one value per *representative average*, a grid of ``m`` points spanning the
range of state values at that layer.  Stepping back one layer, each grid
average is rolled forward with the successor's state value and the successor
value is read off the successor grid by linear interpolation.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from . import config
from .core import CALL
from .functions import EuropeanVanillaOptionFunction
from .lattice import check_layer, node_count

__all__ = ["AveragingLayer", "AsianOptionFunction", "representative_averages"]


class AveragingLayer(NamedTuple):
    """Option values of one layer, widened by the running-average state."""

    values: np.ndarray        # (2i+1, m)
    averages: np.ndarray      # (m,)
    state_values: np.ndarray  # (2i+1,)


def representative_averages(state_values: np.ndarray, m: int) -> np.ndarray:
    """``m`` geometrically spaced averages between the layer's extreme states."""
    lo = float(np.min(state_values))
    hi = float(np.max(state_values))
    if hi <= lo:
        return np.full(m, lo)
    return np.geomspace(lo, hi, m)


def _interpolate(grid: np.ndarray, table: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Row-wise linear interpolation of ``table`` over ``grid``, clamped at the ends."""
    k = np.clip(np.searchsorted(grid, points, side="right") - 1, 0, grid.size - 2)
    lo = grid[k]
    width = grid[k + 1] - lo
    w = np.divide(points - lo, width, out=np.zeros_like(points), where=width > 0)
    w = np.clip(w, 0.0, 1.0)
    v_lo = np.take_along_axis(table, k, axis=1)
    v_hi = np.take_along_axis(table, k + 1, axis=1)
    return v_lo + w * (v_hi - v_lo)


class AsianOptionFunction(EuropeanVanillaOptionFunction):
    """Fixed-strike arithmetic Asian option, European exercise.

    The average runs over the node states at layers ``0..n``, spot included.

    Parameters
    ----------
    strike, time_to_expiry : float
        Contract terms.
    kind : str
        ``"call"`` (payoff on ``A - K``) or ``"put"`` (``K - A``).
    averaging_points : int
        Representative averages per layer (at least 2).
    """

    def __init__(self, strike: float, time_to_expiry: float, kind: str = CALL,
                 averaging_points: int = config.DEFAULT_AVERAGING_POINTS):
        super().__init__(strike, time_to_expiry, kind)
        if averaging_points < 2:
            raise ValueError(f"averaging_points must be >= 2, got {averaging_points}")
        self.averaging_points = int(averaging_points)

    def payoff_at_expiry(self, state_values, n_steps):
        state_values = np.asarray(state_values, dtype=float)
        grid = representative_averages(state_values, self.averaging_points)
        payoff = self.intrinsic(grid)
        values = np.tile(payoff, (state_values.size, 1))
        return AveragingLayer(values, grid, state_values)

    def next_layer_values(self, discount_factor, transition_probability, state_values,
                          values: AveragingLayer, i):
        check_layer(transition_probability, state_values, values.values, i)
        state_values = np.asarray(state_values, dtype=float)
        probs = np.asarray(transition_probability, dtype=float)
        grid = representative_averages(state_values, self.averaging_points)
        n_nodes = node_count(i)

        successor = []
        for c in range(3):
            rows = slice(c, c + n_nodes)
            rolled = ((i + 1) * grid[np.newaxis, :]
                      + values.state_values[rows, np.newaxis]) / (i + 2)
            successor.append(_interpolate(values.averages, values.values[rows], rolled))
        v_down, v_middle, v_up = successor

        expected = discount_factor * (
            probs[:, 2, np.newaxis] * v_up
            + probs[:, 1, np.newaxis] * v_middle
            + probs[:, 0, np.newaxis] * v_down
        )
        return AveragingLayer(expected, grid, state_values)

    def root_value(self, values: AveragingLayer) -> float:
        # the root grid collapses onto the spot
        return float(values.values[0, 0])

    def __repr__(self):
        return (
            f"{type(self).__name__}(strike={self.strike}, "
            f"time_to_expiry={self.time_to_expiry}, kind={self.kind!r}, "
            f"averaging_points={self.averaging_points})"
        )
