"""Per-layer array utilities for recombining trinomial trees.

Layer ``i`` holds ``2i+1`` nodes ordered from the lowest (all down moves) to
the highest (all up moves).  Node ``j`` at layer ``i`` moves to nodes ``j``,
``j+1`` and ``j+2`` at layer ``i+1`` (down, middle, up).  Every layer is a
contiguous ``float64`` array indexed by integer offset.
"""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "node_count",
    "geometric_state_values",
    "uniform_probabilities",
    "discounted_expectation",
    "check_layer",
]


def node_count(i: int) -> int:
    """Number of nodes at layer ``i``."""
    return 2 * i + 1


def geometric_state_values(
    spot: float, down_factor: float, middle_factor: float, i: int
) -> np.ndarray:
    """State values at layer ``i``: ``spot * d**(i-k) * m**k`` for ``k = 0..2i``.

    Each node is exponentiated on its own (no running product), so rounding
    stays per node rather than accumulating along the layer.
    """
    spot, d, m = float(spot), float(down_factor), float(middle_factor)
    # scalar pow per node, matching reference output bit for bit
    return np.array(
        [spot * math.pow(d, i - k) * math.pow(m, k) for k in range(node_count(i))],
        dtype=float,
    )


def uniform_probabilities(
    up_probability: float,
    middle_probability: float,
    down_probability: float,
    n_nodes: int,
) -> np.ndarray:
    """Broadcast one (down, middle, up) triple to every node of a layer."""
    row = np.array([down_probability, middle_probability, up_probability], dtype=float)
    return np.tile(row, (n_nodes, 1))


def discounted_expectation(
    discount_factor: float,
    transition_probability: np.ndarray,
    values: np.ndarray,
) -> np.ndarray:
    """Risk-neutral discounted expectation over the three successors.

    Parameters
    ----------
    discount_factor : float
        Discount factor between layer ``i`` and ``i+1``.
    transition_probability : ndarray, shape (2i+1, 3)
        Columns are down, middle, up.
    values : ndarray, shape (2i+3,) or (2i+3, m)
        Values at layer ``i+1``.  A trailing axis (auxiliary state) is
        carried through unchanged.

    Returns
    -------
    ndarray, shape (2i+1,) or (2i+1, m)
    """
    probs = np.asarray(transition_probability, dtype=float)
    values = np.asarray(values, dtype=float)
    down = probs[:, 0]
    middle = probs[:, 1]
    up = probs[:, 2]
    if values.ndim > 1:
        extra = (slice(None),) + (np.newaxis,) * (values.ndim - 1)
        down, middle, up = down[extra], middle[extra], up[extra]
    return discount_factor * (up * values[2:] + middle * values[1:-1] + down * values[:-2])


def check_layer(
    transition_probability: np.ndarray,
    state_values: np.ndarray,
    values,
    i: int,
) -> None:
    """Raise ``ValueError`` when arrays are not shaped for layer ``i``."""
    n_nodes = node_count(i)
    probs = np.shape(transition_probability)
    if probs != (n_nodes, 3):
        raise ValueError(
            f"transition probability at layer {i} must have shape ({n_nodes}, 3), got {probs}"
        )
    if len(state_values) != n_nodes:
        raise ValueError(
            f"layer {i} needs {n_nodes} state values, got {len(state_values)}"
        )
    if len(values) != n_nodes + 2:
        raise ValueError(
            f"layer {i} needs {n_nodes + 2} successor values, got {len(values)}"
        )
