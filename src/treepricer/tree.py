"""Backward induction over a recombining trinomial tree.

The driver is written once against ``OptionFunction``: it seeds the expiry
layer with ``payoff_at_expiry`` and calls ``next_layer_values`` for
``i = n-1, ..., 0``.  Layers are strictly sequential; all per-node work
inside a layer is vectorised by the option function.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import numpy as np

from . import config
from .core import TrinomialTreeData
from .functions import OptionFunction

__all__ = [
    "PricingTimeoutError",
    "price",
    "all_layer_values",
    "tree_greeks",
    "price_many",
]

logger = logging.getLogger(__name__)


class PricingTimeoutError(TimeoutError):
    """The backward walk ran past its deadline."""


def _walk(function: OptionFunction, tree: TrinomialTreeData, *,
          timeout: Optional[float] = None, keep_layers: bool = False):
    n = tree.n_steps
    deadline = None if timeout is None else time.monotonic() + timeout

    values = function.payoff_at_expiry(tree.state_values(n), n)
    layers = [values] if keep_layers else None

    for i in range(n - 1, -1, -1):
        if deadline is not None and time.monotonic() >= deadline:
            raise PricingTimeoutError(
                f"pricing {function!r} timed out with {i + 1} of {n} layers left"
            )
        values = function.next_layer_values(
            tree.discount_factor(i),
            tree.probability(i),
            tree.state_values(i),
            values,
            i,
        )
        if keep_layers:
            layers.append(values)

    if keep_layers:
        layers.reverse()
        return layers
    return values


def price(function: OptionFunction, tree: TrinomialTreeData, *,
          timeout: Optional[float] = None) -> float:
    """Price ``function`` on ``tree`` and return the root-node value.

    Parameters
    ----------
    function : OptionFunction
        Payoff and continuation rules.
    tree : TrinomialTreeData
        Spot, factors, discount factors and transition probabilities.
    timeout : float, optional
        Seconds allowed for the walk, checked between layers.

    Raises
    ------
    PricingTimeoutError
        If the deadline passes before the root is reached.
    """
    logger.debug("pricing %r on a %d-step tree", function, tree.n_steps)
    root = _walk(function, tree, timeout=timeout)
    value = function.root_value(root)
    logger.debug("%r priced at %.10f", function, value)
    return value


def all_layer_values(function: OptionFunction, tree: TrinomialTreeData) -> list:
    """Option values of every layer, root first (index ``i`` is layer ``i``)."""
    return _walk(function, tree, keep_layers=True)


def tree_greeks(function: OptionFunction, tree: TrinomialTreeData) -> dict[str, float]:
    """Price, delta, gamma and theta read off the first two layers.

    Delta and gamma are finite differences over the three layer-1 nodes.
    Theta compares the layer-2 middle node with the root over ``2 dt``,
    ``dt = time_to_expiry / n``.

    Returns
    -------
    dict[str, float]
        Keys: ``price``, ``delta``, ``gamma``, ``theta``.
    """
    n = tree.n_steps
    if n < 2:
        raise ValueError(f"tree_greeks needs at least 2 steps, got {n}")
    layers = all_layer_values(function, tree)
    if not all(isinstance(layer, np.ndarray) for layer in layers[:3]):
        raise ValueError("tree_greeks needs plain value arrays at layers 0-2")

    v0, v1, v2 = layers[0], layers[1], layers[2]
    s1 = tree.state_values(1)
    dt = function.time_to_expiry / n

    delta_up = (v1[2] - v1[1]) / (s1[2] - s1[1])
    delta_dn = (v1[1] - v1[0]) / (s1[1] - s1[0])
    delta = (v1[2] - v1[0]) / (s1[2] - s1[0])
    gamma = (delta_up - delta_dn) / (0.5 * (s1[2] - s1[0]))
    theta = (v2[2] - v0[0]) / (2.0 * dt)

    return {
        "price": float(v0[0]),
        "delta": float(delta),
        "gamma": float(gamma),
        "theta": float(theta),
    }


def price_many(
    functions: Sequence[OptionFunction],
    tree: TrinomialTreeData,
    *,
    max_workers: Optional[int] = config.DEFAULT_MAX_WORKERS,
) -> np.ndarray:
    """Price independent contracts on one tree concurrently.

    Each contract walks its own arrays, so the calls share nothing but the
    read-only tree.  Results keep the order of ``functions``.
    """
    functions = list(functions)
    if not functions:
        return np.empty(0)
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        prices = list(ex.map(lambda f: price(f, tree), functions))
    logger.debug("priced %d contracts on a %d-step tree", len(prices), tree.n_steps)
    return np.asarray(prices, dtype=float)
