# barrier.py
# Single-barrier knock-out options on the trinomial lattice.
#
# The barrier is monitored at every node: once a node's state value is on the
# wrong side of the barrier the option is dead there and the node holds the
# rebate.  Knock-in prices come from in/out parity.

from __future__ import annotations

import numpy as np

from .core import TrinomialTreeData
from .functions import EuropeanVanillaOptionFunction
from .tree import price

__all__ = ["KnockOutBarrierOptionFunction", "knock_in_price"]

DIRECTIONS = ("down", "up")


class KnockOutBarrierOptionFunction(EuropeanVanillaOptionFunction):
    """European call/put that dies when the barrier is touched.

    Parameters
    ----------
    strike, time_to_expiry : float
        Contract terms.
    kind : str
        ``"call"`` or ``"put"``.
    barrier : float
        Barrier level.
    direction : str
        ``"down"`` (breached when ``S <= barrier``) or ``"up"``
        (breached when ``S >= barrier``).
    rebate : float
        Amount paid at the knock-out node (default 0).
    """

    def __init__(self, strike: float, time_to_expiry: float, kind: str,
                 barrier: float, direction: str = "down", rebate: float = 0.0):
        super().__init__(strike, time_to_expiry, kind)
        if barrier <= 0:
            raise ValueError(f"barrier must be positive, got {barrier}")
        if direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
        if rebate < 0:
            raise ValueError(f"rebate must be non-negative, got {rebate}")
        self.barrier = float(barrier)
        self.direction = direction
        self.rebate = float(rebate)

    def breached(self, state_values: np.ndarray) -> np.ndarray:
        s = np.asarray(state_values, dtype=float)
        if self.direction == "down":
            return s <= self.barrier
        return s >= self.barrier

    def payoff_at_expiry(self, state_values, n_steps):
        vanilla = super().payoff_at_expiry(state_values, n_steps)
        return np.where(self.breached(state_values), self.rebate, vanilla)

    def next_layer_values(self, discount_factor, transition_probability, state_values, values, i):
        continuation = super().next_layer_values(
            discount_factor, transition_probability, state_values, values, i
        )
        return np.where(self.breached(state_values), self.rebate, continuation)

    def __repr__(self):
        return (
            f"{type(self).__name__}(strike={self.strike}, "
            f"time_to_expiry={self.time_to_expiry}, kind={self.kind!r}, "
            f"barrier={self.barrier}, direction={self.direction!r}, rebate={self.rebate})"
        )


def knock_in_price(function: KnockOutBarrierOptionFunction, tree: TrinomialTreeData) -> float:
    """Price the knock-in twin of ``function`` as vanilla minus knock-out.

    Parity only holds without a rebate.
    """
    if function.rebate != 0.0:
        raise ValueError("knock-in parity requires a zero rebate")
    vanilla = EuropeanVanillaOptionFunction(function.strike, function.time_to_expiry, function.kind)
    return price(vanilla, tree) - price(function, tree)
