"""Option functions driven by the trinomial backward induction.

An option function knows two things about a contract: its value at expiry
given the terminal state values, and how to step values back one layer.
The default step is the discounted risk-neutral expectation over the three
successor nodes; products with early exercise, barriers or path dependence
override ``next_layer_values`` and leave the driver untouched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from .core import CALL, normalize_kind
from .lattice import (
    check_layer,
    discounted_expectation,
    geometric_state_values,
    node_count,
    uniform_probabilities,
)

__all__ = [
    "OptionFunction",
    "EuropeanVanillaOptionFunction",
    "AmericanVanillaOptionFunction",
    "DigitalOptionFunction",
]


class OptionFunction(ABC):
    """Payoff and continuation rules for one contract."""

    def __init__(self, strike: float, time_to_expiry: float):
        if strike <= 0:
            raise ValueError(f"strike must be positive, got {strike}")
        if time_to_expiry <= 0:
            raise ValueError(f"time_to_expiry must be positive, got {time_to_expiry}")
        self._strike = float(strike)
        self._time_to_expiry = float(time_to_expiry)

    @property
    def strike(self) -> float:
        return self._strike

    @property
    def time_to_expiry(self) -> float:
        return self._time_to_expiry

    @abstractmethod
    def payoff_at_expiry(self, state_values: np.ndarray, n_steps: int):
        """Option values at the ``2n+1`` expiry nodes."""

    def payoff_from_factors(
        self, spot: float, down_factor: float, middle_factor: float, n_steps: int
    ):
        """Rebuild the expiry state values geometrically, then price the payoff."""
        state_values = geometric_state_values(spot, down_factor, middle_factor, n_steps)
        return self.payoff_at_expiry(state_values, n_steps)

    def next_layer_values(
        self,
        discount_factor: float,
        transition_probability: np.ndarray,
        state_values: np.ndarray,
        values,
        i: int,
    ):
        """Values at layer ``i`` from the ``2i+3`` values at layer ``i+1``.

        Path-dependent products override this method.
        """
        check_layer(transition_probability, state_values, values, i)
        return discounted_expectation(discount_factor, transition_probability, values)

    def next_layer_values_uniform(
        self,
        discount_factor: float,
        up_probability: float,
        middle_probability: float,
        down_probability: float,
        values,
        spot: float,
        down_factor: float,
        middle_factor: float,
        i: int,
    ):
        """Same as ``next_layer_values`` with one probability triple for every node."""
        probs = uniform_probabilities(
            up_probability, middle_probability, down_probability, node_count(i)
        )
        state_values = geometric_state_values(spot, down_factor, middle_factor, i)
        return self.next_layer_values(discount_factor, probs, state_values, values, i)

    def root_value(self, values) -> float:
        """Price held by the single node at layer 0."""
        return float(values[0])

    def __repr__(self):
        return (
            f"{type(self).__name__}(strike={self.strike}, "
            f"time_to_expiry={self.time_to_expiry})"
        )


# ---------------------------------------------------------------------------
# Vanilla payoffs
# ---------------------------------------------------------------------------
class EuropeanVanillaOptionFunction(OptionFunction):
    """Plain call or put exercisable at expiry only."""

    def __init__(self, strike: float, time_to_expiry: float, kind: str = CALL):
        super().__init__(strike, time_to_expiry)
        self.kind = normalize_kind(kind)

    def intrinsic(self, state_values: np.ndarray) -> np.ndarray:
        s = np.asarray(state_values, dtype=float)
        if self.kind == CALL:
            return np.maximum(s - self.strike, 0.0)
        return np.maximum(self.strike - s, 0.0)

    def payoff_at_expiry(self, state_values, n_steps):
        return self.intrinsic(state_values)

    def __repr__(self):
        return (
            f"{type(self).__name__}(strike={self.strike}, "
            f"time_to_expiry={self.time_to_expiry}, kind={self.kind!r})"
        )


class AmericanVanillaOptionFunction(EuropeanVanillaOptionFunction):
    """Call or put exercisable at every node."""

    def next_layer_values(self, discount_factor, transition_probability, state_values, values, i):
        continuation = super().next_layer_values(
            discount_factor, transition_probability, state_values, values, i
        )
        return np.maximum(continuation, self.intrinsic(state_values))


class DigitalOptionFunction(EuropeanVanillaOptionFunction):
    """Cash-or-nothing: pays ``payout`` when in the money at expiry."""

    def __init__(self, strike: float, time_to_expiry: float, kind: str = CALL,
                 payout: float = 1.0):
        super().__init__(strike, time_to_expiry, kind)
        self.payout = float(payout)

    def payoff_at_expiry(self, state_values, n_steps):
        s = np.asarray(state_values, dtype=float)
        hit = s > self.strike if self.kind == CALL else s < self.strike
        return np.where(hit, self.payout, 0.0)
