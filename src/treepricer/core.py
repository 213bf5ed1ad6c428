from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from . import config
from .lattice import geometric_state_values, node_count, uniform_probabilities


# ---------------------------------------------------------------------------
# Tree data: numeric output of an external tree builder
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class TrinomialTreeData:
    """Recombining trinomial tree with ``n`` steps.

    Parameters
    ----------
    spot : float
        Underlying value at the root.
    down_factor, middle_factor : float
        Geometric placement of the nodes, see ``state_values``.
    discount_factors : array-like, shape (n,)
        Discount factor between layer ``i`` and ``i+1``.
    probabilities : sequence of array-like
        Layer ``i`` is shaped ``(2i+1, 3)``; columns are down, middle, up.

    The tree is validated once here; the backward walk trusts it.
    """
    spot: float
    down_factor: float
    middle_factor: float
    discount_factors: np.ndarray
    probabilities: tuple = field(default=())
    tolerance: float = config.PROBABILITY_TOLERANCE

    def __post_init__(self):
        if self.spot <= 0:
            raise ValueError(f"spot must be positive, got {self.spot}")
        if self.down_factor <= 0:
            raise ValueError(f"down_factor must be positive, got {self.down_factor}")
        if self.middle_factor <= 0:
            raise ValueError(f"middle_factor must be positive, got {self.middle_factor}")

        dfs = np.atleast_1d(np.asarray(self.discount_factors, dtype=float))
        if dfs.ndim != 1:
            raise ValueError("discount_factors must be one-dimensional")
        probs = tuple(np.asarray(p, dtype=float) for p in self.probabilities)
        if len(probs) != dfs.size:
            raise ValueError(
                f"expected {dfs.size} probability layers, got {len(probs)}"
            )
        for i, p in enumerate(probs):
            if p.shape != (node_count(i), 3):
                raise ValueError(
                    f"probability layer {i} must have shape ({node_count(i)}, 3), got {p.shape}"
                )
            if np.any(p < 0.0):
                raise ValueError(f"negative transition probability at layer {i}")
            if np.any(np.abs(p.sum(axis=1) - 1.0) > self.tolerance):
                raise ValueError(f"transition probabilities at layer {i} do not sum to 1")

        object.__setattr__(self, "spot", float(self.spot))
        object.__setattr__(self, "down_factor", float(self.down_factor))
        object.__setattr__(self, "middle_factor", float(self.middle_factor))
        object.__setattr__(self, "discount_factors", dfs)
        object.__setattr__(self, "probabilities", probs)

    @classmethod
    def uniform(
        cls,
        spot: float,
        down_factor: float,
        middle_factor: float,
        discount_factor: float,
        up_probability: float,
        middle_probability: float,
        down_probability: float,
        n_steps: int,
    ) -> TrinomialTreeData:
        """Tree with the same discount factor and probability triple at every node."""
        if n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {n_steps}")
        probs = tuple(
            uniform_probabilities(up_probability, middle_probability, down_probability, node_count(i))
            for i in range(n_steps)
        )
        return cls(
            spot=spot,
            down_factor=down_factor,
            middle_factor=middle_factor,
            discount_factors=np.full(n_steps, float(discount_factor)),
            probabilities=probs,
        )

    @property
    def n_steps(self) -> int:
        return int(self.discount_factors.size)

    def state_values(self, i: int) -> np.ndarray:
        """Spot values at layer ``i``, rebuilt from the factors on every call."""
        return geometric_state_values(self.spot, self.down_factor, self.middle_factor, i)

    def discount_factor(self, i: int) -> float:
        return float(self.discount_factors[i])

    def probability(self, i: int) -> np.ndarray:
        return self.probabilities[i]


def normalize_kind(kind: str) -> str:
    """Map ``call|put|c|p`` (any case) onto ``CALL`` / ``PUT``."""
    s = str(kind).strip().lower()
    if s in {"call", "c"}:
        return CALL
    if s in {"put", "p"}:
        return PUT
    raise ValueError(f"kind must be 'call' or 'put', got {kind!r}")


CALL = "call"
PUT  = "put"
