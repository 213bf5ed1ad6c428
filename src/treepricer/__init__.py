# treepricer: trinomial tree option pricing
# Public API

# Tree data
from .core import TrinomialTreeData, CALL, PUT, normalize_kind

# Lattice utilities
from .lattice import (
    node_count, geometric_state_values, uniform_probabilities,
    discounted_expectation, check_layer,
)

# Option functions
from .functions import (
    OptionFunction, EuropeanVanillaOptionFunction,
    AmericanVanillaOptionFunction, DigitalOptionFunction,
)
from .barrier import KnockOutBarrierOptionFunction, knock_in_price
from .asian import AsianOptionFunction, AveragingLayer

# Backward induction
from .tree import (
    PricingTimeoutError, price, all_layer_values, tree_greeks, price_many,
)

__all__ = [
    # Tree data
    "TrinomialTreeData", "CALL", "PUT", "normalize_kind",
    # Lattice
    "node_count", "geometric_state_values", "uniform_probabilities",
    "discounted_expectation", "check_layer",
    # Option functions
    "OptionFunction", "EuropeanVanillaOptionFunction",
    "AmericanVanillaOptionFunction", "DigitalOptionFunction",
    "KnockOutBarrierOptionFunction", "knock_in_price",
    "AsianOptionFunction", "AveragingLayer",
    # Backward induction
    "PricingTimeoutError", "price", "all_layer_values", "tree_greeks",
    "price_many",
]

__version__ = "0.1.0"
