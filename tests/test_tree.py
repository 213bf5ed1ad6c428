"""Tests for the backward-induction driver."""

import math

import numpy as np
import pytest
from scipy.stats import norm

from treepricer import (
    CALL,
    PUT,
    AmericanVanillaOptionFunction,
    EuropeanVanillaOptionFunction,
    OptionFunction,
    PricingTimeoutError,
    TrinomialTreeData,
    all_layer_values,
    price,
    price_many,
    tree_greeks,
)
from tree_params import K, S0, T, q, r, sigma


class _FixedPayoff(OptionFunction):
    """Expiry values supplied verbatim, default continuation."""

    def __init__(self, payoff):
        super().__init__(100.0, 1.0)
        self.payoff = np.asarray(payoff, dtype=float)

    def payoff_at_expiry(self, state_values, n_steps):
        return self.payoff.copy()


# ---------------------------------------------------------------------------
# Degenerate and hand-checked trees
# ---------------------------------------------------------------------------
class TestSmallTrees:
    def test_zero_steps_returns_payoff(self):
        tree = TrinomialTreeData.uniform(120.0, 0.9, 1.0, 0.99, 0.25, 0.5, 0.25, 0)
        f = EuropeanVanillaOptionFunction(100.0, 1.0, CALL)
        assert price(f, tree) == pytest.approx(20.0)
        layers = all_layer_values(f, tree)
        assert len(layers) == 1
        assert layers[0].shape == (1,)

    def test_one_step_scenario(self):
        tree = TrinomialTreeData.uniform(100.0, 0.9, 1.0, 0.99, 0.25, 0.5, 0.25, 1)
        assert price(_FixedPayoff([9.0, 10.0, 12.0]), tree) == pytest.approx(10.1475)

    @pytest.mark.parametrize("n", [1, 2, 10, 75])
    def test_zero_volatility(self, n):
        tree = TrinomialTreeData.uniform(100.0, 1.0, 1.0, 0.99, 0.0, 1.0, 0.0, n)
        f = EuropeanVanillaOptionFunction(90.0, 1.0, CALL)
        assert price(f, tree) == pytest.approx(0.99 ** n * 10.0)

    def test_integer_factors(self):
        tree = TrinomialTreeData.uniform(100, 1, 1, 0.99, 0.0, 1.0, 0.0, 2)
        assert isinstance(tree.down_factor, float)
        f = EuropeanVanillaOptionFunction(90, 1, CALL)
        assert price(f, tree) == pytest.approx(0.99 ** 2 * 10.0)

    def test_per_layer_discounting(self):
        probs = [np.tile((0.0, 1.0, 0.0), (2 * i + 1, 1)) for i in range(3)]
        tree = TrinomialTreeData(100.0, 1.0, 1.0, [0.99, 0.98, 0.97], probs)
        f = EuropeanVanillaOptionFunction(90.0, 1.0, CALL)
        assert price(f, tree) == pytest.approx(0.99 * 0.98 * 0.97 * 10.0)

    def test_nan_discount_propagates(self):
        tree = TrinomialTreeData.uniform(100.0, 0.9, 1.0, float("nan"), 0.25, 0.5, 0.25, 3)
        f = EuropeanVanillaOptionFunction(100.0, 1.0, CALL)
        assert math.isnan(price(f, tree))


# ---------------------------------------------------------------------------
# Convergence on a standard tree
# ---------------------------------------------------------------------------
class TestConvergence:
    def test_european_call_vs_black_scholes(self, tree, bs_reference):
        call, _ = bs_reference(S0, K, T, r, q, sigma)
        assert price(EuropeanVanillaOptionFunction(K, T, CALL), tree) == pytest.approx(call, abs=0.03)

    def test_european_put_vs_black_scholes(self, tree, bs_reference):
        _, put = bs_reference(S0, K, T, r, q, sigma)
        assert price(EuropeanVanillaOptionFunction(K, T, PUT), tree) == pytest.approx(put, abs=0.03)

    def test_put_call_parity(self, tree):
        call = price(EuropeanVanillaOptionFunction(K, T, CALL), tree)
        put = price(EuropeanVanillaOptionFunction(K, T, PUT), tree)
        assert call - put == pytest.approx(S0 - K * math.exp(-r * T), abs=1e-3)

    def test_american_put_above_european(self, tree):
        euro = price(EuropeanVanillaOptionFunction(K, T, PUT), tree)
        amer = price(AmericanVanillaOptionFunction(K, T, PUT), tree)
        assert amer > euro

    def test_american_call_equals_european_without_dividends(self, tree):
        euro = price(EuropeanVanillaOptionFunction(K, T, CALL), tree)
        amer = price(AmericanVanillaOptionFunction(K, T, CALL), tree)
        assert amer == pytest.approx(euro, abs=1e-8)


# ---------------------------------------------------------------------------
# Layers and Greeks
# ---------------------------------------------------------------------------
class TestLayers:
    def test_layer_shapes(self, small_tree):
        layers = all_layer_values(EuropeanVanillaOptionFunction(K, T, CALL), small_tree)
        assert len(layers) == small_tree.n_steps + 1
        for i, layer in enumerate(layers):
            assert layer.shape == (2 * i + 1,)

    def test_root_matches_price(self, small_tree):
        f = AmericanVanillaOptionFunction(K, T, PUT)
        assert all_layer_values(f, small_tree)[0][0] == price(f, small_tree)

    def test_greeks_vs_black_scholes(self, tree):
        g = tree_greeks(EuropeanVanillaOptionFunction(K, T, CALL), tree)
        sqrt_t = math.sqrt(T)
        d1 = (math.log(S0 / K) + (r - q + 0.5 * sigma ** 2) * T) / (sigma * sqrt_t)
        nd1 = math.exp(-0.5 * d1 * d1) / math.sqrt(2.0 * math.pi)
        assert g["delta"] == pytest.approx(norm.cdf(d1), abs=0.01)
        assert g["gamma"] == pytest.approx(nd1 / (S0 * sigma * sqrt_t), abs=0.002)
        assert g["theta"] < 0.0
        assert g["price"] == pytest.approx(price(EuropeanVanillaOptionFunction(K, T, CALL), tree))

    def test_greeks_need_two_steps(self):
        tree = TrinomialTreeData.uniform(100.0, 0.9, 1.0, 0.99, 0.25, 0.5, 0.25, 1)
        with pytest.raises(ValueError):
            tree_greeks(EuropeanVanillaOptionFunction(K, T, CALL), tree)


# ---------------------------------------------------------------------------
# Batch pricing and time-boxing
# ---------------------------------------------------------------------------
class TestPriceMany:
    def test_matches_sequential(self, small_tree):
        functions = [
            EuropeanVanillaOptionFunction(k, T, kind)
            for k in (90.0, 100.0, 110.0) for kind in (CALL, PUT)
        ]
        functions.append(AmericanVanillaOptionFunction(110.0, T, PUT))
        got = price_many(functions, small_tree, max_workers=4)
        expected = [price(f, small_tree) for f in functions]
        np.testing.assert_array_equal(got, expected)

    def test_empty(self, small_tree):
        assert price_many([], small_tree).shape == (0,)


class TestTimeout:
    def test_zero_timeout_raises(self, small_tree):
        with pytest.raises(PricingTimeoutError):
            price(EuropeanVanillaOptionFunction(K, T, CALL), small_tree, timeout=0.0)

    def test_is_timeout_error(self):
        assert issubclass(PricingTimeoutError, TimeoutError)

    def test_generous_timeout_prices(self, small_tree):
        f = EuropeanVanillaOptionFunction(K, T, CALL)
        assert price(f, small_tree, timeout=60.0) == price(f, small_tree)
