"""Shared fixtures: standard trinomial trees and Black-Scholes references."""

import numpy as np
import pytest

from tree_params import K, S0, T, bs_call_put, hull_tree, q, r, sigma


@pytest.fixture(scope="session")
def tree():
    return hull_tree(S0, r, q, sigma, T, 300)


@pytest.fixture(scope="session")
def small_tree():
    return hull_tree(S0, r, q, sigma, T, 50)


@pytest.fixture(scope="session")
def bs_reference():
    return bs_call_put


@pytest.fixture
def rng():
    return np.random.default_rng(42)
