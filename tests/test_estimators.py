"""Checks for the Monte Carlo estimators and the heuristic bound."""
import tracemalloc
from math import comb

import numpy as np
import pytest

from mutation_adjacency.errors import InvalidParameter, SamplingImpossible
from mutation_adjacency.estimators import get_estimator
from mutation_adjacency.estimators.any_adjacency import (
    AnyAdjacencyEstimator,
    any_adjacency_probability,
    count_any_adjacent,
)
from mutation_adjacency.estimators.heuristic import HeuristicBound, heuristic_bound
from mutation_adjacency.estimators.next_adjacency import (
    NextAdjacencyEstimator,
    count_next_adjacent,
    next_adjacency_probability,
)
from mutation_adjacency.simulator.sampling import MAX_BATCH_CELLS, batch_rows, draw_positions, iter_batches


def rng(seed=0):
    return np.random.default_rng(seed)


@pytest.mark.parametrize("estimate", [next_adjacency_probability, any_adjacency_probability])
@pytest.mark.parametrize("n,k", [(1, 0), (2, 1), (10, 3), (10, 9), (105, 11), (105, 60)])
def test_estimate_is_a_probability(estimate, n, k):
    p = estimate(n, k, 500, rng(n + k))
    assert 0.0 <= p <= 1.0


@pytest.mark.parametrize("n", [1, 2, 10, 105])
@pytest.mark.parametrize("k", [0, 1])
def test_any_adjacency_vacuous_for_fewer_than_two(n, k):
    assert any_adjacency_probability(n, k, 100, rng()) == 0.0


def test_any_adjacency_full_sequence_always_adjacent():
    assert any_adjacency_probability(5, 5, 200, rng()) == 1.0


def test_next_adjacency_two_positions():
    # Position 1's only neighbour is 2 and vice versa.
    assert next_adjacency_probability(2, 1, 1000, rng()) == 1.0


def test_next_adjacency_without_prior_mutations():
    assert next_adjacency_probability(10, 0, 1000, rng()) == 0.0


def test_next_adjacency_small_exact_case():
    # n=3, k=1: the middle prior makes every new position adjacent,
    # an end prior only half of them, so P = (1/2 + 1 + 1/2) / 3.
    p = next_adjacency_probability(3, 1, 40000, rng(7))
    assert abs(p - 2 / 3) < 0.02


def test_any_adjacency_small_exact_case():
    # n=4, k=2: 3 of the 6 pairs are adjacent.
    p = any_adjacency_probability(4, 2, 40000, rng(7))
    assert abs(p - 0.5) < 0.02


def test_next_adjacency_reference_value():
    p = next_adjacency_probability(105, 11, 100000, rng(12345))
    assert abs(p - 0.1998) < 0.01


def test_any_adjacency_reference_value():
    p = any_adjacency_probability(105, 11, 20000, rng(12345))
    assert abs(p - 0.695) < 0.05


@pytest.mark.parametrize("n,k", [(30, 1), (30, 5), (30, 9), (105, 5), (105, 20), (105, 34)])
def test_heuristic_bounds_next_adjacency(n, k):
    p = next_adjacency_probability(n, k, 20000, rng(n * 100 + k))
    assert heuristic_bound(n, k) >= p - 0.02


def test_any_adjacency_increases_with_k():
    ks = [2, 4, 6, 8, 12]
    estimates = [any_adjacency_probability(50, k, 20000, rng(k)) for k in ks]
    for lower, higher in zip(estimates, estimates[1:]):
        assert higher >= lower - 0.02


@pytest.mark.parametrize("estimate", [next_adjacency_probability, any_adjacency_probability])
def test_fixed_seed_is_deterministic(estimate):
    a = estimate(105, 11, 5000, rng(99))
    b = estimate(105, 11, 5000, rng(99))
    assert a == b


def test_batching_does_not_change_trial_count():
    assert list(iter_batches(25, 10)) == [10, 10, 5]
    p = NextAdjacencyEstimator(batch_size=7).estimate(20, 4, 50, rng())
    # 50 trials means the estimate is a multiple of 1/50.
    assert np.isclose(p * 50, round(p * 50))


def test_heuristic_exact_value():
    assert heuristic_bound(105, 11) == 22 / 94
    assert np.isclose(heuristic_bound(105, 11), 0.2340, atol=1e-4)


def test_heuristic_saturates_and_vanishes():
    assert heuristic_bound(10, 5) == 1.0
    assert heuristic_bound(10, 0) == 0.0


def test_heuristic_estimator_ignores_trials_and_rng():
    est = get_estimator("heuristic")()
    assert isinstance(est, HeuristicBound)
    assert est.estimate(105, 11, None) == est.bound(105, 11) == 22 / 94
    assert not est.stochastic


@pytest.mark.parametrize(
    "call",
    [
        lambda: next_adjacency_probability(5, 5, 10),
        lambda: any_adjacency_probability(5, 6, 10),
    ],
)
def test_too_many_positions_is_sampling_impossible(call):
    with pytest.raises(SamplingImpossible):
        call()


@pytest.mark.parametrize(
    "call",
    [
        lambda: next_adjacency_probability(0, 0, 10),
        lambda: next_adjacency_probability(10, -1, 10),
        lambda: next_adjacency_probability(10, 2, 0),
        lambda: any_adjacency_probability(10, 2, 0),
        lambda: heuristic_bound(11, 11),
        lambda: heuristic_bound(5, 8),
    ],
)
def test_invalid_parameters(call):
    with pytest.raises(InvalidParameter):
        call()


def test_error_message_names_parameter():
    with pytest.raises(InvalidParameter) as info:
        NextAdjacencyEstimator().validate(10, 10, 100)
    assert info.value.param == "k"
    assert "invalid k=10" in str(info.value)
    assert isinstance(info.value, ValueError)


def test_registry_names():
    assert get_estimator("next") is NextAdjacencyEstimator
    assert get_estimator("any") is AnyAdjacencyEstimator
    with pytest.raises(KeyError):
        get_estimator("nope")


def test_draw_positions_are_distinct_and_in_range():
    sample = draw_positions(rng(3), 12, 5, 200)
    assert sample.shape == (200, 5)
    assert sample.min() >= 1 and sample.max() <= 12
    assert all(len(set(row)) == 5 for row in sample)


def test_count_helpers():
    rows = np.array([
        [3, 7, 4],   # 4 next to 3
        [1, 9, 5],   # no neighbour of 5
        [10, 1, 2],  # 2 next to 1
    ])
    assert count_next_adjacent(rows) == 2
    assert count_any_adjacent(rows) == 2
    assert count_any_adjacent(np.empty((4, 1), dtype=int)) == 0
    assert count_any_adjacent(np.empty((4, 0), dtype=int)) == 0


@pytest.mark.parametrize(
    "n,size,trials",
    [
        (200_000, 3, 300),   # size**2 <= n: rejection
        (100_000, 500, 40),  # 50 * size < n: per-row choice
        (30, 12, 300),       # shuffled rows
        (8, 8, 50),          # full permutations
    ],
)
def test_every_sampler_draws_distinct_positions(n, size, trials):
    sample = draw_positions(rng(size), n, size, trials)
    assert sample.shape == (trials, size)
    assert sample.min() >= 1 and sample.max() <= n
    assert all(len(np.unique(row)) == size for row in sample)


def test_draw_positions_empty_rows():
    assert draw_positions(rng(), 10, 0, 7).shape == (7, 0)


def test_batch_rows_caps_sample_cells():
    assert batch_rows(10_000, 3) == 10_000
    assert batch_rows(10_000, 1000) == MAX_BATCH_CELLS // 1000
    assert batch_rows(10_000, 10 * MAX_BATCH_CELLS) == 1
    assert batch_rows(10_000, 0) == 10_000


def test_rejection_sampler_matches_exact_value():
    # P(no adjacent pair) = C(n - k + 1, k) / C(n, k)
    n, k = 400, 15
    exact = 1 - comb(n - k + 1, k) / comb(n, k)
    p = any_adjacency_probability(n, k, 20000, rng(21))
    assert abs(p - exact) < 0.02


def test_choice_sampler_matches_exact_value():
    # With no prior mutation at an end, P(next adjacent) is close to 2k / (n - k).
    n, k = 100_000, 400
    p = next_adjacency_probability(n, k, 3000, rng(5))
    assert abs(p - 2 * k / (n - k)) < 0.01


@pytest.mark.parametrize("estimate,k", [(next_adjacency_probability, 2), (any_adjacency_probability, 600)])
def test_long_sequences_keep_memory_bounded(estimate, k):
    tracemalloc.start()
    try:
        p = estimate(200_000, k, 500, rng(0))
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    assert 0.0 <= p <= 1.0
    assert peak < 64 * 2**20
