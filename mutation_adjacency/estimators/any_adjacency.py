"""Monte Carlo estimate of P(at least one adjacent pair among k mutations)."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..estimators import AdjacencyEstimator, register_estimator
from ..simulator.sampling import (
    batch_rows,
    check_mutation_count,
    check_sequence_length,
    check_trials,
    draw_positions,
    iter_batches,
    make_rng,
)

__all__ = ["AnyAdjacencyEstimator", "any_adjacency_probability"]

log = logging.getLogger(__name__)


def count_any_adjacent(positions: np.ndarray) -> int:
    """Count rows containing two positions that differ by exactly 1.

    Rows with fewer than two columns have no consecutive differences and
    therefore never count.
    """
    gaps = np.diff(np.sort(positions, axis=1), axis=1)
    return int(np.any(gaps == 1, axis=1).sum())


@register_estimator
class AnyAdjacencyEstimator(AdjacencyEstimator):
    """Fraction of trials whose ``k`` sorted positions contain a gap of 1."""

    name = "any"

    def validate(self, n: int, k: int, trials: Optional[int]) -> None:
        check_sequence_length(n)
        check_mutation_count(n, k)
        check_trials(trials)

    def estimate(
        self,
        n: int,
        k: int,
        trials: Optional[int],
        rng: Optional[np.random.Generator] = None,
    ) -> float:
        self.validate(n, k, trials)
        if k <= 1:
            # No pair exists, so nothing to sample.
            return 0.0
        rng = make_rng(rng)

        hits = 0
        for size in iter_batches(trials, batch_rows(self.batch_size, k)):
            hits += count_any_adjacent(draw_positions(rng, n, k, size))
        log.debug("any-adjacency n=%d k=%d: %d/%d hits", n, k, hits, trials)
        return hits / trials


def any_adjacency_probability(
    n: int,
    k: int,
    trials: int,
    rng: Optional[np.random.Generator] = None,
    batch_size: Optional[int] = None,
) -> float:
    """Convenience wrapper around `AnyAdjacencyEstimator.estimate`."""
    est = AnyAdjacencyEstimator() if batch_size is None else AnyAdjacencyEstimator(batch_size)
    return est.estimate(n, k, trials, rng)
