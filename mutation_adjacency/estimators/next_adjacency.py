"""Monte Carlo estimate of P(next mutation lands next to an existing one).

Each trial draws ``k + 1`` distinct positions distributed as the prefix of a uniform
random permutation of ``1..n``.  The first ``k`` entries are the prior
mutations and the last entry is the new one.  Because every ordered tuple of
distinct positions is equally likely, this is the same distribution as
drawing ``k`` priors uniformly and then one new position uniformly from the
``n - k`` positions still free.
"""
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

__all__ = ["NextAdjacencyEstimator", "next_adjacency_probability"]

log = logging.getLogger(__name__)


def count_next_adjacent(positions: np.ndarray) -> int:
    """Count rows whose last column sits at distance 1 from any earlier column."""
    prior = positions[:, :-1]
    new = positions[:, -1:]
    return int(np.any(np.abs(prior - new) == 1, axis=1).sum())


@register_estimator
class NextAdjacencyEstimator(AdjacencyEstimator):
    """Fraction of trials in which mutation ``k + 1`` is adjacent to one of the first ``k``."""

    name = "next"

    def validate(self, n: int, k: int, trials: Optional[int]) -> None:
        check_sequence_length(n)
        check_mutation_count(n, k, extra=1)
        check_trials(trials)

    def estimate(
        self,
        n: int,
        k: int,
        trials: Optional[int],
        rng: Optional[np.random.Generator] = None,
    ) -> float:
        self.validate(n, k, trials)
        rng = make_rng(rng)

        hits = 0
        for size in iter_batches(trials, batch_rows(self.batch_size, k + 1)):
            hits += count_next_adjacent(draw_positions(rng, n, k + 1, size))
        log.debug("next-adjacency n=%d k=%d: %d/%d hits", n, k, hits, trials)
        return hits / trials


def next_adjacency_probability(
    n: int,
    k: int,
    trials: int,
    rng: Optional[np.random.Generator] = None,
    batch_size: Optional[int] = None,
) -> float:
    """Convenience wrapper around `NextAdjacencyEstimator.estimate`."""
    est = NextAdjacencyEstimator() if batch_size is None else NextAdjacencyEstimator(batch_size)
    return est.estimate(n, k, trials, rng)
