"""Closed-form upper bound for the next-adjacency probability.

Each of the ``k`` existing mutations has at most two free neighbours, so at
most ``2k`` of the ``n - k`` free positions are adjacent to a mutation.
Boundary positions and mutually adjacent mutations only lower that count,
which makes ``min(2k / (n - k), 1)`` an upper bound.
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from ..errors import InvalidParameter
from ..estimators import AdjacencyEstimator, register_estimator
from ..simulator.sampling import check_sequence_length

__all__ = ["HeuristicBound", "heuristic_bound"]


def _check_domain(n: int, k: int) -> None:
    check_sequence_length(n)
    if k < 0:
        raise InvalidParameter("k", k, "mutation count must be >= 0")
    if n - k <= 0:
        raise InvalidParameter("k", k, f"bound undefined when k >= n (n={n})")


def heuristic_bound(n: int, k: int) -> float:
    """Return ``min(2k / (n - k), 1)``."""
    _check_domain(n, k)
    return min(2 * k / (n - k), 1.0)


@register_estimator
class HeuristicBound(AdjacencyEstimator):
    """Deterministic bound; ignores the trial count and random generator."""

    name = "heuristic"
    label = "heuristic"
    stochastic = False

    def validate(self, n: int, k: int, trials: Optional[int] = None) -> None:
        _check_domain(n, k)

    def bound(self, n: int, k: int) -> float:
        return heuristic_bound(n, k)

    def estimate(
        self,
        n: int,
        k: int,
        trials: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> float:
        return heuristic_bound(n, k)
