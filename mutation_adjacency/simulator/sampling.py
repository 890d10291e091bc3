"""Parameter checks and uniform sampling of mutation positions.

Positions are the integers ``1..n``.  Each trial draws ``size`` distinct
positions in draw order, every ordered tuple equally likely.  Which sampler
is used depends on ``size`` relative to ``n``:

* ``size**2 <= n``: draw with replacement and redraw the rows that repeat a
  position (most rows are accepted first time);
* ``50 * size < n``: one `Generator.choice` without replacement per row;
* otherwise: the first ``size`` entries of a shuffled ``1..n`` row, with rows
  processed in chunks of at most `MAX_BATCH_CELLS` integers.

Working memory is bounded by `MAX_BATCH_CELLS` plus the returned
``(trials, size)`` array whatever ``n`` is.  Estimators size their batches
with `batch_rows` so the returned array obeys the same cap.
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np

from ..errors import InvalidParameter, SamplingImpossible

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "MAX_BATCH_CELLS",
    "check_sequence_length",
    "check_trials",
    "check_mutation_count",
    "make_rng",
    "batch_rows",
    "iter_batches",
    "draw_positions",
]

DEFAULT_BATCH_SIZE = 10_000
# 16 MB of int64 per working array.
MAX_BATCH_CELLS = 2_000_000


def check_sequence_length(n: int) -> None:
    if n < 1:
        raise InvalidParameter("n", n, "sequence length must be >= 1")


def check_trials(trials: Optional[int]) -> None:
    if trials is None or trials < 1:
        raise InvalidParameter("trials", trials, "trial count must be >= 1")


def check_mutation_count(n: int, k: int, extra: int = 0) -> None:
    """Ensure ``k + extra`` distinct positions can be drawn from ``1..n``."""
    if k < 0:
        raise InvalidParameter("k", k, "mutation count must be >= 0")
    if k + extra > n:
        raise SamplingImpossible("k", k, n=n, size=k + extra)


def make_rng(rng: Optional[np.random.Generator | np.random.SeedSequence | int] = None) -> np.random.Generator:
    """Return a `numpy.random.Generator`, passing existing generators through."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def batch_rows(batch_size: int, size: int) -> int:
    """Trials per batch so that a ``(rows, size)`` sample stays under `MAX_BATCH_CELLS`."""
    return max(1, min(batch_size, MAX_BATCH_CELLS // max(size, 1)))


def iter_batches(trials: int, batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[int]:
    """Yield batch sizes summing to ``trials``."""
    if batch_size < 1:
        raise InvalidParameter("batch_size", batch_size, "must be >= 1")
    remaining = trials
    while remaining > 0:
        size = min(batch_size, remaining)
        yield size
        remaining -= size


def _rows_with_repeats(rows: np.ndarray) -> np.ndarray:
    gaps = np.diff(np.sort(rows, axis=1), axis=1)
    return np.flatnonzero(np.any(gaps == 0, axis=1))


def _draw_by_rejection(rng: np.random.Generator, n: int, size: int, trials: int) -> np.ndarray:
    out = rng.integers(1, n + 1, size=(trials, size), dtype=np.int64)
    redo = _rows_with_repeats(out)
    while redo.size:
        out[redo] = rng.integers(1, n + 1, size=(redo.size, size), dtype=np.int64)
        redo = redo[_rows_with_repeats(out[redo])]
    return out


def _draw_by_choice(rng: np.random.Generator, n: int, size: int, trials: int) -> np.ndarray:
    out = np.empty((trials, size), dtype=np.int64)
    for row in range(trials):
        out[row] = rng.choice(n, size=size, replace=False, shuffle=True)
    return out + 1


def _draw_by_permutation(rng: np.random.Generator, n: int, size: int, trials: int) -> np.ndarray:
    out = np.empty((trials, size), dtype=np.int64)
    chunk = max(1, MAX_BATCH_CELLS // n)
    base = np.arange(1, n + 1, dtype=np.int64)
    for start in range(0, trials, chunk):
        stop = min(start + chunk, trials)
        block = rng.permuted(np.tile(base, (stop - start, 1)), axis=1)
        out[start:stop] = block[:, :size]
    return out


def draw_positions(rng: np.random.Generator, n: int, size: int, trials: int) -> np.ndarray:
    """Draw ``size`` distinct positions from ``1..n`` for each of ``trials`` rows.

    Returns an integer array of shape ``(trials, size)``.  Column order is the
    draw order; every ordered ``size``-tuple of distinct positions is equally
    likely.
    """
    check_mutation_count(n, size)
    if size == 0:
        return np.empty((trials, 0), dtype=np.int64)
    if size * size <= n:
        return _draw_by_rejection(rng, n, size, trials)
    if 50 * size < n:
        return _draw_by_choice(rng, n, size, trials)
    return _draw_by_permutation(rng, n, size, trials)
