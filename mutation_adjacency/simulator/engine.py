"""Execution engine that evaluates a single estimator at a single sweep point."""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import numpy as np

from ..estimators import AdjacencyEstimator, get_estimator
from .sampling import DEFAULT_BATCH_SIZE

__all__ = ["SweepPoint", "EstimateResult", "run_once", "binomial_stderr"]


@dataclass(frozen=True)
class SweepPoint:
    """One unit of sweep work.  Picklable so it can be shipped to worker processes."""

    estimator: str
    n: int
    k: int
    trials: Optional[int]
    seed: Optional[np.random.SeedSequence] = None
    batch_size: int = DEFAULT_BATCH_SIZE

    def build(self) -> AdjacencyEstimator:
        return get_estimator(self.estimator)(batch_size=self.batch_size)


@dataclass
class EstimateResult:
    """Container returned by `run_once`.

    ``probability`` is ``None`` and ``error`` holds the failure message when
    the point could not be computed.
    """

    estimator: str
    label: str
    n: int
    k: int
    trials: Optional[int]
    probability: Optional[float]
    stderr: Optional[float] = None
    runtime_s: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, point: SweepPoint, failure: BaseException) -> "EstimateResult":
        try:
            label = get_estimator(point.estimator).label
        except KeyError:
            label = "unknown"
        return cls(
            estimator=point.estimator,
            label=label,
            n=point.n,
            k=point.k,
            trials=point.trials,
            probability=None,
            error=str(failure),
        )

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["type"] = row.pop("label")
        return row


def binomial_stderr(p: float, trials: int) -> float:
    """Standard error of a proportion estimated from ``trials`` Bernoulli draws."""
    return math.sqrt(p * (1.0 - p) / trials)


# ------------------------------------------------------------------
# Engine entry-point
# ------------------------------------------------------------------

def run_once(point: SweepPoint) -> EstimateResult:
    """Evaluate one sweep point with its own random stream."""
    est = point.build()
    rng = np.random.default_rng(point.seed)

    t0 = time.perf_counter()
    p = est.estimate(point.n, point.k, point.trials, rng)
    runtime = time.perf_counter() - t0

    stderr = binomial_stderr(p, point.trials) if est.stochastic else None
    return EstimateResult(
        estimator=point.estimator,
        label=est.label,
        n=point.n,
        k=point.k,
        trials=point.trials if est.stochastic else None,
        probability=p,
        stderr=stderr,
        runtime_s=runtime,
    )
