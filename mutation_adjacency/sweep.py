"""Sweep driver and result tables.

A sweep evaluates one estimator at every requested ``k`` (and optionally
every ``n``), one independent random stream per point, and returns the
results in input order.  Tables from different estimators are stacked with
`pd.concat` and told apart by their ``type`` and ``estimator`` columns, so
they may have different row counts.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import SweepConfig
from .estimators import AdjacencyEstimator, get_estimator
from .errors import TaskFailure
from .parallel import run_batch
from .simulator.engine import EstimateResult, SweepPoint, run_once
from .simulator.sampling import DEFAULT_BATCH_SIZE, check_trials

__all__ = [
    "TABLE_COLUMNS",
    "sweep",
    "sweep_grid",
    "run_sweep",
    "results_to_frame",
    "combine_tables",
    "write_table",
    "read_table",
    "format_table",
]

log = logging.getLogger(__name__)

TABLE_COLUMNS = ["n", "k", "probability", "stderr", "type", "estimator", "trials", "error"]

EstimatorLike = Union[str, AdjacencyEstimator]


def _resolve_name(estimator: EstimatorLike) -> str:
    if isinstance(estimator, AdjacencyEstimator):
        return estimator.registry_key()
    return estimator


def _build_points(
    estimator: EstimatorLike,
    pairs: Sequence[tuple[int, int]],
    trials: Optional[int],
    seed: Optional[int | np.random.SeedSequence],
    batch_size: int,
) -> List[SweepPoint]:
    """Validate every (n, k) pair up front and attach one seed stream per point.

    Points carry the estimator by registry name, so instances must be of a
    registered class.
    """
    name = _resolve_name(estimator)
    est_cls = get_estimator(name)
    if isinstance(estimator, AdjacencyEstimator):
        est = estimator
        batch_size = estimator.batch_size
    else:
        est = est_cls(batch_size=batch_size)
    if est.stochastic:
        check_trials(trials)
    for n, k in pairs:
        est.validate(n, k, trials)

    root = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    streams = root.spawn(len(pairs))
    return [
        SweepPoint(name, n, k, trials, seed=stream, batch_size=batch_size)
        for (n, k), stream in zip(pairs, streams)
    ]


def _run_serial(points: Iterable[SweepPoint]) -> List[EstimateResult]:
    results = []
    for point in points:
        try:
            results.append(run_once(point))
        except Exception as exc:  # pylint: disable=broad-except
            failure = TaskFailure(point.n, point.k, cause=exc)
            log.warning("%s", failure)
            results.append(EstimateResult.failed(point, failure))
    return results


def _run_points(
    points: List[SweepPoint],
    parallel: bool,
    processes: Optional[int],
    timeout: Optional[float],
) -> List[EstimateResult]:
    if parallel and len(points) > 1:
        log.info("Running %d sweep points on a process pool", len(points))
        return run_batch(points, processes=processes, timeout=timeout)
    log.info("Running %d sweep points serially", len(points))
    return _run_serial(points)


# ------------------------------------------------------------------
# Public sweep API
# ------------------------------------------------------------------

def sweep(
    estimator: EstimatorLike,
    n: int,
    k_values: Sequence[int],
    trials: Optional[int] = None,
    *,
    seed: Optional[int | np.random.SeedSequence] = None,
    parallel: bool = False,
    processes: Optional[int] = None,
    timeout: Optional[float] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[EstimateResult]:
    """Evaluate ``estimator`` at ``(n, k)`` for each k, in the order given.

    Raises `InvalidParameter` before any work if some point is invalid.
    Points that fail while running are returned with ``error`` set.
    """
    pairs = [(n, int(k)) for k in k_values]
    points = _build_points(estimator, pairs, trials, seed, batch_size)
    return _run_points(points, parallel, processes, timeout)


def sweep_grid(
    estimator: EstimatorLike,
    n_values: Sequence[int],
    k_values: Sequence[int],
    trials: Optional[int] = None,
    *,
    seed: Optional[int | np.random.SeedSequence] = None,
    parallel: bool = False,
    processes: Optional[int] = None,
    timeout: Optional[float] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[EstimateResult]:
    """Like `sweep` over every (n, k), n-major, keeping both input orders."""
    pairs = [(int(n), int(k)) for n in n_values for k in k_values]
    points = _build_points(estimator, pairs, trials, seed, batch_size)
    return _run_points(points, parallel, processes, timeout)


def run_sweep(cfg: SweepConfig) -> pd.DataFrame:
    """Run the sweep described by ``cfg`` and return one combined table."""
    log.info("Starting sweep: %s", cfg)
    root = cfg.seed_sequence()
    sim_seed, bound_seed = root.spawn(2)

    results = sweep_grid(
        cfg.mode,
        cfg.n_values,
        cfg.k_values,
        cfg.trials,
        seed=sim_seed,
        parallel=cfg.parallel,
        processes=cfg.processes,
        timeout=cfg.timeout_s,
        batch_size=cfg.batch_size,
    )
    tables = [results_to_frame(results)]

    if cfg.with_heuristic:
        # Sweep validation above already guarantees k < n for every point.
        bound_results: List[EstimateResult] = []
        for n in cfg.n_values:
            bound_results.extend(sweep("heuristic", n, cfg.k_values, seed=bound_seed))
        tables.append(results_to_frame(bound_results))

    table = combine_tables(*tables)
    n_failed = int(table["error"].notna().sum())
    if n_failed:
        log.warning("%d of %d sweep points failed", n_failed, len(table))
    return table


# ------------------------------------------------------------------
# Table helpers
# ------------------------------------------------------------------

def results_to_frame(results: Iterable[EstimateResult]) -> pd.DataFrame:
    """Turn estimate results into a table with `TABLE_COLUMNS`, preserving order."""
    rows = [r.as_row() for r in results]
    df = pd.DataFrame(rows, columns=TABLE_COLUMNS + ["runtime_s"])
    df["probability"] = df["probability"].astype(float)
    df["stderr"] = df["stderr"].astype(float)
    return df


def combine_tables(*frames: pd.DataFrame) -> pd.DataFrame:
    """Stack tables from different sources; rows are never merged."""
    frames = [f for f in frames if f is not None and not f.empty]
    if not frames:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.concat(frames, ignore_index=True)


def _separator(path: os.PathLike | str) -> str:
    return "\t" if Path(path).suffix.lower() == ".tsv" else ","


def write_table(df: pd.DataFrame, path: os.PathLike | str) -> Path:
    """Write a sweep table as delimited text (tab for ``.tsv``, comma otherwise)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, sep=_separator(path), index=False)
    log.info("Sweep table written to %s", path)
    return path


def read_table(path: os.PathLike | str) -> pd.DataFrame:
    df = pd.read_csv(path, sep=_separator(path))
    missing = [c for c in ("k", "probability", "type") if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is not a sweep table (missing columns {missing})")
    return df


def format_table(df: pd.DataFrame) -> str:
    """Human-readable rendering of a sweep table for the terminal."""
    shown = [c for c in TABLE_COLUMNS if c in df.columns]
    out = df[shown].copy()
    out["probability"] = out["probability"].map(lambda p: "" if pd.isna(p) else f"{p:.5g}")
    out["stderr"] = out["stderr"].map(lambda s: "" if pd.isna(s) else f"{s:.2g}")
    out["trials"] = out["trials"].map(lambda t: "" if pd.isna(t) else str(int(t)))
    out["error"] = out["error"].fillna("")
    if not out["error"].astype(bool).any():
        out = out.drop(columns="error")
    return out.to_string(index=False)
