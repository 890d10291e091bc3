"""Command-line interface entry-point.

Usage examples
--------------
Single estimates:
    mutation-adjacency next-adjacency --n 105 --k 11 --trials 100000
    mutation-adjacency any-adjacency --n 105 --k 11 --trials 1000
    mutation-adjacency heuristic --n 105 --k 11

Sweep k = 0..104 in parallel and keep the table for plotting:
    mutation-adjacency sweep --mode next --n 105 --k-min 0 --k-max 104 \
        --trials 100000 --parallel --with-heuristic --output results/next.csv
    mutation-adjacency plot --input results/next.csv --output figs/next
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import numpy as np
import yaml

from .config import SWEEP_MODES, SweepConfig
from .errors import InvalidParameter
from .estimators.any_adjacency import any_adjacency_probability
from .estimators.heuristic import heuristic_bound
from .estimators.next_adjacency import next_adjacency_probability
from .sweep import format_table, read_table, run_sweep, write_table

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_POINT_FAILURES = 1
EXIT_INVALID_PARAMETER = 2


def _parse_args(argv: List[str] | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mutation-adjacency",
        description="Monte Carlo estimates of mutation adjacency probabilities",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG-level logging")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # ------------------------------------------------------------------
    # single estimates
    # ------------------------------------------------------------------
    p_next = subparsers.add_parser("next-adjacency", help="P(next mutation adjacent to one of k)")
    p_any = subparsers.add_parser("any-adjacency", help="P(some adjacent pair among k mutations)")
    for p in (p_next, p_any):
        p.add_argument("--n", type=int, required=True, help="Sequence length")
        p.add_argument("--k", type=int, required=True, help="Number of existing mutations")
        p.add_argument("--trials", type=int, required=True, help="Monte Carlo trials (G)")
        p.add_argument("--seed", type=int, default=None, help="Random seed")

    p_bound = subparsers.add_parser("heuristic", help="Closed-form bound min(2k/(n-k), 1)")
    p_bound.add_argument("--n", type=int, required=True, help="Sequence length")
    p_bound.add_argument("--k", type=int, required=True, help="Number of existing mutations")

    # ------------------------------------------------------------------
    # sweep
    # ------------------------------------------------------------------
    p_sweep = subparsers.add_parser("sweep", help="Run an estimator over a range of k")
    p_sweep.add_argument("--config", type=Path, default=None, help="YAML sweep config; flags override it")
    p_sweep.add_argument("--mode", choices=SWEEP_MODES, default=None, help="Estimator to sweep")
    p_sweep.add_argument("--n", type=int, nargs="+", default=None, help="Sequence length(s)")
    p_sweep.add_argument("--k-min", type=int, default=None, help="Smallest k (inclusive)")
    p_sweep.add_argument("--k-max", type=int, default=None, help="Largest k (inclusive)")
    p_sweep.add_argument("--trials", type=int, default=None, help="Monte Carlo trials (G) per point")
    p_sweep.add_argument("--seed", type=int, default=None, help="Root random seed")
    p_sweep.add_argument("--parallel", action="store_true", default=None, help="Use a process pool")
    p_sweep.add_argument("--processes", type=int, default=None, help="Number of worker processes")
    p_sweep.add_argument("--timeout", type=float, default=None, help="Seconds before unfinished points time out")
    p_sweep.add_argument("--batch-size", type=int, default=None, help="Trials per vectorised batch")
    p_sweep.add_argument("--with-heuristic", action="store_true", default=None, help="Append heuristic-bound rows (mode next only)")
    p_sweep.add_argument("--output", type=Path, default=None, help="Write the table to a .csv/.tsv file")

    # ------------------------------------------------------------------
    # plot
    # ------------------------------------------------------------------
    p_plot = subparsers.add_parser("plot", help="Plot a saved sweep table")
    p_plot.add_argument("--input", type=Path, required=True, help="Sweep table (.csv/.tsv)")
    p_plot.add_argument("--output", type=Path, default=None, help="Image path stem (PNG and SVG); shows a window if omitted")
    p_plot.add_argument("--title", type=str, default=None, help="Plot title")
    p_plot.add_argument("--gap", action="store_true", help="Plot bound minus estimate instead")
    return parser


def _sweep_config(args: argparse.Namespace) -> SweepConfig:
    overrides = {
        "mode": args.mode,
        "n_values": args.n,
        "k_min": args.k_min,
        "k_max": args.k_max,
        "trials": args.trials,
        "seed": args.seed,
        "parallel": args.parallel,
        "processes": args.processes,
        "timeout_s": args.timeout,
        "batch_size": args.batch_size,
        "with_heuristic": args.with_heuristic,
    }
    if args.config is not None:
        return SweepConfig.from_yaml(args.config, **overrides)

    missing = [flag for flag, value in (("--n", args.n), ("--k-min", args.k_min),
                                        ("--k-max", args.k_max), ("--trials", args.trials)) if value is None]
    if missing:
        raise InvalidParameter(missing[0].lstrip("-").replace("-", "_"), None, "required without --config")
    return SweepConfig(**{key: value for key, value in overrides.items() if value is not None})


def _run(args: argparse.Namespace) -> int:
    if args.cmd in ("next-adjacency", "any-adjacency"):
        estimate = next_adjacency_probability if args.cmd == "next-adjacency" else any_adjacency_probability
        rng = np.random.default_rng(args.seed)
        print(f"{estimate(args.n, args.k, args.trials, rng):.5g}")
        return EXIT_OK

    if args.cmd == "heuristic":
        print(f"{heuristic_bound(args.n, args.k):.5g}")
        return EXIT_OK

    if args.cmd == "sweep":
        cfg = _sweep_config(args)
        table = run_sweep(cfg)
        print(format_table(table))
        if args.output is not None:
            path = write_table(table, args.output)
            print(f"[INFO] Table saved to {path}")
        return EXIT_POINT_FAILURES if table["error"].notna().any() else EXIT_OK

    if args.cmd == "plot":
        from .simulator.visualize import plot_bound_gap, plot_sweep

        table = read_table(args.input)
        if args.gap:
            plot_bound_gap(table, save_path=args.output)
        else:
            plot_sweep(table, save_path=args.output, title=args.title)
        if args.output is not None:
            print(f"[INFO] Figure saved to {args.output.with_suffix('.png')}")
        return EXIT_OK

    raise ValueError(f"Unknown command: {args.cmd}")


def main(argv: List[str] | None = None) -> int:  # noqa: D401
    """Main entry point for the command-line interface."""
    parser = _parse_args(argv)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return _run(args)
    except InvalidParameter as exc:
        log.debug("Rejected %s: param=%s value=%r", args.cmd, exc.param, exc.value)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID_PARAMETER
    except (ValueError, OSError, yaml.YAMLError) as exc:
        # Unreadable or unsuitable input files (tables, configs).
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID_PARAMETER


if __name__ == "__main__":
    sys.exit(main())
