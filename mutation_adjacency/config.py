"""Sweep configuration definitions.

Every tunable of a sweep run lives in a single dataclass so that the CLI, the
sweep driver and YAML files all describe a run the same way.  Config objects
can be created programmatically or loaded from YAML files to facilitate
batch experiments.  There is deliberately no global seeding here: the seed is
turned into a `numpy.random.SeedSequence` and every sweep point gets its own
child stream.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import List, Optional

import numpy as np
import yaml

from .errors import InvalidParameter
from .simulator.sampling import DEFAULT_BATCH_SIZE

__all__ = [
    "SweepConfig",
    "SWEEP_MODES",
]

DEFAULT_YAML_INDENT = 2
DEFAULT_N = 105

SWEEP_MODES = ("next", "any")


@dataclass
class SweepConfig:
    """Container for all sweep parameters.

    Attributes
    ----------
    trials
        Number of Monte Carlo trials (G) per sweep point.  Always explicit.
    mode
        Which estimator to sweep: ``"next"`` or ``"any"``.
    n_values
        Sequence lengths to sweep over (outer loop).
    k_min, k_max
        Inclusive range of mutation counts (inner loop).
    seed
        Root seed of the sweep.  ``None`` draws fresh OS entropy.
    parallel
        Distribute sweep points over a process pool.
    processes
        Worker count for the pool (``None`` lets the executor decide).
    timeout_s
        Seconds to wait for a parallel sweep before unfinished points are
        reported as timed out.
    batch_size
        Trials sampled per vectorised numpy batch.
    with_heuristic
        Append heuristic-bound rows to the result table.  The bound applies
        to the next-mutation probability only, so this needs ``mode="next"``.
    """

    trials: int
    mode: str = "next"
    n_values: List[int] = field(default_factory=lambda: [DEFAULT_N])
    k_min: int = 0
    k_max: int = 10
    seed: Optional[int] = None
    parallel: bool = False
    processes: Optional[int] = None
    timeout_s: Optional[float] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    with_heuristic: bool = False

    # Free-form field to store arbitrary user metadata (e.g., experiment name).
    tag: str = field(default="", metadata={"yaml_field": True})

    # Automatically filled, not expected to be loaded from file.
    _yaml_path: Optional[Path] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.n_values, int):
            self.n_values = [self.n_values]
        self.n_values = [int(n) for n in self.n_values]
        self._validate()

    def _validate(self) -> None:
        if self.trials < 1:
            raise InvalidParameter("trials", self.trials, "must be >= 1")
        if self.mode not in SWEEP_MODES:
            raise InvalidParameter("mode", self.mode, f"must be one of {SWEEP_MODES}")
        if not self.n_values:
            raise InvalidParameter("n_values", self.n_values, "must not be empty")
        for n in self.n_values:
            if n < 1:
                raise InvalidParameter("n", n, "must be >= 1")
        if self.k_min < 0:
            raise InvalidParameter("k_min", self.k_min, "must be >= 0")
        if self.k_max < self.k_min:
            raise InvalidParameter("k_max", self.k_max, f"must be >= k_min ({self.k_min})")
        if self.batch_size < 1:
            raise InvalidParameter("batch_size", self.batch_size, "must be >= 1")
        if self.processes is not None and self.processes < 1:
            raise InvalidParameter("processes", self.processes, "must be >= 1")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise InvalidParameter("timeout_s", self.timeout_s, "must be > 0")
        if self.with_heuristic and self.mode != "next":
            raise InvalidParameter(
                "with_heuristic", self.with_heuristic, "the heuristic bounds the next-mutation probability only (mode=next)"
            )

    @property
    def k_values(self) -> List[int]:
        return list(range(self.k_min, self.k_max + 1))

    def seed_sequence(self) -> np.random.SeedSequence:
        """Root seed sequence from which per-point streams are spawned."""
        return np.random.SeedSequence(self.seed)

    # ------------------------------------------------------------------
    # YAML helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_yaml(cls, path: os.PathLike | str, **overrides) -> "SweepConfig":
        """Load a configuration from a YAML file.

        Keyword ``overrides`` whose value is not ``None`` replace file values.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        data.update({key: value for key, value in overrides.items() if value is not None})
        known = {f.name for f in fields(cls) if not f.name.startswith("_")}
        for key in data:
            if key not in known:
                raise InvalidParameter(key, data[key], f"unknown config field in {path}")
        if "trials" not in data:
            raise InvalidParameter("trials", None, f"missing from {path}")
        cfg = cls(**data)
        cfg._yaml_path = Path(path)
        return cfg

    def to_yaml(self, path: os.PathLike | str) -> None:
        """Save the config to YAML."""
        data = asdict(self)
        data.pop("_yaml_path", None)
        with open(path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(data, fh, indent=DEFAULT_YAML_INDENT, sort_keys=False)

    # Convenience str representation for logging
    def __str__(self) -> str:  # noqa: DunderStr
        return (
            f"SweepConfig(mode={self.mode}, n={self.n_values}, "
            f"k={self.k_min}..{self.k_max}, trials={self.trials}, seed={self.seed})"
        )
