"""
Estimator module: registry, abstract base class, and public API for adjacency estimators.

This module provides:
- An abstract base class (`AdjacencyEstimator`) for every probability estimator.
- A registry so sweeps and worker processes can look estimators up by name.
- Public API exposure for the Monte Carlo estimators and the heuristic bound.

Usage Example:
--------------

from mutation_adjacency.estimators import get_estimator, register_estimator, AdjacencyEstimator

@register_estimator
class MyEstimator(AdjacencyEstimator):
    name = "mine"

    def validate(self, n, k, trials):
        ...

    def estimate(self, n, k, trials, rng=None):
        return 0.0

est = get_estimator("mine")()
p = est.estimate(105, 11, 1000)

"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import numpy as np

from ..simulator.sampling import DEFAULT_BATCH_SIZE

# Public API: expose registry, base class, and submodules
__all__ = [
    "AdjacencyEstimator",
    "register_estimator",
    "get_estimator",
    "available_estimators",
    "next_adjacency",
    "any_adjacency",
    "heuristic",
]

# Estimator registry: maps estimator names to classes
_REGISTRY: Dict[str, Type["AdjacencyEstimator"]] = {}


class AdjacencyEstimator(ABC):
    """
    Abstract interface every estimator must implement.

    `validate` raises `InvalidParameter` for unusable inputs; `estimate`
    validates and then returns a probability in [0, 1].
    """

    #: Registry key; defaults to the class name when left empty.
    name: str = ""
    #: Value of the ``type`` column in sweep tables.
    label: str = "simulation"
    #: Whether `estimate` consumes trials and randomness.
    stochastic: bool = True

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE):
        self.batch_size = batch_size

    @abstractmethod
    def validate(self, n: int, k: int, trials: Optional[int]) -> None:
        """Raise `InvalidParameter` if (n, k, trials) is outside the domain."""

    @abstractmethod
    def estimate(
        self,
        n: int,
        k: int,
        trials: Optional[int],
        rng: Optional[np.random.Generator] = None,
    ) -> float:
        """Return the estimated probability for (n, k) over ``trials`` trials."""

    @classmethod
    def registry_key(cls) -> str:
        return cls.name or cls.__name__

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(batch_size={self.batch_size})"


# ------------------------------------------------------------------
# Registry helpers
# ------------------------------------------------------------------

def register_estimator(cls: Type["AdjacencyEstimator"]) -> Type["AdjacencyEstimator"]:
    """
    Class decorator to register estimators in the global registry.
    Ensures only subclasses of AdjacencyEstimator are registered.
    Raises if duplicate or invalid registration is attempted.
    """
    if not inspect.isclass(cls):
        raise TypeError("@register_estimator can only decorate classes")
    if not issubclass(cls, AdjacencyEstimator):
        raise TypeError("Registered class must inherit from AdjacencyEstimator")

    key = cls.registry_key()
    if key in _REGISTRY:
        raise KeyError(f"Estimator '{key}' is already registered")
    _REGISTRY[key] = cls
    return cls


def get_estimator(name: str) -> Type["AdjacencyEstimator"]:
    """
    Retrieve an estimator class by name from the registry.
    Raises KeyError if not found.
    """
    try:
        return _REGISTRY[name]
    except KeyError as exc:
        raise KeyError(
            f"Estimator '{name}' not found in registry. Available: {list(_REGISTRY)}"
        ) from exc


def available_estimators() -> list[str]:
    return list(_REGISTRY)


# ------------------------------------------------------------------
# Expose estimator modules for convenient import (registers them)
# ------------------------------------------------------------------

from . import next_adjacency  # noqa: E402
from . import any_adjacency  # noqa: E402
from . import heuristic  # noqa: E402
