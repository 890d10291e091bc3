"""Monte Carlo estimates of mutation adjacency probabilities."""
from __future__ import annotations

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("mutation-adjacency")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = ["config", "errors", "estimators", "simulator", "sweep"]

# Import to register estimators
from . import estimators
