"""Exception hierarchy shared by estimators, sweeps and the CLI."""
from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "InvalidParameter",
    "SamplingImpossible",
    "TaskFailure",
]


class InvalidParameter(ValueError):
    """A caller-supplied parameter is outside its valid range.

    Raised before any computation is attempted.
    """

    def __init__(self, param: str, value: Any, reason: str):
        self.param = param
        self.value = value
        self.reason = reason
        super().__init__(f"invalid {param}={value!r}: {reason}")

    def __reduce__(self):
        # Rebuilt from the constructor arguments when sent back from a worker process.
        return (type(self), (self.param, self.value, self.reason))


class SamplingImpossible(InvalidParameter):
    """More distinct positions were requested than the sequence holds."""

    def __init__(self, param: str, value: Any, n: int, size: int):
        self.n = n
        self.size = size
        super().__init__(
            param,
            value,
            f"cannot draw {size} distinct positions from a sequence of length {n}",
        )

    def __reduce__(self):
        return (type(self), (self.param, self.value, self.n, self.size))


class TaskFailure(RuntimeError):
    """A single sweep point failed or timed out.

    Sweeps never raise this; it is turned into an error row for the point.
    """

    def __init__(self, n: int, k: int, cause: Optional[BaseException] = None, message: str = ""):
        self.n = n
        self.k = k
        self.cause = cause
        if not message:
            message = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown failure"
        super().__init__(f"sweep point n={n}, k={k} failed ({message})")
