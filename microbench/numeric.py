from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

DEFAULT_REPRESENTATION = "float64"

# Sequential float64 summation of range(1_000_000_000), as observed.
FLOAT64_BASELINE_SUM = 499999999067108992.0
BASELINE_ITERATIONS = 1_000_000_000


def _sum_float64(iterations: int, start: int = 0) -> float:
    total = float(start)
    for i in range(iterations):
        total += i
    return total


def _sum_bigint(iterations: int, start: int = 0) -> int:
    total = start
    for i in range(iterations):
        total += i
    return total


def _sum_int64(iterations: int, start: int = 0) -> np.int64:
    total = np.int64(start)
    with np.errstate(over="ignore"):
        for i in range(iterations):
            total += np.int64(i)
    return total


def _render_float(value: float) -> str:
    return f"{value:f}"


def _render_int(value: Any) -> str:
    return str(int(value))


@dataclass(frozen=True)
class NumericRepresentation:
    """Accumulator semantics for the loop benchmark."""

    name: str
    description: str
    summer: Callable[[int, int], Any]
    renderer: Callable[[Any], str]
    exact: bool

    def accumulate(self, iterations: int, start: int = 0) -> Any:
        return self.summer(iterations, start)

    def render(self, value: Any) -> str:
        return self.renderer(value)


REPRESENTATIONS: dict[str, NumericRepresentation] = {
    "float64": NumericRepresentation(
        name="float64",
        description="native IEEE-754 double, silently loses precision",
        summer=_sum_float64,
        renderer=_render_float,
        exact=False,
    ),
    "bigint": NumericRepresentation(
        name="bigint",
        description="arbitrary-precision Python int",
        summer=_sum_bigint,
        renderer=_render_int,
        exact=True,
    ),
    "int64": NumericRepresentation(
        name="int64",
        description="numpy.int64 wide integer, wraps silently on overflow",
        summer=_sum_int64,
        renderer=_render_int,
        exact=True,
    ),
}


def get_representation(name: str) -> NumericRepresentation:
    try:
        return REPRESENTATIONS[name]
    except KeyError:
        choices = ", ".join(sorted(REPRESENTATIONS))
        raise ValueError(f"unknown representation {name!r} (expected one of: {choices})") from None


def accumulate(representation: str, iterations: int, start: int = 0) -> Any:
    """Sum range(iterations) in ascending order onto an accumulator seeded with start."""
    return get_representation(representation).accumulate(iterations, start)


def expected_sum(iterations: int) -> int:
    if iterations <= 0:
        return 0
    return iterations * (iterations - 1) // 2


def is_exact(representation: str) -> bool:
    return get_representation(representation).exact


__all__ = [
    "BASELINE_ITERATIONS",
    "DEFAULT_REPRESENTATION",
    "FLOAT64_BASELINE_SUM",
    "NumericRepresentation",
    "REPRESENTATIONS",
    "accumulate",
    "expected_sum",
    "get_representation",
    "is_exact",
]
