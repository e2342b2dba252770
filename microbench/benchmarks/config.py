from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Iterable, Sequence, TypeVar, Union

from ..numeric import DEFAULT_REPRESENTATION, REPRESENTATIONS

T = TypeVar("T")

DEFAULT_ITERATIONS = 1_000_000_000
DEFAULT_TASK_COUNT = 10
DEFAULT_TASK_DELAY_MS = 100.0
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

JOIN_STRATEGIES: tuple[str, ...] = ("gather", "queue")

LOOP_LABEL = "Python Loop Benchmark"
FANOUT_LABEL = "Python Concurrency"


class BenchmarkConfigError(ValueError):
    """Raised when a workload is constructed with invalid parameters."""


def env_value(name: str, default: T, convert: Callable[[str], T]) -> T:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return convert(raw)
    except ValueError:
        print(
            f"invalid {name} value {raw!r}; defaulting to {default}",
            file=sys.stderr,
        )
        return default


@dataclass(frozen=True)
class LoopWorkload:
    """Ascending summation over range(iterations) into one accumulator."""

    kind: ClassVar[str] = "loop-sum"

    representation: str = DEFAULT_REPRESENTATION
    iterations: int = DEFAULT_ITERATIONS

    def __post_init__(self) -> None:
        if self.representation not in REPRESENTATIONS:
            choices = ", ".join(sorted(REPRESENTATIONS))
            raise BenchmarkConfigError(
                f"unknown representation {self.representation!r} (expected one of: {choices})"
            )
        if self.iterations < 0:
            raise BenchmarkConfigError("LoopWorkload iterations must be >= 0")


@dataclass(frozen=True)
class FanoutWorkload:
    """Concurrent tasks that each wait delay_ms, joined before the clock stops."""

    kind: ClassVar[str] = "delayed-fanout"

    task_count: int = DEFAULT_TASK_COUNT
    delay_ms: float = DEFAULT_TASK_DELAY_MS
    join: str = "gather"

    def __post_init__(self) -> None:
        if self.task_count < 0:
            raise BenchmarkConfigError("FanoutWorkload task_count must be >= 0")
        if self.delay_ms < 0:
            raise BenchmarkConfigError("FanoutWorkload delay_ms must be >= 0")
        if self.join not in JOIN_STRATEGIES:
            raise BenchmarkConfigError(
                f"unknown join strategy {self.join!r} (expected one of: {', '.join(JOIN_STRATEGIES)})"
            )

    @property
    def delay_s(self) -> float:
        return self.delay_ms / 1000.0


@dataclass(frozen=True)
class HttpPingWorkload:
    """Single GET /ping route; measured externally by a load generator."""

    kind: ClassVar[str] = "http-route"

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise BenchmarkConfigError(f"port {self.port} is outside 0..65535")


Workload = Union[LoopWorkload, FanoutWorkload, HttpPingWorkload]


@dataclass(frozen=True)
class BenchmarkCase:
    """One timed workload together with the label printed for it."""

    name: str
    label: str
    workload: Workload

    @property
    def kind(self) -> str:
        return self.workload.kind


@dataclass
class BenchmarkPlan:
    """Ordered set of cases a suite invocation executes."""

    cases: list[BenchmarkCase] = field(default_factory=list)

    def __iter__(self) -> Iterable[BenchmarkCase]:
        return iter(self.cases)

    def __len__(self) -> int:
        return len(self.cases)


def default_benchmark_plan(
    iterations: int = DEFAULT_ITERATIONS,
    task_count: int = DEFAULT_TASK_COUNT,
    delay_ms: float = DEFAULT_TASK_DELAY_MS,
    representations: Sequence[str] | None = None,
) -> BenchmarkPlan:
    """Return one loop case per representation followed by the fan-out case."""

    selected = list(representations) if representations else list(REPRESENTATIONS)
    base_loop = LoopWorkload(iterations=iterations)
    cases = [
        BenchmarkCase(
            name=f"loop-{name}",
            label=f"{LOOP_LABEL} [{name}]",
            workload=dataclasses.replace(base_loop, representation=name),
        )
        for name in selected
    ]
    cases.append(
        BenchmarkCase(
            name="fanout",
            label=FANOUT_LABEL,
            workload=FanoutWorkload(task_count=task_count, delay_ms=delay_ms),
        )
    )
    return BenchmarkPlan(cases=cases)
