from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from ..numeric import get_representation
from .config import FanoutWorkload, LoopWorkload

LOGGER = logging.getLogger("microbench.benchmark.runner")


@dataclass
class Measurement:
    started_ns: int
    finished_ns: int

    @property
    def elapsed_ns(self) -> int:
        return max(self.finished_ns - self.started_ns, 0)

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000


@dataclass
class LoopResult:
    workload: LoopWorkload
    measurement: Measurement
    value: Any
    rendered: str

    def format_lines(self, label: str) -> list[str]:
        return [
            f"{label}: {self.measurement.elapsed_ms:.3f}ms",
            f"Sum: {self.rendered}",
        ]


@dataclass
class FanoutResult:
    workload: FanoutWorkload
    measurement: Measurement
    completed: int

    def format_lines(self, label: str) -> list[str]:
        return [f"{label}: {self.measurement.elapsed_ms:.1f}ms"]


def run_loop(workload: LoopWorkload) -> LoopResult:
    """Time the ascending summation; rendering happens after the clock stops."""
    representation = get_representation(workload.representation)
    LOGGER.info(
        "Running loop-sum (representation=%s, iterations=%d)",
        representation.name,
        workload.iterations,
    )

    started_ns = time.perf_counter_ns()
    value = representation.accumulate(workload.iterations)
    finished_ns = time.perf_counter_ns()

    measurement = Measurement(started_ns=started_ns, finished_ns=finished_ns)
    LOGGER.info("loop-sum finished in %.3fms", measurement.elapsed_ms)
    return LoopResult(
        workload=workload,
        measurement=measurement,
        value=value,
        rendered=representation.render(value),
    )


async def delayed_task(index: int, delay_s: float) -> None:
    LOGGER.debug("task %d sleeping %.3fs", index, delay_s)
    await asyncio.sleep(delay_s)


async def _signalling_task(index: int, delay_s: float, done: asyncio.Queue[int]) -> None:
    await delayed_task(index, delay_s)
    await done.put(index)


async def _join_gather(workload: FanoutWorkload) -> int:
    tasks = [
        asyncio.create_task(delayed_task(index, workload.delay_s))
        for index in range(workload.task_count)
    ]
    await asyncio.gather(*tasks)
    return len(tasks)


async def _join_queue(workload: FanoutWorkload) -> int:
    done: asyncio.Queue[int] = asyncio.Queue()
    tasks = [
        asyncio.create_task(_signalling_task(index, workload.delay_s, done))
        for index in range(workload.task_count)
    ]
    completed = 0
    for _ in range(workload.task_count):
        await done.get()
        completed += 1
    # Every token is put before its task returns; this only reaps the tasks.
    await asyncio.gather(*tasks)
    return completed


_JOINS = {
    "gather": _join_gather,
    "queue": _join_queue,
}


async def run_fanout(workload: FanoutWorkload) -> FanoutResult:
    """Fan out task_count delayed tasks and wait for all of them."""
    LOGGER.info(
        "Running delayed-fanout (tasks=%d, delay=%.1fms, join=%s)",
        workload.task_count,
        workload.delay_ms,
        workload.join,
    )
    join = _JOINS[workload.join]

    started_ns = time.perf_counter_ns()
    completed = await join(workload)
    finished_ns = time.perf_counter_ns()

    measurement = Measurement(started_ns=started_ns, finished_ns=finished_ns)
    LOGGER.info("delayed-fanout finished in %.1fms", measurement.elapsed_ms)
    return FanoutResult(workload=workload, measurement=measurement, completed=completed)


def measure_fanout(workload: FanoutWorkload) -> FanoutResult:
    return asyncio.run(run_fanout(workload))


__all__ = [
    "FanoutResult",
    "LoopResult",
    "Measurement",
    "measure_fanout",
    "run_fanout",
    "run_loop",
]
