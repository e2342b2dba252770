from __future__ import annotations

import argparse
import logging
import os
import sys

from ..numeric import REPRESENTATIONS
from .collector import MeasurementCollector
from .config import (
    DEFAULT_ITERATIONS,
    DEFAULT_TASK_COUNT,
    DEFAULT_TASK_DELAY_MS,
    BenchmarkConfigError,
    BenchmarkPlan,
    FanoutWorkload,
    LoopWorkload,
    default_benchmark_plan,
    env_value,
)
from .runner import measure_fanout, run_loop

LOGGER = logging.getLogger("microbench.benchmark")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="microbench suite: every loop representation plus the fan-out")
    parser.add_argument(
        "--iterations",
        type=int,
        default=env_value("MICROBENCH_ITERATIONS", DEFAULT_ITERATIONS, int),
        help="Loop iterations for every loop case",
    )
    parser.add_argument(
        "--representations",
        default=",".join(REPRESENTATIONS),
        help="Comma-separated loop representations to run",
    )
    parser.add_argument(
        "--tasks",
        type=int,
        default=env_value("MICROBENCH_TASKS", DEFAULT_TASK_COUNT, int),
    )
    parser.add_argument(
        "--delay-ms",
        type=float,
        default=env_value("MICROBENCH_DELAY_MS", DEFAULT_TASK_DELAY_MS, float),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned cases without executing them",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("MICROBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def parse_representations(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def execute_plan(plan: BenchmarkPlan, collector: MeasurementCollector) -> None:
    for case in plan:
        LOGGER.info("Executing case %s (%s)", case.name, case.kind)
        if isinstance(case.workload, LoopWorkload):
            result = run_loop(case.workload)
        elif isinstance(case.workload, FanoutWorkload):
            result = measure_fanout(case.workload)
        else:
            raise BenchmarkConfigError(f"case {case.name} is not a timed workload")
        for line in result.format_lines(case.label):
            print(line)
        collector.record(case, result)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        plan = default_benchmark_plan(
            iterations=args.iterations,
            task_count=args.tasks,
            delay_ms=args.delay_ms,
            representations=parse_representations(args.representations),
        )
    except BenchmarkConfigError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 1

    LOGGER.info("Planned %d case(s)", len(plan))
    if args.dry_run:
        _print_plan(plan)
        return 0

    collector = MeasurementCollector()
    execute_plan(plan, collector)

    print()
    print(collector.render_summary())
    return 0


def _print_plan(plan: BenchmarkPlan) -> None:
    for case in plan:
        workload = case.workload
        if isinstance(workload, LoopWorkload):
            detail = f"representation={workload.representation}, iterations={workload.iterations}"
        else:
            detail = f"tasks={workload.task_count}, delay={workload.delay_ms}ms, join={workload.join}"
        print(f"  - {case.name} ({case.kind}): {detail}")


if __name__ == "__main__":
    sys.exit(main())
