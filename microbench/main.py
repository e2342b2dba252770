from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from .benchmarks.config import (
    DEFAULT_HOST,
    DEFAULT_ITERATIONS,
    DEFAULT_PORT,
    DEFAULT_TASK_COUNT,
    DEFAULT_TASK_DELAY_MS,
    FANOUT_LABEL,
    JOIN_STRATEGIES,
    LOOP_LABEL,
    BenchmarkConfigError,
    FanoutWorkload,
    HttpPingWorkload,
    LoopWorkload,
    env_value,
)
from .benchmarks.main import setup_logging
from .benchmarks.runner import measure_fanout, run_loop
from .numeric import DEFAULT_REPRESENTATION, REPRESENTATIONS
from .server import PingServer, ServerStartupError, serve_with_workloads

LOGGER = logging.getLogger("microbench")


def add_loop_arguments(parser: argparse.ArgumentParser, iterations: int) -> None:
    parser.add_argument(
        "--representation",
        choices=sorted(REPRESENTATIONS),
        default=DEFAULT_REPRESENTATION,
        help="Numeric representation of the accumulator",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=iterations,
        help="Number of loop iterations",
    )


def add_fanout_arguments(parser: argparse.ArgumentParser, tasks: int, delay_ms: float) -> None:
    parser.add_argument(
        "--tasks",
        type=int,
        default=tasks,
        help="Number of concurrent tasks",
    )
    parser.add_argument(
        "--delay-ms",
        type=float,
        default=delay_ms,
        help="Delay each task waits for, in milliseconds",
    )
    parser.add_argument(
        "--join",
        choices=JOIN_STRATEGIES,
        default="gather",
        help="How the harness waits for the tasks",
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    iterations = env_value("MICROBENCH_ITERATIONS", DEFAULT_ITERATIONS, int)
    tasks = env_value("MICROBENCH_TASKS", DEFAULT_TASK_COUNT, int)
    delay_ms = env_value("MICROBENCH_DELAY_MS", DEFAULT_TASK_DELAY_MS, float)

    parser = argparse.ArgumentParser(description="Run a single micro-benchmark workload")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("MICROBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    loop = subparsers.add_parser("loop", help="Timed summation loop")
    add_loop_arguments(loop, iterations)

    fanout = subparsers.add_parser("fanout", help="Timed concurrent fan-out of delayed tasks")
    add_fanout_arguments(fanout, tasks, delay_ms)

    serve = subparsers.add_parser("serve", help="Serve GET /ping until terminated")
    serve.add_argument(
        "--host",
        default=os.environ.get("MICROBENCH_HOST", DEFAULT_HOST),
    )
    serve.add_argument(
        "--port",
        type=int,
        default=env_value("MICROBENCH_PORT", DEFAULT_PORT, int),
    )
    serve.add_argument(
        "--with-workloads",
        action="store_true",
        help="Run the loop and fan-out benchmarks while serving",
    )
    add_loop_arguments(serve, iterations)
    add_fanout_arguments(serve, tasks, delay_ms)
    return parser.parse_args(argv)


def loop_workload(args: argparse.Namespace) -> LoopWorkload:
    return LoopWorkload(representation=args.representation, iterations=args.iterations)


def fanout_workload(args: argparse.Namespace) -> FanoutWorkload:
    return FanoutWorkload(task_count=args.tasks, delay_ms=args.delay_ms, join=args.join)


def run_loop_command(args: argparse.Namespace) -> int:
    result = run_loop(loop_workload(args))
    for line in result.format_lines(LOOP_LABEL):
        print(line)
    return 0


def run_fanout_command(args: argparse.Namespace) -> int:
    result = measure_fanout(fanout_workload(args))
    for line in result.format_lines(FANOUT_LABEL):
        print(line)
    return 0


def run_serve_command(args: argparse.Namespace) -> int:
    server = PingServer(HttpPingWorkload(host=args.host, port=args.port))
    if args.with_workloads:
        coro = serve_with_workloads(server, [loop_workload(args), fanout_workload(args)])
    else:
        coro = server.serve_forever()
    try:
        asyncio.run(coro)
    except ServerStartupError:
        LOGGER.exception("ping responder failed to start")
        return 1
    except KeyboardInterrupt:
        print("stopping ping responder", file=sys.stderr)
    return 0


COMMANDS = {
    "loop": run_loop_command,
    "fanout": run_fanout_command,
    "serve": run_serve_command,
}


def run(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(args.log_level)
    try:
        return COMMANDS[args.command](args)
    except BenchmarkConfigError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
