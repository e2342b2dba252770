import asyncio

import pytest

from microbench.benchmarks.config import FanoutWorkload, LoopWorkload
from microbench.benchmarks.runner import (
    Measurement,
    measure_fanout,
    run_fanout,
    run_loop,
)


class TestMeasurement:
    def test_elapsed_is_derived(self):
        measurement = Measurement(started_ns=1_000_000, finished_ns=3_500_000)
        assert measurement.elapsed_ns == 2_500_000
        assert measurement.elapsed_ms == pytest.approx(2.5)

    def test_elapsed_never_negative(self):
        assert Measurement(started_ns=10, finished_ns=5).elapsed_ns == 0


class TestRunLoop:
    @pytest.mark.parametrize("representation", ["float64", "bigint", "int64"])
    def test_reports_sum_and_timing(self, representation):
        result = run_loop(LoopWorkload(representation=representation, iterations=10_000))
        assert int(result.value) == 49_995_000
        assert result.measurement.elapsed_ms >= 0
        lines = result.format_lines("Python Loop Benchmark")
        assert lines[0].startswith("Python Loop Benchmark: ")
        assert lines[0].endswith("ms")
        assert len(lines[0].split(": ")[1].removesuffix("ms").split(".")[1]) == 3
        assert lines[1].startswith("Sum: 49995000")

    def test_zero_iterations(self):
        result = run_loop(LoopWorkload(representation="bigint", iterations=0))
        assert result.value == 0
        assert result.rendered == "0"
        assert result.measurement.elapsed_ms < 50

    def test_second_run_has_no_hidden_state(self):
        workload = LoopWorkload(representation="int64", iterations=2_000)
        assert run_loop(workload).rendered == run_loop(workload).rendered


class TestFanout:
    @pytest.mark.parametrize("join", ["gather", "queue"])
    def test_ten_waits_overlap(self, join):
        result = measure_fanout(FanoutWorkload(task_count=10, delay_ms=100, join=join))
        assert result.completed == 10
        assert 90 <= result.measurement.elapsed_ms < 250

    @pytest.mark.parametrize("join", ["gather", "queue"])
    def test_zero_tasks_return_immediately(self, join):
        result = measure_fanout(FanoutWorkload(task_count=0, delay_ms=100, join=join))
        assert result.completed == 0
        assert result.measurement.elapsed_ms < 50

    def test_repeated_runs_are_similar(self):
        workload = FanoutWorkload(task_count=10, delay_ms=50)
        first = measure_fanout(workload).measurement.elapsed_ms
        second = measure_fanout(workload).measurement.elapsed_ms
        assert first < 200 and second < 200

    def test_format_uses_one_decimal(self):
        result = measure_fanout(FanoutWorkload(task_count=2, delay_ms=1))
        (line,) = result.format_lines("Python Concurrency")
        assert line.startswith("Python Concurrency: ")
        assert len(line.removesuffix("ms").split(".")[1]) == 1

    def test_runs_inside_existing_event_loop(self):
        async def scenario():
            return await run_fanout(FanoutWorkload(task_count=5, delay_ms=20, join="queue"))

        result = asyncio.run(scenario())
        assert result.completed == 5
