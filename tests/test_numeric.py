import warnings

import numpy as np
import pytest

from microbench.numeric import (
    BASELINE_ITERATIONS,
    FLOAT64_BASELINE_SUM,
    REPRESENTATIONS,
    accumulate,
    expected_sum,
    get_representation,
    is_exact,
)


def sequential_float64_sum(iterations, chunk=10_000_000):
    """Left-to-right float64 summation of range(iterations), done in numpy blocks."""
    carry = 0.0
    for start in range(0, iterations, chunk):
        block = np.arange(start, min(start + chunk, iterations), dtype=np.float64)
        block[0] += carry
        carry = float(np.cumsum(block)[-1])
    return carry


class TestExpectedSum:
    def test_closed_form_for_full_workload(self):
        assert expected_sum(1_000_000_000) == 499999999500000000

    def test_zero_and_negative(self):
        assert expected_sum(0) == 0
        assert expected_sum(-5) == 0

    def test_small_values(self):
        assert expected_sum(1) == 0
        assert expected_sum(2) == 1
        assert expected_sum(1000) == 499500


class TestAccumulate:
    @pytest.mark.parametrize("name", sorted(REPRESENTATIONS))
    def test_matches_closed_form_on_small_ranges(self, name):
        for iterations in (0, 1, 10, 12_345):
            assert int(accumulate(name, iterations)) == expected_sum(iterations)

    @pytest.mark.parametrize("name", sorted(REPRESENTATIONS))
    def test_zero_iterations_yield_zero(self, name):
        rep = get_representation(name)
        assert rep.render(rep.accumulate(0)) in {"0", "0.000000"}

    def test_accumulator_types(self):
        assert isinstance(accumulate("float64", 10), float)
        assert type(accumulate("bigint", 10)) is int
        assert isinstance(accumulate("int64", 10), np.int64)

    def test_repeated_runs_are_identical(self):
        for name in REPRESENTATIONS:
            assert accumulate(name, 5_000) == accumulate(name, 5_000)

    def test_unknown_representation(self):
        with pytest.raises(ValueError, match="unknown representation"):
            accumulate("decimal", 10)


class TestRepresentationSemantics:
    def test_exactness_flags(self):
        assert is_exact("bigint")
        assert is_exact("int64")
        assert not is_exact("float64")

    def test_int64_loop_wraps_silently(self):
        maximum = int(np.iinfo(np.int64).max)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            total = accumulate("int64", 3, start=maximum)
        # max + 0 + 1 + 2 wraps past the top of the range once.
        assert total == np.iinfo(np.int64).min + 2
        assert get_representation("int64").render(total) == str(-(2**63) + 2)

    def test_bigint_loop_keeps_growing_past_int64(self):
        maximum = int(np.iinfo(np.int64).max)
        assert accumulate("bigint", 3, start=maximum) == maximum + 3

    def test_start_defaults_to_zero(self):
        for name in REPRESENTATIONS:
            assert accumulate(name, 4) == accumulate(name, 4, start=0) == 6

    def test_bigint_does_not_wrap(self):
        rep = get_representation("bigint")
        assert rep.render(2**63 - 1 + 1) == "9223372036854775808"

    def test_float_rendering_is_fixed_notation(self):
        rep = get_representation("float64")
        assert rep.render(FLOAT64_BASELINE_SUM) == "499999999067108992.000000"

    def test_int_rendering(self):
        rep = get_representation("int64")
        assert rep.render(np.int64(499999999500000000)) == "499999999500000000"


class TestFloat64Baseline:
    def test_baseline_loses_precision(self):
        assert FLOAT64_BASELINE_SUM != float(expected_sum(BASELINE_ITERATIONS))
        assert int(FLOAT64_BASELINE_SUM) == 499999999067108992

    def test_block_summation_matches_loop_on_small_ranges(self):
        for iterations in (1, 999, 50_000):
            assert sequential_float64_sum(iterations, chunk=97) == accumulate("float64", iterations)

    @pytest.mark.slow
    def test_pinned_baseline(self):
        assert sequential_float64_sum(BASELINE_ITERATIONS) == FLOAT64_BASELINE_SUM
