"""
Benchmark suite for microbench.

This package runs the timed workloads (summation loops under several numeric
representations and a concurrent fan-out of delayed tasks) in one process and
prints a summary table of the measurements taken during the invocation.
"""

from .main import main

__all__ = ["main"]
