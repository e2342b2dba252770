from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from .config import BenchmarkCase
from .runner import FanoutResult, LoopResult

COLUMNS = [
    "case",
    "kind",
    "variant",
    "size",
    "elapsed_ms",
    "result",
]


@dataclass
class CaseRecord:
    case: str
    kind: str
    variant: str
    size: int
    elapsed_ms: float
    result: str


class MeasurementCollector:
    """Keeps the measurements of the current invocation for the closing summary."""

    def __init__(self) -> None:
        self._records: list[CaseRecord] = []

    def record(self, case: BenchmarkCase, result: LoopResult | FanoutResult) -> CaseRecord:
        if isinstance(result, LoopResult):
            record = CaseRecord(
                case=case.name,
                kind=case.kind,
                variant=result.workload.representation,
                size=result.workload.iterations,
                elapsed_ms=result.measurement.elapsed_ms,
                result=result.rendered,
            )
        else:
            record = CaseRecord(
                case=case.name,
                kind=case.kind,
                variant=result.workload.join,
                size=result.workload.task_count,
                elapsed_ms=result.measurement.elapsed_ms,
                result=f"{result.completed} completed",
            )
        self._records.append(record)
        return record

    def __len__(self) -> int:
        return len(self._records)

    def build_dataframe(self) -> pd.DataFrame:
        if not self._records:
            return pd.DataFrame(columns=COLUMNS)
        return pd.DataFrame([vars(record) for record in self._records], columns=COLUMNS)

    def render_summary(self) -> str:
        df = self.build_dataframe()
        if df.empty:
            return "<no measurements>"
        return df.to_string(index=False, float_format=lambda value: f"{value:.3f}")
