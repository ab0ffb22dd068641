"""
Step timing for the inference engine.
"""

import time
from dataclasses import dataclass
from typing import List, Optional

SLOW_THRESHOLD_MS = 3000


@dataclass
class StepMetric:
    step: str
    duration_ms: float


class PerformanceTracker:
    """Records how long each named step of an inference run takes."""

    def __init__(self):
        self.metrics: List[StepMetric] = []
        self._current: Optional[str] = None
        self._started: Optional[float] = None

    def start_step(self, step: str) -> None:
        if self._current:
            self.end_step()
        self._current = step
        self._started = time.perf_counter()

    def end_step(self) -> None:
        if self._current is None or self._started is None:
            return
        elapsed = (time.perf_counter() - self._started) * 1000
        self.metrics.append(StepMetric(step=self._current, duration_ms=elapsed))
        self._current = None
        self._started = None

    def total_ms(self) -> float:
        return sum(m.duration_ms for m in self.metrics)

    def report(self) -> str:
        self.end_step()
        total = self.total_ms()
        lines = ["Performance report", "=" * 50]
        for m in self.metrics:
            pct = (m.duration_ms / total * 100) if total > 0 else 0.0
            lines.append(f"{m.step:<30} {m.duration_ms:>6.0f}ms ({pct:.1f}%)")
        lines.append("=" * 50)
        lines.append(f"{'Total':<30} {total:>6.0f}ms (100.0%)")
        if total > SLOW_THRESHOLD_MS:
            lines.append("Warning: total time exceeds 3 seconds")
        return "\n".join(lines)
