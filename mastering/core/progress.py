"""
Coarse progress reporting. Values are integer percentages, clamped to 0..100
and never lower than one already reported.
"""
from typing import Callable, Optional

ProgressCallback = Callable[[int], None]

# Pipeline milestones (percent)
START = 5
DECODED = 30
FIRST_RENDER_END = 60
ANALYZED = 65
RENDERED = 75
TRIMMED = 85
ENCODED = 95
DONE = 100


class ProgressReporter:
    """Wraps an optional callback; sub-ranges are carved out with span()."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last = 0

    def report(self, percent: float) -> None:
        value = int(round(min(100.0, max(0.0, float(percent)))))
        if value < self._last:
            value = self._last
        self._last = value
        if self._callback is not None:
            self._callback(value)

    def span(self, start: float, end: float) -> "ProgressSpan":
        return ProgressSpan(self, start, end)


class ProgressSpan:
    """Maps a fraction 0..1 of some sub-task onto [start, end] of the parent."""

    def __init__(self, parent: ProgressReporter, start: float, end: float):
        self.parent = parent
        self.start = start
        self.end = end

    def fraction(self, done: int, total: int) -> None:
        if total <= 0:
            self.parent.report(self.end)
            return
        self.parent.report(self.start + (done / total) * (self.end - self.start))
