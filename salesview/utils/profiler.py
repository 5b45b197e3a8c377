"""
Profiling utilities for SalesView.

Measures wall-clock time, peak RSS (sampled in a background thread via psutil)
and a CPU percent snapshot around a block of code. Used by the `probe` command
to compare pagination strategies at a given depth.

Usage example:
    from salesview.utils.profiler import profile_block

    with profile_block("anchor_range") as stats:
        window = await paginator.execute(StrategyKind.ANCHOR_RANGE, query)
        stats.rows = len(window["rows"])

    print(stats.duration_seconds, stats.peak_rss_bytes, stats.rows_per_second)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass
from typing import Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Measurements of one profiled block.
    """

    label: str
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None
    cpu_percent: Optional[float] = None
    rows: int = 0

    @property
    def rows_per_second(self) -> Optional[float]:
        if self.duration_seconds <= 0:
            return None
        return self.rows / self.duration_seconds


class _RssSampler(threading.Thread):
    """Polls the resident set size of `process` until stopped, keeping the maximum."""

    def __init__(self, process: psutil.Process, interval_s: float) -> None:
        super().__init__(name="rss-sampler", daemon=True)
        self.process = process
        self.interval_s = interval_s
        self.peak = process.memory_info().rss
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.is_set():
            try:
                self.peak = max(self.peak, self.process.memory_info().rss)
            except psutil.Error:
                return
            self._stopped.wait(timeout=self.interval_s)

    def stop(self) -> int:
        self._stopped.set()
        self.join(timeout=1.0)
        return self.peak


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 50) -> Generator[ProfileStats, None, None]:
    """
    Profile a block of code.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling. Lower = more accurate but higher overhead.

    Notes
    -----
    The caller may set `stats.rows` inside the block to get a throughput figure.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    # CPU percent needs a priming call
    process.cpu_percent(interval=None)
    sampler = _RssSampler(process, sample_interval_ms / 1000.0)
    sampler.start()

    start = time.perf_counter()
    try:
        yield stats
    finally:
        stats.duration_seconds = time.perf_counter() - start
        peak = sampler.stop()
        stats.peak_rss_bytes = peak if peak > 0 else None
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ProfileStats", "profile_block"]
