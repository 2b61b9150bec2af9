"""Timed execution of a single candidate call.

Wall-clock time comes from :func:`time.perf_counter`.  Memory is only
measured on request because tracing allocations slows the call down:
the runner performs one separate, profiled execution per candidate and
times the remaining executions untraced.

Allocated memory is the sum of

- the peak of Python-level allocations seen by :mod:`tracemalloc`
  (numpy and pandas buffers are registered there), and
- the growth of Arrow's default memory pool, which tracemalloc cannot
  see (:func:`pyarrow.total_allocated_bytes`).
"""

from __future__ import annotations

import logging
import time
import tracemalloc
from dataclasses import dataclass
from typing import Any, Callable

import pyarrow as pa

log = logging.getLogger("formatbench")

_MB = 1024 * 1024


@dataclass
class TimedResult:
    """Result of one timed call."""

    wall_time_s: float
    value: Any = None
    mem_alloc_mb: float | None = None


def run_timed(fn: Callable[[], Any]) -> TimedResult:
    """Call *fn* once and measure its wall-clock duration.

    Exceptions raised by *fn* propagate unchanged.
    """
    start = time.perf_counter()
    value = fn()
    elapsed = time.perf_counter() - start
    return TimedResult(wall_time_s=elapsed, value=value)


def run_profiled(fn: Callable[[], Any]) -> TimedResult:
    """Call *fn* once, measuring both duration and allocated memory.

    The duration is reported but includes tracing overhead; the runner
    never mixes it into timing statistics.
    """
    already_tracing = tracemalloc.is_tracing()
    if already_tracing:
        tracemalloc.clear_traces()
    else:
        tracemalloc.start()
    arrow_before = pa.total_allocated_bytes()
    try:
        start = time.perf_counter()
        value = fn()
        elapsed = time.perf_counter() - start
        _, py_peak = tracemalloc.get_traced_memory()
        arrow_growth = max(pa.total_allocated_bytes() - arrow_before, 0)
    finally:
        if not already_tracing:
            tracemalloc.stop()

    mem_mb = (py_peak + arrow_growth) / _MB
    log.debug("Profiled call: %.6fs, %.2f MB allocated", elapsed, mem_mb)
    return TimedResult(wall_time_s=elapsed, value=value, mem_alloc_mb=mem_mb)
